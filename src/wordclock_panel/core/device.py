"""Word clock controller HTTP transport."""

import logging
from typing import Any, Iterator, Optional

import requests
from pydantic import BaseModel

from wordclock_panel.core.errors import (
    DeviceConnectionError,
    DeviceProtocolError,
    StatusDecodeError,
)
from wordclock_panel.models.config import DeviceConfig

logger = logging.getLogger(__name__)

STATUS_PATH = "/status"
UPDATE_PATH = "/update"
EVENTS_PATH = "/events"


class Ack(BaseModel):
    """Controller acknowledgement of an update."""

    status_code: int
    body: str = ""


class EventStream:
    """An open GET /events response yielding UTF-8 decoded lines.

    close() may be called from another thread to end a blocked read.
    """

    def __init__(self, response: requests.Response, base_url: str):
        self._response = response
        self._base_url = base_url
        self.closed = False

    def __iter__(self) -> Iterator[str]:
        try:
            for raw in self._response.iter_lines():
                yield raw.decode("utf-8", errors="replace")
        except (requests.exceptions.RequestException, OSError, ValueError) as e:
            # reading from a response closed under us fails with one of these
            if not self.closed:
                raise DeviceConnectionError(f"Event stream from {self._base_url} broke: {e}") from e
        finally:
            self._response.close()

    def close(self) -> None:
        self.closed = True
        self._response.close()


class ClockDevice:
    """Client for the word clock controller's HTTP interface."""

    def __init__(self, config: Optional[DeviceConfig] = None, session: Optional[requests.Session] = None):
        """Initialize the device client.

        Args:
            config: Connection settings (defaults to the access point address)
            session: Optional requests session to reuse
        """
        self.config = config or DeviceConfig()
        self.timeout = self.config.timeout
        self._base_url = self.config.base_url
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send a request to the controller.

        Args:
            method: HTTP method
            path: Request path
            **kwargs: Extra arguments for requests

        Returns:
            Response with a 2xx status

        Raises:
            DeviceConnectionError: If unable to reach the controller
            DeviceProtocolError: If the controller returns a non-2xx status
        """
        url = f"{self._base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            raise DeviceConnectionError(f"Failed to connect to word clock at {self._base_url}: {e}") from e

        if not 200 <= response.status_code < 300:
            response.close()
            raise DeviceProtocolError(response.status_code, url)
        return response

    def get_status(self) -> dict[str, Any]:
        """Fetch the controller's current configuration.

        Returns:
            Parsed JSON body of GET /status
        """
        response = self._request("GET", STATUS_PATH)
        try:
            return response.json()
        except ValueError as e:
            raise StatusDecodeError("<body>", "response is not valid JSON") from e

    def post_update(self, payload: dict[str, Any]) -> Ack:
        """Send a partial update.

        Args:
            payload: JSON body for POST /update

        Returns:
            Acknowledgement with the HTTP status and response text
        """
        logger.debug(f"POST {UPDATE_PATH}: {sorted(payload)}")
        response = self._request("POST", UPDATE_PATH, json=payload)
        return Ack(status_code=response.status_code, body=response.text)

    def open_event_stream(self) -> "EventStream":
        """Open GET /events.

        The connect timeout applies; once connected the stream stays open
        until the controller or EventStream.close() ends it.
        """
        response = self._request(
            "GET",
            EVENTS_PATH,
            stream=True,
            headers={"Accept": "text/event-stream"},
            timeout=(self.timeout, None),
        )
        return EventStream(response, self._base_url)

    def iter_event_lines(self) -> Iterator[str]:
        """Stream raw lines from GET /events."""
        yield from self.open_event_stream()

    def ping(self) -> bool:
        """Check if the controller is reachable.

        Returns:
            True if GET /status answers, False otherwise
        """
        try:
            self.get_status()
            return True
        except (DeviceConnectionError, DeviceProtocolError, StatusDecodeError):
            return False

    def close(self) -> None:
        self._session.close()

    def __repr__(self) -> str:
        return f"ClockDevice(base_url='{self._base_url}')"
