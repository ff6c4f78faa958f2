"""Push-style status feed over the controller's event stream."""

import asyncio
import logging
import threading
from typing import Callable, Iterable, Iterator, Optional

from pydantic import BaseModel

from wordclock_panel.core.device import ClockDevice, EventStream
from wordclock_panel.core.errors import DeviceConnectionError, DeviceProtocolError

logger = logging.getLogger(__name__)

STATUS_EVENT = "status"


class ServerEvent(BaseModel):
    """A single dispatched server-sent event."""

    event: str = "message"
    data: str = ""
    id: Optional[str] = None


def parse_events(lines: Iterable[str]) -> Iterator[ServerEvent]:
    """Split an event stream into events.

    Args:
        lines: Stream lines without their line terminators

    Yields:
        One ServerEvent per blank-line-terminated block that carried data
    """
    event_name = ""
    data: list[str] = []
    event_id: Optional[str] = None

    for line in lines:
        if line == "":
            if data:
                yield ServerEvent(event=event_name or "message", data="\n".join(data), id=event_id)
            event_name = ""
            data = []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            event_name = value
        elif field == "data":
            data.append(value)
        elif field == "id":
            event_id = value
        # "retry" and unknown fields are ignored


class StatusFeed:
    """Forwards `status` events from the controller to a handler.

    The stream is read on a daemon thread. When started from inside a running
    event loop the handler is called on that loop, otherwise on the reader
    thread. Reconnecting after the stream ends is left to the caller.
    """

    def __init__(self, device: ClockDevice, handler: Callable[[str], None]):
        self._device = device
        self._handler = handler
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._stream: Optional[EventStream] = None
        self.last_error: Optional[Exception] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _dispatch(self, line: str) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._handler, line)
        else:
            self._handler(line)

    def run(self) -> None:
        """Read the stream in the calling thread until it ends or stop() is called."""
        logger.info(f"Subscribing to status events from {self._device.base_url}")
        try:
            stream = self._device.open_event_stream()
            with self._lock:
                self._stream = stream
            if self._stop.is_set():
                stream.close()

            for event in parse_events(stream):
                if self._stop.is_set():
                    break
                if event.event == STATUS_EVENT:
                    logger.debug(f"Status event: {event.data}")
                    self._dispatch(event.data)
        except (DeviceConnectionError, DeviceProtocolError) as e:
            self.last_error = e
            logger.error(f"Status feed failed: {e}")
        finally:
            with self._lock:
                self._stream = None
            self._closed.set()
            logger.info("Status feed closed")

    def start(self) -> None:
        """Start reading the stream in the background."""
        if self.is_running:
            logger.warning("Status feed already running")
            return

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        self._stop.clear()
        self._closed.clear()
        self._thread = threading.Thread(target=self.run, name="wordclock-status-feed", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        """Stop forwarding events and close the open stream.

        Args:
            timeout: Seconds to wait for the reader thread to exit
        """
        self._stop.set()
        with self._lock:
            stream = self._stream
        if stream is not None:
            stream.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        return self._closed.wait(timeout)
