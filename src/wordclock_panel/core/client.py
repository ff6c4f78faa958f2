"""Read-edit-write synchronization with the word clock controller."""

import asyncio
import logging
import time
from typing import Any, Callable, Generic, Optional, TypeVar

from wordclock_panel.core.controls import PanelView
from wordclock_panel.core.device import Ack, ClockDevice
from wordclock_panel.core.errors import (
    DeviceConnectionError,
    DeviceProtocolError,
    PanelValidationError,
    StatusDecodeError,
    SubmitInProgressError,
)
from wordclock_panel.core.events import StatusFeed
from wordclock_panel.core.renderer import StateRenderer
from wordclock_panel.models.state import DeviceState, PanelRevision, PartialFragment, decode_status

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncResult(Generic[T]):
    """Outcome of a network operation: a value or a typed error."""

    def __init__(self, value: Optional[T] = None, error: Optional[Exception] = None):
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value: T) -> "SyncResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "SyncResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if self.ok:
            return f"SyncResult(value={self.value!r})"
        return f"SyncResult(error={self.error!r})"


class SyncClient:
    """Fetches controller state into the panel and sends user edits back.

    Holds at most one DeviceState snapshot, replaced wholesale on every
    successful refresh, and allows one write in flight at a time.
    """

    def __init__(
        self,
        device: ClockDevice,
        renderer: Optional[StateRenderer] = None,
        view: Optional[PanelView] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the sync client.

        Args:
            device: Controller transport
            renderer: State renderer (default: current revision)
            view: Panel controls to render into
            clock: Source of Unix time for the update timestamp
        """
        self.device = device
        self.renderer = renderer or StateRenderer()
        self.view = view or PanelView()
        self._clock = clock
        self._snapshot: Optional[DeviceState] = None
        self._submitting = False
        self._feeds: list[StatusFeed] = []

    @property
    def snapshot(self) -> Optional[DeviceState]:
        """The last successfully fetched state."""
        return self._snapshot

    @property
    def revision(self) -> PanelRevision:
        return self.renderer.revision

    @property
    def submitting(self) -> bool:
        return self._submitting

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def refresh(self) -> SyncResult[DeviceState]:
        """Fetch the controller state and render it onto the panel.

        Returns:
            SyncResult holding the new snapshot, or the connectivity,
            protocol or decode error. The previous snapshot is kept on failure.
        """
        try:
            payload = await self._call(self.device.get_status)
            state = decode_status(payload)
        except (DeviceConnectionError, DeviceProtocolError) as e:
            logger.error(f"Status request failed: {e}")
            return SyncResult.failure(e)
        except StatusDecodeError as e:
            logger.error(f"Status response rejected: {e}")
            return SyncResult.failure(e)

        self._snapshot = state
        self.renderer.render(state, self.view)
        logger.info(f"Fetched state from {self.device.base_url}")
        return SyncResult.success(state)

    async def submit(self, fragment: PartialFragment) -> SyncResult[Ack]:
        """Send a partial update stamped with the current time.

        Only the fragment's fields are sent, never the snapshot. A submit
        started while another one is outstanding is rejected.

        Args:
            fragment: User edits to send

        Returns:
            SyncResult holding the controller acknowledgement or the error
        """
        if self._submitting:
            logger.warning("Update rejected: another update is in flight")
            return SyncResult.failure(SubmitInProgressError())

        self._submitting = True
        try:
            payload = fragment.to_payload(int(self._clock()), self.revision)
            ack = await self._call(self.device.post_update, payload)
        except (DeviceConnectionError, DeviceProtocolError) as e:
            logger.error(f"Update request failed: {e}")
            return SyncResult.failure(e)
        finally:
            self._submitting = False

        logger.info(f"Controller accepted update of {sorted(fragment.fields()) or 'clock only'}")
        return SyncResult.success(ack)

    async def submit_view(self) -> SyncResult[Ack]:
        """Validate the panel, collect the user's edits and submit them."""
        try:
            fragment = self.renderer.build_fragment(self.view)
        except PanelValidationError as e:
            logger.warning(f"Update not sent: {e.prompt}")
            return SyncResult.failure(e)

        result = await self.submit(fragment)
        if result.ok:
            self.view.reset_touched()
        return result

    def on_status_push(self, handler: Optional[Callable[[str], None]] = None) -> StatusFeed:
        """Subscribe to pushed status lines.

        Each line replaces the panel's status text and is passed to the
        handler. No other part of the state is touched.

        Args:
            handler: Optional callback receiving each status line

        Returns:
            The running StatusFeed
        """

        def forward(line: str) -> None:
            self.view.status.load(line)
            if handler:
                handler(line)

        feed = StatusFeed(self.device, forward)
        feed.start()
        self._feeds.append(feed)
        return feed

    def close(self) -> None:
        for feed in self._feeds:
            feed.stop()
        self._feeds.clear()
        self.device.close()

    def __repr__(self) -> str:
        return f"SyncClient(device={self.device!r}, revision='{self.revision.value}')"
