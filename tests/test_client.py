import asyncio
import threading
import unittest

from wordclock_panel.core.client import SyncClient
from wordclock_panel.core.device import Ack
from wordclock_panel.core.errors import (
    DeviceConnectionError,
    DeviceProtocolError,
    PanelValidationError,
    StatusDecodeError,
    SubmitInProgressError,
)
from wordclock_panel.core.renderer import StateRenderer
from wordclock_panel.models.state import Brightness, Language, PanelRevision, PartialFragment

from tests.test_events import FakeEventStream


class FakeController:
    """In-memory controller that merges updates by key presence."""

    base_url = "http://fake-clock"

    def __init__(self, **state):
        self.state = {
            "color": 0x1234,
            "language": "deutsch",
            "brightness": "low",
            "ntp": "0",
            "ssid": "",
            "status": "ready",
            "termination": False,
        }
        self.state.update(state)
        self.updates = []
        self.fail_with = None
        self.closed = False

    def get_status(self):
        if self.fail_with:
            raise self.fail_with
        return dict(self.state)

    def post_update(self, payload):
        if self.fail_with:
            raise self.fail_with
        self.updates.append(payload)
        for key, value in payload.items():
            if key not in ("datetime", "pw"):
                self.state[key] = value
        return Ack(status_code=200, body="OK")

    def close(self):
        self.closed = True


class TestRefresh(unittest.TestCase):
    def test_refresh_replaces_snapshot_and_renders(self):
        controller = FakeController()
        client = SyncClient(controller)
        result = asyncio.run(client.refresh())
        self.assertTrue(result.ok)
        self.assertIs(client.snapshot, result.value)
        self.assertEqual(client.view.language.selected, "deutsch")
        self.assertEqual(client.view.status.text, "ready")

        controller.state["language"] = "dialekt"
        second = asyncio.run(client.refresh()).unwrap()
        self.assertIs(client.snapshot, second)
        self.assertIs(second.language, Language.DIALEKT)

    def test_connectivity_failure_keeps_previous_snapshot(self):
        controller = FakeController()
        client = SyncClient(controller)
        first = asyncio.run(client.refresh()).unwrap()

        controller.fail_with = DeviceConnectionError("no route")
        result = asyncio.run(client.refresh())
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, DeviceConnectionError)
        self.assertIs(client.snapshot, first)
        with self.assertRaises(DeviceConnectionError):
            result.unwrap()

    def test_decode_failure_names_field(self):
        controller = FakeController()
        del controller.state["language"]
        result = asyncio.run(SyncClient(controller).refresh())
        self.assertIsInstance(result.error, StatusDecodeError)
        self.assertEqual(result.error.field, "language")

    def test_non_ascii_digits_are_decode_failures(self):
        result = asyncio.run(SyncClient(FakeController(color="²")).refresh())
        self.assertIsInstance(result.error, StatusDecodeError)
        self.assertEqual(result.error.field, "color")

        state = asyncio.run(SyncClient(FakeController(brightness="²")).refresh()).unwrap()
        self.assertIs(state.brightness, Brightness.MEDIUM)


class TestSubmit(unittest.TestCase):
    def test_brightness_only_edit_preserves_other_fields(self):
        controller = FakeController()
        client = SyncClient(controller, clock=lambda: 1700000000.4)

        async def run():
            await client.refresh()
            client.view.brightness.select("high")
            submitted = await client.submit_view()
            refreshed = await client.refresh()
            return submitted, refreshed

        submitted, refreshed = asyncio.run(run())
        self.assertTrue(submitted.ok)
        self.assertEqual(controller.updates, [{"datetime": 1700000000, "brightness": "high"}])
        state = refreshed.unwrap()
        self.assertIs(state.brightness, Brightness.HIGH)
        self.assertIs(state.language, Language.DEUTSCH)
        self.assertEqual(state.color, 0x1234)
        self.assertEqual(client.view.touched, [])

    def test_timestamp_is_fresh_per_request(self):
        ticks = iter([100.0, 200.0])
        controller = FakeController()
        client = SyncClient(controller, clock=lambda: next(ticks))
        asyncio.run(client.submit(PartialFragment()))
        asyncio.run(client.submit(PartialFragment(language=Language.DIALEKT)))
        self.assertEqual([u["datetime"] for u in controller.updates], [100, 200])

    def test_protocol_failure_is_returned(self):
        controller = FakeController()
        controller.fail_with = DeviceProtocolError(500, "http://fake-clock/update")
        result = asyncio.run(SyncClient(controller).submit(PartialFragment(brightness=Brightness.LOW)))
        self.assertIsInstance(result.error, DeviceProtocolError)

    def test_validation_failure_sends_nothing(self):
        controller = FakeController()
        client = SyncClient(controller, StateRenderer(PanelRevision.LEGACY))
        result = asyncio.run(client.submit_view())
        self.assertIsInstance(result.error, PanelValidationError)
        self.assertEqual(result.error.control, "color")
        self.assertEqual(controller.updates, [])

    def test_legacy_revision_sends_numeric_brightness(self):
        controller = FakeController()
        client = SyncClient(controller, StateRenderer(PanelRevision.LEGACY), clock=lambda: 5)

        async def run():
            await client.refresh()
            return await client.submit_view()

        self.assertTrue(asyncio.run(run()).ok)
        payload = controller.updates[0]
        self.assertEqual(payload["brightness"], 64)
        self.assertEqual(payload["language"], "deutsch")
        self.assertEqual(payload["color"], 0x1234)

    def test_legacy_revision_does_not_repeat_termination(self):
        controller = FakeController(termination=True)
        client = SyncClient(controller, StateRenderer(PanelRevision.LEGACY), clock=lambda: 1)

        async def run():
            await client.refresh()
            client.view.brightness.select("high")
            return await client.submit_view()

        self.assertTrue(asyncio.run(run()).ok)
        self.assertEqual(
            controller.updates,
            [{"datetime": 1, "color": 0x1234, "language": "deutsch", "brightness": 255}],
        )

    def test_overlapping_submit_is_rejected(self):
        release = threading.Event()
        controller = FakeController()
        post = controller.post_update

        def slow_post(payload):
            release.wait(2)
            return post(payload)

        controller.post_update = slow_post
        client = SyncClient(controller)

        async def run():
            first = asyncio.create_task(client.submit(PartialFragment(brightness=Brightness.HIGH)))
            await asyncio.sleep(0)
            second = await client.submit(PartialFragment(brightness=Brightness.LOW))
            release.set()
            return await first, second

        first, second = asyncio.run(run())
        self.assertTrue(first.ok)
        self.assertIsInstance(second.error, SubmitInProgressError)
        self.assertEqual(len(controller.updates), 1)
        self.assertFalse(client.submitting)


class TestStatusPush(unittest.TestCase):
    def test_pushed_status_only_touches_status_line(self):
        controller = FakeController()
        controller.open_event_stream = lambda: FakeEventStream(["event: status", "data: Alarm set", ""])
        client = SyncClient(controller)

        async def run():
            await client.refresh()
            got = asyncio.get_running_loop().create_future()
            client.on_status_push(lambda line: got.done() or got.set_result(line))
            return await asyncio.wait_for(got, timeout=2)

        self.assertEqual(asyncio.run(run()), "Alarm set")
        self.assertEqual(client.view.status.text, "Alarm set")
        self.assertEqual(client.snapshot.status, "ready")
        self.assertEqual(client.view.language.selected, "deutsch")
        client.close()
        self.assertTrue(controller.closed)
