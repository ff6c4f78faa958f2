import unittest

from fastapi.testclient import TestClient

from wordclock_panel.core.client import SyncClient
from wordclock_panel.core.errors import DeviceConnectionError
from wordclock_panel.core.renderer import StateRenderer
from wordclock_panel.models.state import PanelRevision
from wordclock_panel.web.app import create_app

from tests.test_client import FakeController


class TestWebPanel(unittest.TestCase):
    def setUp(self):
        self.controller = FakeController()
        self.client = SyncClient(self.controller, clock=lambda: 1700000000)
        self.http = TestClient(create_app(self.client))

    def test_index_page(self):
        r = self.http.get("/")
        self.assertEqual(r.status_code, 200)
        self.assertIn('name="brightness"', r.text)
        self.assertIn('value="deutsch"', r.text)

    def test_state(self):
        r = self.http.get("/api/state")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["revision"], "current")
        self.assertEqual(body["controls"]["language"], "deutsch")
        self.assertEqual(body["controls"]["password"], "")

    def test_state_request_failure(self):
        self.controller.fail_with = DeviceConnectionError("down")
        r = self.http.get("/api/state")
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json()["detail"], "request failed")

    def test_state_decode_failure_names_field(self):
        del self.controller.state["language"]
        r = self.http.get("/api/state")
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json()["detail"]["field"], "language")

    def test_submit_sends_only_touched_controls(self):
        self.http.get("/api/state")
        r = self.http.post("/api/submit", json={"controls": {"brightness": "high"}})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.controller.updates, [{"datetime": 1700000000, "brightness": "high"}])

    def test_submit_validation_failure(self):
        self.http.get("/api/state")
        r = self.http.post("/api/submit", json={"controls": {"ssid": "home"}})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["detail"]["control"], "ntp")
        self.assertEqual(self.controller.updates, [])

    def test_submit_legacy_requires_selection(self):
        client = SyncClient(FakeController(), StateRenderer(PanelRevision.LEGACY))
        http = TestClient(create_app(client))
        r = http.post("/api/submit", json={"controls": {"brightness": "high"}})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["detail"]["control"], "color")

    def test_submit_unknown_control(self):
        r = self.http.post("/api/submit", json={"controls": {"volume": 11}})
        self.assertEqual(r.status_code, 400)

    def test_submit_bad_option(self):
        r = self.http.post("/api/submit", json={"controls": {"language": "latin"}})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["detail"]["control"], "language")

    def test_submit_checkbox_needs_boolean(self):
        r = self.http.post("/api/submit", json={"controls": {"ntp": "false"}})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["detail"]["control"], "ntp")

    def test_status_line(self):
        self.http.get("/api/state")
        self.assertEqual(self.http.get("/api/status-line").json(), {"status": "ready"})
