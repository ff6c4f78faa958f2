import unittest
from types import SimpleNamespace
from unittest.mock import Mock

import requests

from wordclock_panel.core.device import ClockDevice
from wordclock_panel.core.errors import (
    DeviceConnectionError,
    DeviceProtocolError,
    StatusDecodeError,
)
from wordclock_panel.models.config import DeviceConfig


def fake_response(status_code=200, body=None, text="", lines=None):
    def json():
        if body is None:
            raise ValueError("not json")
        return body

    return SimpleNamespace(
        status_code=status_code,
        json=json,
        text=text,
        iter_lines=lambda: iter(lines or []),
        close=Mock(),
    )


class TestClockDevice(unittest.TestCase):
    def setUp(self):
        self.session = Mock()
        self.device = ClockDevice(DeviceConfig(host="10.0.0.7", timeout=2.5), session=self.session)

    def test_base_url(self):
        self.assertEqual(self.device.base_url, "http://10.0.0.7")
        self.assertEqual(DeviceConfig(host="clock.local", port=8080).base_url, "http://clock.local:8080")

    def test_get_status(self):
        self.session.request.return_value = fake_response(body={"color": 1})
        self.assertEqual(self.device.get_status(), {"color": 1})
        self.session.request.assert_called_once_with("GET", "http://10.0.0.7/status", timeout=2.5)

    def test_post_update_sends_json_with_timeout(self):
        self.session.request.return_value = fake_response(status_code=204, text="")
        ack = self.device.post_update({"datetime": 1, "brightness": "high"})
        self.assertEqual(ack.status_code, 204)
        self.session.request.assert_called_once_with(
            "POST",
            "http://10.0.0.7/update",
            json={"datetime": 1, "brightness": "high"},
            timeout=2.5,
        )

    def test_connection_failure(self):
        self.session.request.side_effect = requests.exceptions.ConnectTimeout("timed out")
        with self.assertRaises(DeviceConnectionError):
            self.device.get_status()

    def test_non_2xx_is_protocol_failure(self):
        self.session.request.return_value = fake_response(status_code=500)
        with self.assertRaises(DeviceProtocolError) as ctx:
            self.device.post_update({"datetime": 1})
        self.assertEqual(ctx.exception.status_code, 500)

    def test_invalid_json_is_decode_failure(self):
        self.session.request.return_value = fake_response(body=None, text="<html>")
        with self.assertRaises(StatusDecodeError):
            self.device.get_status()

    def test_ping(self):
        self.session.request.return_value = fake_response(body={})
        self.assertTrue(self.device.ping())
        self.session.request.side_effect = requests.exceptions.ConnectionError("down")
        self.assertFalse(self.device.ping())

    def test_event_lines_are_decoded(self):
        response = fake_response(lines=[b"event: status", "data: Grüezi".encode("utf-8"), b""])
        self.session.request.return_value = response
        lines = list(self.device.iter_event_lines())
        self.assertEqual(lines, ["event: status", "data: Grüezi", ""])
        response.close.assert_called_once()
        _, kwargs = self.session.request.call_args
        self.assertTrue(kwargs["stream"])
        self.assertEqual(kwargs["timeout"], (2.5, None))

    def test_closed_event_stream_ends_quietly(self):
        def broken_lines():
            yield b"event: status"
            raise requests.exceptions.ChunkedEncodingError("connection closed")

        response = fake_response()
        response.iter_lines = broken_lines
        self.session.request.return_value = response
        stream = self.device.open_event_stream()
        lines = iter(stream)
        self.assertEqual(next(lines), "event: status")
        stream.close()
        self.assertEqual(list(lines), [])

    def test_broken_event_stream_is_connection_failure(self):
        def broken_lines():
            raise requests.exceptions.ChunkedEncodingError("reset")
            yield

        response = fake_response()
        response.iter_lines = broken_lines
        self.session.request.return_value = response
        with self.assertRaises(DeviceConnectionError):
            list(self.device.iter_event_lines())
        response.close.assert_called()
