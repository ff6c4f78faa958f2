"""Error types raised while talking to the word clock."""

from typing import Optional


class DeviceConnectionError(ConnectionError):
    """The request could not be sent or no response was received."""


class DeviceProtocolError(RuntimeError):
    """The controller answered with a non-2xx HTTP status."""

    def __init__(self, status_code: int, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Controller returned HTTP {status_code} for {url}")


class StatusDecodeError(ValueError):
    """A status response is missing a required field or a field is malformed."""

    def __init__(self, field: str, reason: str = "missing"):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid status field '{field}': {reason}")


class PanelValidationError(ValueError):
    """The user tried to submit without completing a required control."""

    def __init__(self, control: str, prompt: Optional[str] = None):
        self.control = control
        self.prompt = prompt or f"Please select a {control}"
        super().__init__(self.prompt)


class SubmitInProgressError(RuntimeError):
    """A write is already in flight."""

    def __init__(self) -> None:
        super().__init__("An update is already being sent to the controller")
