"""Core functionality for wordclock_panel."""

from wordclock_panel.core.color import decode, decode_hex, encode, encode_hex, format_color, parse_color
from wordclock_panel.core.errors import (
    DeviceConnectionError,
    DeviceProtocolError,
    PanelValidationError,
    StatusDecodeError,
    SubmitInProgressError,
)

__all__ = [
    "decode",
    "decode_hex",
    "encode",
    "encode_hex",
    "format_color",
    "parse_color",
    "DeviceConnectionError",
    "DeviceProtocolError",
    "PanelValidationError",
    "StatusDecodeError",
    "SubmitInProgressError",
]
