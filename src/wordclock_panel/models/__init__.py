"""Data models for wordclock_panel."""

from wordclock_panel.models.config import DeviceConfig, Settings
from wordclock_panel.models.state import (
    Brightness,
    DeviceState,
    Language,
    PanelRevision,
    PartialFragment,
    Timeout,
    decode_status,
)

__all__ = [
    "DeviceConfig",
    "Settings",
    "Brightness",
    "DeviceState",
    "Language",
    "PanelRevision",
    "PartialFragment",
    "Timeout",
    "decode_status",
]
