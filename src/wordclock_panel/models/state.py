"""Controller state models and the wire mapping tables."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from wordclock_panel.core.color import MAX_PACKED, decode_hex
from wordclock_panel.core.errors import StatusDecodeError


class Language(str, Enum):
    """Word layout shown on the clock face."""

    DIALEKT = "dialekt"
    DEUTSCH = "deutsch"


class Brightness(str, Enum):
    """Display intensity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Timeout(str, Enum):
    """Idle period after which the display switches itself off."""

    OFF = "off"
    MIN_5 = "5min"
    MIN_15 = "15min"
    MIN_60 = "60min"


class PanelRevision(str, Enum):
    """Panel behaviour generations.

    legacy: color, language and brightness must all be selected and every
        selected control is sent; brightness goes out as a numeric level.
    current: only touched controls are sent; brightness goes out as a label.
    """

    LEGACY = "legacy"
    CURRENT = "current"


DEFAULT_LANGUAGE = Language.DIALEKT
DEFAULT_BRIGHTNESS = Brightness.MEDIUM
DEFAULT_TIMEOUT = Timeout.OFF

LANGUAGES: dict[str, Language] = {language.value: language for language in Language}

BRIGHTNESS_LEVELS: dict[Brightness, int] = {
    Brightness.LOW: 64,
    Brightness.MEDIUM: 128,
    Brightness.HIGH: 255,
}
BRIGHTNESS_BY_LEVEL: dict[int, Brightness] = {level: b for b, level in BRIGHTNESS_LEVELS.items()}
BRIGHTNESS_LABELS: dict[str, Brightness] = {b.value: b for b in Brightness}

TIMEOUTS: dict[str, Timeout] = {timeout.value: timeout for timeout in Timeout}

REQUIRED_STATUS_FIELDS = ("color", "language", "brightness")


def language_from_wire(value: str) -> Language:
    """Map a wire language symbol, falling back to the first enumerator."""
    return LANGUAGES.get(value.strip().lower(), DEFAULT_LANGUAGE)


def brightness_from_wire(value: Union[str, int]) -> Brightness:
    """Map a brightness label or numeric level to a Brightness.

    Unmapped levels and unknown labels fall back to the mid-level default.
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text.isdecimal():
            return BRIGHTNESS_BY_LEVEL.get(int(text), DEFAULT_BRIGHTNESS)
        return BRIGHTNESS_LABELS.get(text, DEFAULT_BRIGHTNESS)
    return BRIGHTNESS_BY_LEVEL.get(value, DEFAULT_BRIGHTNESS)


def brightness_to_wire(
    brightness: Brightness,
    revision: PanelRevision = PanelRevision.CURRENT,
) -> Union[str, int]:
    """Encode a Brightness the way the given panel revision sends it."""
    if revision is PanelRevision.LEGACY:
        return BRIGHTNESS_LEVELS[brightness]
    return brightness.value


def timeout_from_wire(value: str) -> Timeout:
    """Map a wire timeout symbol, falling back to the first enumerator."""
    return TIMEOUTS.get(value.strip().lower(), DEFAULT_TIMEOUT)


class DeviceState(BaseModel):
    """Last known controller configuration. Replaced wholesale on every fetch."""

    model_config = ConfigDict(frozen=True)

    color: int = Field(ge=0, le=MAX_PACKED, description="RGB565 packed color")
    language: Language = DEFAULT_LANGUAGE
    brightness: Brightness = DEFAULT_BRIGHTNESS
    timeout: Optional[Timeout] = None
    ntp_enabled: bool = False
    ssid: str = ""
    status: str = ""
    termination_requested: bool = False

    @property
    def color_hex(self) -> str:
        """Color as a 24-bit hex string for a color picker."""
        return decode_hex(self.color)


class PartialFragment(BaseModel):
    """Sparse set of user edits.

    A key is present only when it was explicitly set to a value; absence
    means "leave unchanged" on the controller. Fields set to None count as
    absent.
    """

    model_config = ConfigDict(populate_by_name=True)

    color: Optional[int] = Field(default=None, ge=0, le=MAX_PACKED)
    language: Optional[Language] = None
    brightness: Optional[Brightness] = None
    timeout: Optional[Timeout] = None
    ntp: Optional[bool] = None
    ssid: Optional[str] = None
    password: Optional[str] = Field(default=None, alias="pw")
    termination: Optional[bool] = None

    def fields(self) -> set[str]:
        """Names of the fields present in this fragment."""
        return {name for name in self.model_fields_set if getattr(self, name) is not None}

    def is_empty(self) -> bool:
        return not self.fields()

    def to_payload(
        self,
        timestamp: int,
        revision: PanelRevision = PanelRevision.CURRENT,
    ) -> dict[str, Any]:
        """Build the POST /update body.

        Args:
            timestamp: Unix seconds at request time
            revision: Panel revision deciding the brightness encoding

        Returns:
            JSON-ready dict with "datetime" plus the present fields only
        """
        values = self.model_dump(exclude_unset=True, exclude_none=True, by_alias=True, mode="json")
        if "brightness" in values:
            values["brightness"] = brightness_to_wire(self.brightness, revision)
        return {"datetime": timestamp, **values}


def _require(payload: dict[str, Any], field: str) -> Any:
    if field not in payload or payload[field] is None:
        raise StatusDecodeError(field, "missing")
    return payload[field]


def _decode_color(value: Any) -> int:
    if isinstance(value, bool):
        raise StatusDecodeError("color", "expected an integer")
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if not isinstance(value, int):
        raise StatusDecodeError("color", "expected an integer")
    if not 0 <= value <= MAX_PACKED:
        raise StatusDecodeError("color", f"{value} is outside 0..{MAX_PACKED}")
    return value


def _decode_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "on"):
            return True
        if text in ("0", "false", "off", ""):
            return False
    raise StatusDecodeError(field, f"expected a boolean, got {value!r}")


def _decode_text(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise StatusDecodeError(field, "expected a string")
    return value


def decode_status(payload: Any) -> DeviceState:
    """Decode a GET /status response body into a DeviceState.

    Required fields must be present and well-typed; unknown enumerators are
    mapped to their documented defaults so newer firmware keeps working.

    Args:
        payload: Parsed JSON body

    Returns:
        Decoded DeviceState

    Raises:
        StatusDecodeError: If a required field is absent or a field is malformed
    """
    if not isinstance(payload, dict):
        raise StatusDecodeError("<payload>", "expected a JSON object")

    color = _decode_color(_require(payload, "color"))

    language = _require(payload, "language")
    if not isinstance(language, str):
        raise StatusDecodeError("language", "expected a string")

    brightness = _require(payload, "brightness")
    if isinstance(brightness, bool) or not isinstance(brightness, (str, int)):
        raise StatusDecodeError("brightness", "expected a string or number")

    timeout = payload.get("timeout")
    if timeout is not None and not isinstance(timeout, str):
        raise StatusDecodeError("timeout", "expected a string")

    return DeviceState(
        color=color,
        language=language_from_wire(language),
        brightness=brightness_from_wire(brightness),
        timeout=timeout_from_wire(timeout) if timeout is not None else None,
        ntp_enabled=_decode_bool(payload.get("ntp", False), "ntp"),
        ssid=_decode_text(payload.get("ssid"), "ssid"),
        status=_decode_text(payload.get("status"), "status"),
        termination_requested=_decode_bool(payload.get("termination", False), "termination"),
    )
