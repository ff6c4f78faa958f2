"""Panel view-model: the interactive controls the operator edits.

Every input control carries the value it currently shows and a ``touched``
flag. Values written by the renderer via ``load`` leave the control untouched;
values written on behalf of the user mark it touched.
"""

from typing import Any, Optional

from wordclock_panel.core.color import format_color, parse_color
from wordclock_panel.models.state import Brightness, Language, Timeout


class Control:
    """Base class for panel controls."""

    def __init__(self, name: str):
        self.name = name
        self.touched = False

    def load(self, value: Any) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', touched={self.touched})"


class RadioGroup(Control):
    """A group of radio buttons; at most one option is checked."""

    def __init__(self, name: str, options: list[str]):
        super().__init__(name)
        self.options = list(options)
        self.selected: Optional[str] = None

    def _check_option(self, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in self.options:
            raise ValueError(f"'{value}' is not an option of {self.name}: {self.options}")
        return value

    def load(self, value: Optional[str]) -> None:
        self.selected = self._check_option(value)
        self.touched = False

    def select(self, value: str) -> None:
        """Check the radio button with the given value."""
        self.selected = self._check_option(value)
        self.touched = True

    @property
    def has_selection(self) -> bool:
        return self.selected is not None


class Checkbox(Control):
    def __init__(self, name: str):
        super().__init__(name)
        self.checked = False

    def load(self, value: bool) -> None:
        self.checked = bool(value)
        self.touched = False

    def check(self, value: bool = True) -> None:
        self.checked = bool(value)
        self.touched = True


class ColorField(Control):
    """Color picker holding a 24-bit "#RRGGBB" value, or nothing picked."""

    def __init__(self, name: str):
        super().__init__(name)
        self.value: Optional[str] = None

    def load(self, value: Optional[str]) -> None:
        self.value = format_color(parse_color(value)) if value else None
        self.touched = False

    def pick(self, color: str) -> None:
        self.value = format_color(parse_color(color))
        self.touched = True

    @property
    def has_selection(self) -> bool:
        return self.value is not None


class TextField(Control):
    def __init__(self, name: str, secret: bool = False):
        super().__init__(name)
        self.secret = secret
        self.value = ""

    def load(self, value: Optional[str]) -> None:
        self.value = value or ""
        self.touched = False

    def enter(self, value: str) -> None:
        self.value = value
        self.touched = True

    @property
    def has_selection(self) -> bool:
        return self.value != ""


class StatusLine(Control):
    """Display-only free text."""

    def __init__(self, name: str = "status"):
        super().__init__(name)
        self.text = ""

    def load(self, value: Optional[str]) -> None:
        self.text = value or ""


class PanelView:
    """All panel controls, constructed once and passed by reference."""

    def __init__(self):
        self.color = ColorField("color")
        self.language = RadioGroup("language", [language.value for language in Language])
        self.brightness = RadioGroup("brightness", [b.value for b in Brightness])
        self.timeout = RadioGroup("timeout", [timeout.value for timeout in Timeout])
        self.ntp = Checkbox("ntp")
        self.ssid = TextField("ssid")
        self.password = TextField("password", secret=True)
        self.termination = Checkbox("termination")
        self.status = StatusLine()

    @property
    def inputs(self) -> dict[str, Control]:
        """Editable controls keyed by name."""
        return {
            control.name: control
            for control in (
                self.color,
                self.language,
                self.brightness,
                self.timeout,
                self.ntp,
                self.ssid,
                self.password,
                self.termination,
            )
        }

    @property
    def touched(self) -> list[str]:
        return [name for name, control in self.inputs.items() if control.touched]

    def reset_touched(self) -> None:
        for control in self.inputs.values():
            control.touched = False

    def edit(self, name: str, value: Any) -> None:
        """Apply a user edit to the named control.

        Args:
            name: Control name
            value: New value (hex/CSS color, option value, bool or text)

        Raises:
            KeyError: If there is no such control
            ValueError: If the value is not valid for the control
        """
        control = self.inputs.get(name)
        if control is None:
            raise KeyError(f"Unknown control: {name}")

        if isinstance(control, ColorField):
            control.pick(str(value))
        elif isinstance(control, RadioGroup):
            control.select(str(value))
        elif isinstance(control, Checkbox):
            if not isinstance(value, bool):
                raise ValueError(f"{name} expects true or false, got {value!r}")
            control.check(value)
        elif isinstance(control, TextField):
            control.enter("" if value is None else str(value))

    def snapshot(self) -> dict[str, Any]:
        """Currently rendered values, for display."""
        return {
            "color": self.color.value,
            "language": self.language.selected,
            "brightness": self.brightness.selected,
            "timeout": self.timeout.selected,
            "ntp": self.ntp.checked,
            "ssid": self.ssid.value,
            "password": self.password.value,
            "termination": self.termination.checked,
            "status": self.status.text,
        }
