"""Projection between controller state and panel controls."""

import logging
from typing import Any, Optional

from pydantic import BaseModel

from wordclock_panel.core.color import decode_hex, encode_hex
from wordclock_panel.core.controls import PanelView
from wordclock_panel.core.errors import PanelValidationError
from wordclock_panel.models.state import (
    Brightness,
    DeviceState,
    Language,
    PanelRevision,
    PartialFragment,
    Timeout,
)

logger = logging.getLogger(__name__)

# Controls that must have a selection before a submit, per panel revision.
REQUIRED_CONTROLS: dict[PanelRevision, tuple[str, ...]] = {
    PanelRevision.LEGACY: ("color", "language", "brightness"),
    PanelRevision.CURRENT: (),
}

PROMPTS = {
    "color": "Please select a color",
    "language": "Please select a language",
    "brightness": "Please select a brightness",
    "ssid": "Please enter the network name",
    "password": "Please enter the network password",
    "ntp": "Please enable NTP to set the network credentials",
}


class ControlAssignments(BaseModel):
    """Values to show in each control for a given DeviceState."""

    color: Optional[str] = None
    language: Optional[str] = None
    brightness: Optional[str] = None
    timeout: Optional[str] = None
    ntp: bool = False
    ssid: str = ""
    password: str = ""
    termination: bool = False
    status: str = ""


class StateRenderer:
    """Renders a DeviceState onto a PanelView and reads user edits back."""

    def __init__(self, revision: PanelRevision = PanelRevision.CURRENT):
        self.revision = revision

    @property
    def touched_only(self) -> bool:
        return self.revision is PanelRevision.CURRENT

    def apply(self, state: DeviceState) -> ControlAssignments:
        """Project a state onto control values. Has no side effects.

        The password control is always blank since the controller never
        reports it.
        """
        return ControlAssignments(
            color=decode_hex(state.color),
            language=state.language.value,
            brightness=state.brightness.value,
            timeout=state.timeout.value if state.timeout else None,
            ntp=state.ntp_enabled,
            ssid=state.ssid,
            password="",
            termination=state.termination_requested,
            status=state.status,
        )

    def render(self, state: DeviceState, view: PanelView) -> ControlAssignments:
        """Apply a state and load the result into the view."""
        assignments = self.apply(state)
        load(view, assignments)
        logger.debug(f"Rendered state onto panel: {assignments.model_dump()}")
        return assignments

    def collect(self, view: PanelView, touched_only: bool = True) -> PartialFragment:
        """Read the controls back into a sparse fragment.

        Only controls with a meaningful selection are read. With
        ``touched_only`` a control must also have been edited by the user.
        Checkboxes are read only when edited, whatever ``touched_only`` says.
        Network credentials are read only while NTP is checked and both
        fields are filled in.

        Args:
            view: Panel controls
            touched_only: Skip controls the user did not interact with

        Returns:
            Fragment holding exactly the collected fields
        """

        def wanted(control: Any) -> bool:
            return control.touched or not touched_only

        fields: dict[str, Any] = {}

        if view.color.has_selection and wanted(view.color):
            fields["color"] = encode_hex(view.color.value)
        if view.language.has_selection and wanted(view.language):
            fields["language"] = Language(view.language.selected)
        if view.brightness.has_selection and wanted(view.brightness):
            fields["brightness"] = Brightness(view.brightness.selected)
        if view.timeout.has_selection and wanted(view.timeout):
            fields["timeout"] = Timeout(view.timeout.selected)
        # a checkbox has no unselected state, so only an edit makes it meaningful
        if view.ntp.touched:
            fields["ntp"] = view.ntp.checked

        credentials_complete = view.ssid.has_selection and view.password.has_selection
        if view.ntp.checked and credentials_complete:
            if wanted(view.ssid) or wanted(view.password):
                fields["ssid"] = view.ssid.value
                fields["password"] = view.password.value

        if view.termination.touched:
            fields["termination"] = view.termination.checked

        return PartialFragment(**fields)

    def validate(self, view: PanelView) -> None:
        """Refuse submissions the current revision considers incomplete.

        Raises:
            PanelValidationError: Naming the control the user must complete
        """
        for name in REQUIRED_CONTROLS[self.revision]:
            if not view.inputs[name].has_selection:
                raise PanelValidationError(name, PROMPTS[name])

        credentials_touched = view.ssid.touched or view.password.touched
        if credentials_touched and not view.ntp.checked:
            raise PanelValidationError("ntp", PROMPTS["ntp"])
        if credentials_touched:
            for control in (view.ssid, view.password):
                if not control.has_selection:
                    raise PanelValidationError(control.name, PROMPTS[control.name])

    def build_fragment(self, view: PanelView) -> PartialFragment:
        """Validate the view and collect it according to the revision."""
        self.validate(view)
        return self.collect(view, touched_only=self.touched_only)


def load(view: PanelView, assignments: ControlAssignments) -> None:
    """Write control assignments into the view without marking anything touched."""
    view.color.load(assignments.color)
    view.language.load(assignments.language)
    view.brightness.load(assignments.brightness)
    view.timeout.load(assignments.timeout)
    view.ntp.load(assignments.ntp)
    view.ssid.load(assignments.ssid)
    view.password.load(assignments.password)
    view.termination.load(assignments.termination)
    view.status.load(assignments.status)
