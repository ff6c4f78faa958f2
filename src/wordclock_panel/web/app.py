"""FastAPI web panel for the word clock."""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from wordclock_panel import __version__
from wordclock_panel.core.client import SyncClient
from wordclock_panel.core.errors import (
    PanelValidationError,
    StatusDecodeError,
    SubmitInProgressError,
)
from wordclock_panel.models.state import Brightness, Language, Timeout

logger = logging.getLogger(__name__)


class SubmitRequest(BaseModel):
    """Controls the operator changed in the browser."""

    controls: dict[str, Any]


def _raise_for_failure(error: Exception) -> None:
    if isinstance(error, PanelValidationError):
        raise HTTPException(
            status_code=422,
            detail={"control": error.control, "message": error.prompt},
        )
    if isinstance(error, SubmitInProgressError):
        raise HTTPException(status_code=409, detail=str(error))
    if isinstance(error, StatusDecodeError):
        raise HTTPException(
            status_code=502,
            detail={"field": error.field, "message": str(error)},
        )
    raise HTTPException(status_code=502, detail="request failed")


def create_app(client: SyncClient) -> FastAPI:
    """Create the FastAPI application.

    Args:
        client: SyncClient bound to the controller

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Word Clock Panel",
        description="Control panel for the word clock controller",
        version=__version__,
    )

    app.state.client = client

    @app.get("/api/state")
    async def get_state() -> dict[str, Any]:
        """Fetch the controller state and return the control assignments."""
        result = await client.refresh()
        if not result.ok:
            _raise_for_failure(result.error)
        return {
            "revision": client.revision.value,
            "controls": client.renderer.apply(result.value).model_dump(),
        }

    @app.post("/api/submit")
    async def submit(request: SubmitRequest) -> dict[str, Any]:
        """Apply the operator's edits to the panel and send them."""
        for name, value in request.controls.items():
            try:
                client.view.edit(name, value)
            except KeyError:
                raise HTTPException(status_code=400, detail=f"Unknown control: {name}")
            except ValueError as e:
                raise HTTPException(status_code=422, detail={"control": name, "message": str(e)})

        result = await client.submit_view()
        if not result.ok:
            _raise_for_failure(result.error)
        return {"success": True, "status_code": result.value.status_code}

    @app.get("/api/status-line")
    async def get_status_line() -> dict[str, str]:
        """Latest status text, from a fetch or a pushed event."""
        return {"status": client.view.status.text}

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        """Serve the panel page."""
        return get_index_html()

    return app


def _radio_group(name: str, options: list[str]) -> str:
    buttons = "".join(
        f'<label><input type="radio" name="{name}" value="{option}"> {option}</label> '
        for option in options
    )
    return f"<fieldset><legend>{name}</legend>{buttons}</fieldset>"


def get_index_html() -> str:
    """Build the panel page.

    The page keeps track of which controls the operator touched and posts
    only those.
    """
    radios = "".join([
        _radio_group("language", [language.value for language in Language]),
        _radio_group("brightness", [b.value for b in Brightness]),
        _radio_group("timeout", [timeout.value for timeout in Timeout]),
    ])
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Word Clock</title>
</head>
<body>
    <h1>Word Clock</h1>
    <p id="status"></p>
    <form id="panel">
        <fieldset><legend>color</legend><input type="color" name="color"></fieldset>
        {radios}
        <fieldset>
            <legend>network</legend>
            <label><input type="checkbox" name="ntp"> NTP</label>
            <input type="text" name="ssid" placeholder="SSID">
            <input type="password" name="password" placeholder="Password">
        </fieldset>
        <label><input type="checkbox" name="termination"> terminate</label>
        <button type="submit">Save</button>
        <button type="button" id="reload">Reload</button>
    </form>
    <p id="notice"></p>
<script>
const form = document.getElementById('panel');
const notice = document.getElementById('notice');
let touched = {{}};

function valueOf(input) {{
    if (input.type === 'checkbox') return input.checked;
    return input.value;
}}

form.addEventListener('input', (e) => {{ touched[e.target.name] = valueOf(e.target); }});
form.addEventListener('change', (e) => {{ touched[e.target.name] = valueOf(e.target); }});

async function load() {{
    const r = await fetch('/api/state');
    const body = await r.json();
    if (!r.ok) {{ notice.textContent = JSON.stringify(body.detail); return; }}
    const c = body.controls;
    form.color.value = (c.color || '#000000').toLowerCase();
    for (const name of ['language', 'brightness', 'timeout']) {{
        form.querySelectorAll(`input[name="${{name}}"]`).forEach((b) => {{ b.checked = b.value === c[name]; }});
    }}
    form.ntp.checked = c.ntp;
    form.ssid.value = c.ssid;
    form.password.value = '';
    form.termination.checked = c.termination;
    document.getElementById('status').textContent = c.status;
    touched = {{}};
}}

form.addEventListener('submit', async (e) => {{
    e.preventDefault();
    const r = await fetch('/api/submit', {{
        method: 'POST',
        headers: {{ 'Content-Type': 'application/json' }},
        body: JSON.stringify({{ controls: touched }}),
    }});
    const body = await r.json();
    if (r.ok) {{ notice.textContent = 'saved'; touched = {{}}; return; }}
    const d = body.detail;
    notice.textContent = (d && d.message) ? d.message : 'request failed';
}});

document.getElementById('reload').addEventListener('click', load);
setInterval(async () => {{
    const r = await fetch('/api/status-line');
    if (r.ok) document.getElementById('status').textContent = (await r.json()).status;
}}, 5000);
load();
</script>
</body>
</html>
"""
