"""CLI for wordclock_panel."""

import asyncio
import json
import logging
from typing import Optional

import typer

from wordclock_panel import __version__
from wordclock_panel.core.client import SyncClient
from wordclock_panel.core.color import decode_hex, encode_hex
from wordclock_panel.core.device import ClockDevice
from wordclock_panel.core.errors import PanelValidationError, StatusDecodeError
from wordclock_panel.core.events import StatusFeed
from wordclock_panel.core.renderer import StateRenderer
from wordclock_panel.models.config import DeviceConfig, Settings
from wordclock_panel.models.state import Brightness, Language, PanelRevision, Timeout

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="wordclock",
    help="Word clock control panel",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s: %(message)s",
    )


def make_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    revision: Optional[PanelRevision] = None,
) -> SyncClient:
    """Build a SyncClient from settings, with command line overrides."""
    settings = Settings()
    config = DeviceConfig(
        host=host or settings.host,
        port=port or settings.port,
        timeout=settings.timeout,
    )
    renderer = StateRenderer(revision or settings.revision)
    return SyncClient(ClockDevice(config), renderer)


def fail(error: Exception) -> None:
    """Report a failed operation and exit."""
    if isinstance(error, PanelValidationError):
        typer.echo(error.prompt, err=True)
    elif isinstance(error, StatusDecodeError):
        typer.echo(f"Controller sent an invalid status: {error}", err=True)
    else:
        typer.echo(f"Request failed: {error}", err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Word clock control panel."""
    setup_logging(verbose, Settings().log_level)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"wordclock-panel v{__version__}")


@app.command()
def status(
    host: Optional[str] = typer.Option(None, "--host", "-H", help="Controller host"),
    port: Optional[int] = typer.Option(None, "--port", help="Controller HTTP port"),
    as_json: bool = typer.Option(False, "--json", help="Print the state as JSON"),
) -> None:
    """Show the controller's current configuration."""
    client = make_client(host, port)
    result = asyncio.run(client.refresh())
    if not result.ok:
        fail(result.error)

    state = result.value
    if as_json:
        typer.echo(json.dumps(state.model_dump(mode="json"), indent=2))
        return

    typer.echo(f"Controller: {client.device.base_url}")
    typer.echo(f"  Color: {state.color_hex} (0x{state.color:04X})")
    typer.echo(f"  Language: {state.language.value}")
    typer.echo(f"  Brightness: {state.brightness.value}")
    typer.echo(f"  Timeout: {state.timeout.value if state.timeout else 'not set'}")
    typer.echo(f"  NTP: {'on' if state.ntp_enabled else 'off'}")
    if state.ntp_enabled:
        typer.echo(f"  SSID: {state.ssid}")
    typer.echo(f"  Status: {state.status}")


@app.command("set")
def set_values(
    color: Optional[str] = typer.Option(None, "--color", help="Color as #RRGGBB"),
    language: Optional[Language] = typer.Option(None, "--language", help="Word layout"),
    brightness: Optional[Brightness] = typer.Option(None, "--brightness", help="Brightness"),
    timeout: Optional[Timeout] = typer.Option(None, "--timeout", help="Display auto-off"),
    ntp: Optional[bool] = typer.Option(None, "--ntp/--no-ntp", help="Enable time sync over WiFi"),
    ssid: Optional[str] = typer.Option(None, "--ssid", help="WiFi network name"),
    password: Optional[str] = typer.Option(None, "--password", help="WiFi password"),
    terminate: bool = typer.Option(False, "--terminate", help="Request termination"),
    revision: Optional[PanelRevision] = typer.Option(None, "--revision", help="Submission policy"),
    host: Optional[str] = typer.Option(None, "--host", "-H", help="Controller host"),
    port: Optional[int] = typer.Option(None, "--port", help="Controller HTTP port"),
) -> None:
    """Change settings on the controller. Options not given are left unchanged."""
    client = make_client(host, port, revision)

    edits = {
        "color": color,
        "language": language.value if language else None,
        "brightness": brightness.value if brightness else None,
        "timeout": timeout.value if timeout else None,
        "ntp": ntp,
        "ssid": ssid,
        "password": password,
        "termination": True if terminate else None,
    }

    async def run():
        fetched = await client.refresh()
        if not fetched.ok:
            return fetched
        for name, value in edits.items():
            if value is not None:
                client.view.edit(name, value)
        return await client.submit_view()

    try:
        result = asyncio.run(run())
    except ValueError as e:
        typer.echo(f"Invalid value: {e}", err=True)
        raise typer.Exit(1)

    if not result.ok:
        fail(result.error)

    changed = sorted(name for name, value in edits.items() if value is not None)
    typer.echo(f"Updated {', '.join(changed) if changed else 'clock'} on {client.device.base_url}")


@app.command()
def watch(
    host: Optional[str] = typer.Option(None, "--host", "-H", help="Controller host"),
    port: Optional[int] = typer.Option(None, "--port", help="Controller HTTP port"),
) -> None:
    """Print status lines pushed by the controller until interrupted."""
    client = make_client(host, port)
    feed = StatusFeed(client.device, typer.echo)

    try:
        feed.run()
    except KeyboardInterrupt:
        pass

    if feed.last_error:
        fail(feed.last_error)


@app.command()
def color(
    value: str = typer.Argument(..., help="#RRGGBB or rgb(r, g, b) to pack, decimal or 0x value to expand"),
) -> None:
    """Convert between picker colors and the controller's packed colors."""
    text = value.strip()
    try:
        if text.lower().startswith("0x"):
            packed = int(text, 16)
        elif text.isdecimal():
            packed = int(text)
        else:
            packed = encode_hex(text)
    except ValueError as e:
        typer.echo(f"Invalid color: {e}", err=True)
        raise typer.Exit(1)

    if not 0 <= packed <= 0xFFFF:
        typer.echo(f"Packed color out of range: {packed}", err=True)
        raise typer.Exit(1)

    typer.echo(f"{decode_hex(packed)} = {packed} (0x{packed:04X})")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-H", help="Controller host"),
    port: Optional[int] = typer.Option(None, "--port", help="Controller HTTP port"),
    web_port: Optional[int] = typer.Option(None, "--web-port", "-p", help="Web panel port"),
    poll: Optional[int] = typer.Option(None, "--poll", help="Poll status every N seconds (0 disables)"),
    events: bool = typer.Option(True, "--events/--no-events", help="Subscribe to pushed status lines"),
    revision: Optional[PanelRevision] = typer.Option(None, "--revision", help="Submission policy"),
) -> None:
    """Serve the web control panel."""
    import uvicorn

    from wordclock_panel.core.scheduler import StatusPoller
    from wordclock_panel.web.app import create_app

    settings = Settings()
    client = make_client(host, port, revision)
    web_port = web_port or settings.web_port
    poll_seconds = settings.poll_seconds if poll is None else poll

    async def run() -> None:
        result = await client.refresh()
        if not result.ok:
            typer.echo(f"Warning: initial fetch failed: {result.error}", err=True)

        if events:
            client.on_status_push(lambda line: logger.info(f"Status: {line}"))

        poller = None
        if poll_seconds:
            poller = StatusPoller(client, poll_seconds)
            poller.start()

        config = uvicorn.Config(
            create_app(client),
            host=settings.web_host,
            port=web_port,
            log_level="info",
        )
        server = uvicorn.Server(config)
        typer.echo(f"Panel for {client.device.base_url} at http://{settings.web_host}:{web_port}")

        try:
            await server.serve()
        finally:
            if poller:
                poller.stop()
            client.close()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass

    typer.echo("Panel stopped.")


if __name__ == "__main__":
    app()
