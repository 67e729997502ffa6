from __future__ import annotations

import typer
from rich import print

from . import __version__
from .api import JulesClient
from .commands.common import client_from_config, configure_logging
from .commands.config_cmds import config_show_cmd, configure_cmd
from .commands.sessions_cmds import (
    activities_cmd,
    create_session_cmd,
    send_message_cmd,
    session_open_cmd,
    session_show_cmd,
    sessions_list_cmd,
)
from .commands.sources_cmds import sources_list_cmd, sources_show_cmd
from .config import load_config

app = typer.Typer(help="julesctl: browse and drive Jules coding sessions")
sources_app = typer.Typer(help="Repositories connected to Jules")
sessions_app = typer.Typer(help="Jules sessions")
app.add_typer(sources_app, name="sources")
app.add_typer(sessions_app, name="sessions")


def _client() -> JulesClient:
    return client_from_config()


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(load_config().log_level, verbose=verbose)


@sources_app.command("list")
def sources_list() -> None:
    """List sources; the auto-selected one is starred."""
    sources_list_cmd(client_factory=_client)


@sources_app.command("show")
def sources_show(
    name: str = typer.Argument(..., help="Source name, e.g. sources/github/owner/repo"),
) -> None:
    """Show a source with its branches."""
    sources_show_cmd(client_factory=_client, name=name)


@sessions_app.command("list")
def sessions_list(
    source: str = typer.Option(None, help="Source name (defaults to the first source)"),
) -> None:
    """List sessions for a source."""
    sessions_list_cmd(client_factory=_client, source=source)


@sessions_app.command("show")
def sessions_show(session_id: str) -> None:
    """Print a session as JSON."""
    session_show_cmd(client_factory=_client, session_id=session_id)


@sessions_app.command("open")
def sessions_open(session_id: str) -> None:
    """Open the session page in a browser."""
    session_open_cmd(client_factory=_client, launch=typer.launch, session_id=session_id)


@app.command()
def activities(
    session_id: str,
    copy_text: bool = typer.Option(False, "--copy-text", help="Print plain text only"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Keep polling for new activity"),
    interval_s: float = typer.Option(10.0, "--interval", help="Seconds between refreshes"),
    polls: int = typer.Option(0, help="Stop after N refreshes when following (0 = no limit)"),
) -> None:
    """Show a session's activity feed, newest first."""
    activities_cmd(
        client_factory=_client,
        session_id=session_id,
        copy_text=copy_text,
        follow=follow,
        interval_s=interval_s,
        polls=polls,
    )


@app.command()
def create(
    prompt: str = typer.Option(..., "--prompt", "-p", help="What Jules should work on"),
    source: str = typer.Option(None, help="Source name (defaults to the first source)"),
    branch: str = typer.Option(None, help="Starting branch (defaults to the repo default)"),
) -> None:
    """Start a new session on a source branch."""
    create_session_cmd(client_factory=_client, prompt=prompt, source=source, branch=branch)


@app.command()
def send(
    session_id: str,
    message: str = typer.Option(..., "--message", "-m", help="Message text"),
) -> None:
    """Send a message to a session and show the refreshed feed."""
    send_message_cmd(client_factory=_client, session_id=session_id, message=message)


@app.command()
def configure(
    api_key: str = typer.Option(None, help="Jules API key"),
    base_url: str = typer.Option(None, help="Override the API base URL"),
    timeout_s: int = typer.Option(None, help="HTTP timeout in seconds"),
) -> None:
    """Store the API key and connection settings in the config file."""
    configure_cmd(api_key=api_key, base_url=base_url, timeout_s=timeout_s)


@app.command("show-config")
def show_config() -> None:
    """Print the effective configuration with the API key masked."""
    config_show_cmd()


def main() -> None:
    app()


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)
