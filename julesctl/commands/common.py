from __future__ import annotations

import logging
from typing import Any

import typer
from rich import print
from rich.markup import escape

from julesctl.activities import state_style
from julesctl.api import JulesClient
from julesctl.config import JulesConfig, load_config, read_config_file, write_config_file
from julesctl.errors import ConfigError
from julesctl.types import Session, Source


def client_from_config(config: JulesConfig | None = None) -> JulesClient:
    return JulesClient.from_config(config or load_config())


def client_or_exit(client_factory) -> JulesClient:
    try:
        return client_factory()
    except ConfigError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ConfigError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        path = write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    print(f"Wrote {path}")


def configure_logging(level: str, *, verbose: bool = False) -> None:
    if logging.getLogger().hasHandlers():
        return
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)
    if not isinstance(resolved, int):
        resolved = logging.WARNING
    logging.basicConfig(level=resolved, format="%(levelname)s %(name)s: %(message)s")


def format_source_line(source: Source, *, selected: bool) -> str:
    marker = "*" if selected else " "
    return f"{marker} {escape(source.name)}  [bold]{escape(source.title)}[/bold]"


def format_session_line(session: Session) -> str:
    style = state_style(session.state)
    state = escape(session.state or "unknown")
    return (
        f"- {escape(compact_text(session.display_title, 80))}  [dim]{escape(session.id)}[/dim]  "
        f"[{style}]{state}[/{style}]"
    )


def compact_text(text: str, limit: int) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    joined = " ".join(lines)
    if len(joined) > limit:
        return f"{joined[: limit - 3]}..."
    return joined
