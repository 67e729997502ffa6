from __future__ import annotations

import typer
from rich import print
from rich.markup import escape

from julesctl.errors import JulesError
from julesctl.notify import show_failure
from julesctl.sources import SourceRegistry, branch_choices

from .common import client_or_exit, format_source_line


def sources_list_cmd(*, client_factory) -> None:
    """List sources; the auto-selected one is starred."""

    client = client_or_exit(client_factory)
    try:
        registry = SourceRegistry(client)
        try:
            sources = registry.list_sources()
        except JulesError as exc:
            show_failure("Failed to fetch sources", exc)
            raise typer.Exit(code=1) from exc
        if not sources:
            print("No sources found")
            return
        for source in sources:
            print(format_source_line(source, selected=source.name == registry.selected_source))
    finally:
        client.close()


def sources_show_cmd(*, client_factory, name: str) -> None:
    """Show a source with its branches."""

    client = client_or_exit(client_factory)
    try:
        registry = SourceRegistry(client)
        try:
            source = registry.get_source(name)
        except JulesError as exc:
            show_failure("Failed to fetch source details", exc)
            raise typer.Exit(code=1) from exc
        branches, default = branch_choices(source)
        print(f"[bold]{escape(source.title)}[/bold] ({escape(source.name)})")
        print(f"default branch: {escape(default or '-')}")
        if not branches:
            print("No branches listed")
            return
        for branch in branches:
            marker = "*" if branch == default else "-"
            print(f"{marker} {escape(branch)}")
    finally:
        client.close()
