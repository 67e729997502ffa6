from __future__ import annotations

import json
import logging
import threading

import typer
from rich import print
from rich.markdown import Markdown
from rich.markup import escape

from julesctl.activities import (
    ActivityFeedService,
    activity_key,
    get_activity_details,
    last_activity_summary,
)
from julesctl.api import JulesClient
from julesctl.errors import JulesError
from julesctl.notify import ANIMATED, show_failure, show_toast
from julesctl.session_commands import SessionCommandService
from julesctl.sessions import SessionListService
from julesctl.sources import SourceRegistry, branch_choices
from julesctl.types import Activity

from .common import client_or_exit, format_session_line

logger = logging.getLogger(__name__)


def _resolve_source(registry: SourceRegistry, source: str | None) -> str:
    if source:
        registry.select(source)
        return source
    try:
        registry.list_sources()
    except JulesError as exc:
        show_failure("Failed to fetch sources", exc)
        raise typer.Exit(code=1) from exc
    if not registry.selected_source:
        show_failure("No sources available", "connect a repository to Jules first")
        raise typer.Exit(code=1)
    return registry.selected_source


def _print_sessions(client: JulesClient, registry: SourceRegistry) -> bool:
    try:
        sessions = SessionListService(client).filtered_sessions(registry)
    except JulesError as exc:
        show_failure("Failed to fetch sessions", exc)
        return False
    print(f"[bold]Sessions for {escape(registry.selected_source)}[/bold]")
    if not sessions:
        print("No sessions found")
        return True
    for session in sessions:
        print(format_session_line(session))
    return True


def _print_activity(activity: Activity, *, copy_text: bool) -> None:
    details = get_activity_details(activity)
    if copy_text:
        print(escape(details.copy_text))
        print()
        return
    stamp = f" [dim]{escape(activity.create_time)}[/dim]" if activity.create_time else ""
    print(f"[bold]{escape(details.label)}[/bold]{stamp}")
    if details.markdown:
        print(Markdown(details.markdown))
    print()


def _print_feed(
    feed: ActivityFeedService, session_id: str, *, copy_text: bool
) -> list[Activity] | None:
    try:
        activities = feed.list_activities(session_id)
    except JulesError as exc:
        show_failure("Failed to fetch activities", exc)
        return None
    if not activities:
        print("No activities yet")
    for activity in activities:
        _print_activity(activity, copy_text=copy_text)
    return activities


def sessions_list_cmd(*, client_factory, source: str | None) -> None:
    """List sessions for a source (defaults to the first source)."""

    client = client_or_exit(client_factory)
    try:
        registry = SourceRegistry(client)
        _resolve_source(registry, source)
        if not _print_sessions(client, registry):
            raise typer.Exit(code=1)
    finally:
        client.close()


def session_show_cmd(*, client_factory, session_id: str) -> None:
    """Print a session as JSON."""

    client = client_or_exit(client_factory)
    try:
        try:
            session = SessionListService(client).get_session(session_id)
        except JulesError as exc:
            show_failure("Failed to fetch session", exc)
            raise typer.Exit(code=1) from exc
        typer.echo(json.dumps(session.raw, indent=2, ensure_ascii=False))
    finally:
        client.close()


def session_open_cmd(*, client_factory, launch, session_id: str) -> None:
    """Open the session page in a browser."""

    client = client_or_exit(client_factory)
    try:
        try:
            session = SessionListService(client).get_session(session_id)
        except JulesError as exc:
            show_failure("Failed to fetch session", exc)
            raise typer.Exit(code=1) from exc
    finally:
        client.close()
    if not session.url:
        print(f"[yellow]Session {escape(session_id)} has no URL[/yellow]")
        raise typer.Exit(code=1)
    print(f"Opening {escape(session.url)}")
    launch(session.url)


def activities_cmd(
    *,
    client_factory,
    session_id: str,
    copy_text: bool,
    follow: bool,
    interval_s: float,
    polls: int,
    stop: threading.Event | None = None,
) -> None:
    """Show a session's activity feed, newest first."""

    client = client_or_exit(client_factory)
    try:
        feed = ActivityFeedService(client)
        activities = _print_feed(feed, session_id, copy_text=copy_text)
        if activities is None:
            raise typer.Exit(code=1)
        if not follow:
            return
        print(f"[dim]Watching for new activity every {interval_s:g}s (Ctrl-C to stop)[/dim]")
        updates = feed.poll_activities(
            session_id,
            interval_s=interval_s,
            stop=stop,
            seen=[activity_key(activity) for activity in activities],
            max_polls=polls or None,
            on_error=lambda exc: show_failure("Failed to fetch activities", exc),
        )
        try:
            for activity in updates:
                _print_activity(activity, copy_text=copy_text)
        except KeyboardInterrupt:
            return
    finally:
        client.close()


def create_session_cmd(
    *,
    client_factory,
    prompt: str,
    source: str | None,
    branch: str | None,
) -> None:
    """Start a new session on a source branch."""

    client = client_or_exit(client_factory)
    try:
        registry = SourceRegistry(client)
        source_name = _resolve_source(registry, source)
        if not branch:
            try:
                detail = registry.get_source(source_name)
            except JulesError as exc:
                show_failure("Failed to fetch source details", exc)
                raise typer.Exit(code=1) from exc
            _, branch = branch_choices(detail)
        if not branch:
            show_failure("Failed to create session", "no branch given and source has no default")
            raise typer.Exit(code=1)

        toast = show_toast(ANIMATED, "Creating session...")
        try:
            session = SessionCommandService(client).create_session(source_name, branch, prompt)
        except (JulesError, ValueError) as exc:
            toast.fail("Failed to create session", str(exc))
            raise typer.Exit(code=1) from exc
        toast.succeed("Session created successfully", f"Session {session.name} created")
        _print_sessions(client, registry)
    finally:
        client.close()


def send_message_cmd(*, client_factory, session_id: str, message: str) -> None:
    """Send a message to a session and show the refreshed feed."""

    client = client_or_exit(client_factory)
    try:
        feed = ActivityFeedService(client)
        try:
            latest = feed.list_activities(session_id)
        except JulesError as exc:
            logger.warning(
                "last activity lookup failed", extra={"session_id": session_id}, exc_info=exc
            )
            latest = []
        summary = last_activity_summary(latest[0] if latest else None)
        if summary:
            print(f"[dim]Last Activity:[/dim] {escape(summary)}")

        toast = show_toast(ANIMATED, "Sending message...")

        def refresh() -> None:
            toast.succeed("Message sent")
            _print_feed(feed, session_id, copy_text=False)

        try:
            SessionCommandService(client).send_message(session_id, message, on_sent=refresh)
        except (JulesError, ValueError) as exc:
            toast.fail("Failed to send message", str(exc))
            raise typer.Exit(code=1) from exc
    finally:
        client.close()
