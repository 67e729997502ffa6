from __future__ import annotations

import datetime as dt
import logging
import re
import threading
from collections.abc import Callable, Iterable, Iterator

from .api import JulesClient
from .errors import JulesError
from .types import (
    Activity,
    ActivityDetails,
    AgentMessaged,
    PlanGenerated,
    ProgressUpdated,
    SessionCompleted,
    SessionFailed,
    UserMessaged,
)

logger = logging.getLogger(__name__)

STATE_COLORS = {
    "succeeded": "green",
    "completed": "green",
    "failed": "red",
    "error": "red",
    "in_progress": "blue",
    "running": "blue",
    "active": "blue",
    "awaiting_user_feedback": "orange",
    "pending": "yellow",
}
DEFAULT_STATE_COLOR = "secondary"

# Palette name -> rich style.
RICH_STYLES = {
    "green": "green",
    "red": "red",
    "blue": "blue",
    "orange": "dark_orange",
    "yellow": "yellow",
    DEFAULT_STATE_COLOR: "bright_black",
}

_FRACTION_RE = re.compile(r"\.(\d+)")
_MIN_TIME = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def get_state_color(state: str | None) -> str:
    if not state:
        return DEFAULT_STATE_COLOR
    return STATE_COLORS.get(str(state).lower(), DEFAULT_STATE_COLOR)


def state_style(state: str | None) -> str:
    return RICH_STYLES[get_state_color(state)]


def parse_timestamp(value: str | None) -> dt.datetime | None:
    """Parse an RFC 3339 timestamp such as ``2025-10-01T12:00:00.123456789Z``."""

    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    # datetime only keeps microseconds.
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _sort_key(activity: Activity) -> tuple[bool, dt.datetime]:
    parsed = parse_timestamp(activity.create_time)
    if parsed is None:
        return False, _MIN_TIME
    return True, parsed


def sort_activities(activities: Iterable[Activity]) -> list[Activity]:
    """Newest first. Activities without a usable createTime go last."""

    return sorted(activities, key=_sort_key, reverse=True)


def get_activity_details(activity: Activity) -> ActivityDetails:
    variant = activity.variant
    if isinstance(variant, UserMessaged):
        message = variant.user_message
        return ActivityDetails("You", f"**You:**\n\n{message}", message)
    if isinstance(variant, AgentMessaged):
        message = variant.agent_message
        return ActivityDetails("Jules", f"**Jules:**\n\n{message}", message)
    if isinstance(variant, PlanGenerated):
        plan = "\n".join(f"{index}. {title}" for index, title in enumerate(variant.steps, 1))
        return ActivityDetails("Plan Generated", f"**Plan Generated:**\n\n{plan}", plan)
    if isinstance(variant, ProgressUpdated):
        return ActivityDetails(
            "Progress Update",
            f"**Progress Update:**\n\n**{variant.title}**\n{variant.description}",
            f"{variant.title}\n{variant.description}",
        )
    if isinstance(variant, SessionCompleted):
        return ActivityDetails("Session Completed", "**Session Completed**", "Session Completed")
    if isinstance(variant, SessionFailed):
        reason = variant.reason
        return ActivityDetails("Session Failed", f"**Session Failed:**\n\n{reason}", reason)
    return ActivityDetails("Unknown Activity", "", "")


def activity_key(activity: Activity) -> str:
    """Identity used to tell polled activities apart; payloads may omit ``name`` and ``id``."""

    if activity.name or activity.id:
        return activity.name or activity.id
    return f"{activity.create_time}|{activity.originator}|{activity.variant!r}"


def last_activity_summary(activity: Activity | None) -> str:
    """One-line summary shown above the message prompt."""

    if activity is None:
        return ""
    variant = activity.variant
    if isinstance(variant, UserMessaged):
        return f"You: {variant.user_message}"
    if isinstance(variant, AgentMessaged):
        return f"Jules: {variant.agent_message}"
    if isinstance(variant, PlanGenerated):
        return "Plan Generated"
    if isinstance(variant, ProgressUpdated):
        return f"Progress Update: {variant.title}"
    if isinstance(variant, SessionCompleted):
        return "Session Completed"
    if isinstance(variant, SessionFailed):
        return f"Session Failed: {variant.reason}"
    return ""


class ActivityFeedService:
    def __init__(self, client: JulesClient) -> None:
        self.client = client

    def fetch_activities(self, session_id: str) -> list[Activity]:
        payload = self.client.get(f"/sessions/{session_id}/activities")
        items = payload.get("activities") or []
        return [Activity.from_payload(item) for item in items if isinstance(item, dict)]

    def list_activities(self, session_id: str) -> list[Activity]:
        return sort_activities(self.fetch_activities(session_id))

    def poll_activities(
        self,
        session_id: str,
        *,
        interval_s: float,
        stop: threading.Event | None = None,
        seen: Iterable[str] = (),
        max_polls: int | None = None,
        on_error: Callable[[JulesError], None] | None = None,
    ) -> Iterator[Activity]:
        """Refetch the feed every ``interval_s`` and yield unseen activities oldest-first.

        A failed fetch is reported through ``on_error`` and polling carries on.
        """

        stop = stop or threading.Event()
        seen_keys = set(seen)
        polls = 0
        while not stop.is_set():
            polls += 1
            try:
                activities = self.list_activities(session_id)
            except JulesError as exc:
                logger.warning(
                    "activity poll failed",
                    extra={"session_id": session_id},
                    exc_info=exc,
                )
                if on_error is not None:
                    on_error(exc)
                activities = []
            for activity in reversed(activities):
                key = activity_key(activity)
                if key in seen_keys:
                    continue
                seen_keys.add(key)
                yield activity
            if max_polls is not None and polls >= max_polls:
                return
            stop.wait(interval_s)
