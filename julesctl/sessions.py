from __future__ import annotations

from collections.abc import Iterable

from .api import JulesClient
from .sources import SourceRegistry
from .types import Session


def filter_sessions(sessions: Iterable[Session], selected_source: str | None) -> list[Session]:
    """Sessions belonging to ``selected_source``, in their original order.

    An empty selection matches nothing rather than everything.
    """

    if not selected_source:
        return []
    return [session for session in sessions if session.source == selected_source]


class SessionListService:
    def __init__(self, client: JulesClient) -> None:
        self.client = client

    def list_sessions(self) -> list[Session]:
        payload = self.client.get("/sessions")
        items = payload.get("sessions") or []
        return [Session.from_payload(item) for item in items if isinstance(item, dict)]

    def get_session(self, session_id: str) -> Session:
        return Session.from_payload(self.client.get(f"/sessions/{session_id}"))

    def filtered_sessions(self, registry: SourceRegistry) -> list[Session]:
        return filter_sessions(self.list_sessions(), registry.selected_source)
