from __future__ import annotations

import logging
from collections.abc import Callable

from .api import JulesClient
from .types import Session

logger = logging.getLogger(__name__)


def build_create_session_body(source_id: str, branch: str, prompt: str) -> dict[str, object]:
    return {
        "prompt": prompt,
        "sourceContext": {
            "source": source_id,
            "githubRepoContext": {"startingBranch": branch},
        },
    }


def _require(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value


class SessionCommandService:
    def __init__(self, client: JulesClient) -> None:
        self.client = client

    def create_session(self, source_id: str, branch: str, prompt: str) -> Session:
        body = build_create_session_body(
            _require(source_id, "source"),
            _require(branch, "branch"),
            prompt,
        )
        payload = self.client.post("/sessions", body)
        session = Session.from_payload(payload)
        logger.info("session created", extra={"session_name": session.name})
        return session

    def send_message(
        self,
        session_id: str,
        prompt: str,
        *,
        on_sent: Callable[[], object] | None = None,
    ) -> None:
        """Post a message to a session, then run ``on_sent`` (usually a feed refresh)."""

        _require(session_id, "session id")
        body = {"prompt": prompt}
        self.client.post(f"/sessions/{session_id}:sendMessage", body)
        if on_sent is not None:
            on_sent()
