from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from julesctl.api import JulesClient

BASE_URL = "https://jules.test/v1alpha"


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("JULESCTL_CONFIG", str(tmp_path / "config.json"))
    for var in ("JULES_API_KEY", "JULESCTL_BASE_URL", "JULESCTL_TIMEOUT_S", "JULESCTL_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


class FakeJulesApi:
    """Routes (method, path) pairs to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        status: int = 200,
        text: str | None = None,
    ) -> None:
        if text is not None:
            self.routes[(method, path)] = lambda request: httpx.Response(status, text=text)
        else:
            self.routes[(method, path)] = lambda request: httpx.Response(status, json=json_body)

    def add_handler(self, method: str, path: str, handler) -> None:
        self.routes[(method, path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1alpha")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.method} {path}")
        return route(request)

    def client(self, api_key: str = "test-key") -> JulesClient:
        return JulesClient(api_key, base_url=BASE_URL, transport=httpx.MockTransport(self.handler))

    def json_bodies(self, method: str = "POST") -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.method == method]


@pytest.fixture
def fake_api() -> FakeJulesApi:
    return FakeJulesApi()


def source_payload(name: str, owner: str, repo: str, **extra: Any) -> dict[str, Any]:
    github_repo: dict[str, Any] = {"owner": owner, "repo": repo}
    github_repo.update(extra)
    return {"name": name, "id": name.rsplit("/", 1)[-1], "githubRepo": github_repo}


def session_payload(
    session_id: str, source: str | None, *, state: str = "COMPLETED", title: str = ""
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": f"sessions/{session_id}",
        "id": session_id,
        "title": title,
        "state": state,
        "url": f"https://jules.google.com/session/{session_id}",
        "prompt": f"prompt for {session_id}",
    }
    if source is not None:
        payload["sourceContext"] = {"source": source}
    return payload
