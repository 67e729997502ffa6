from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import typer
from conftest import session_payload, source_payload
from typer.testing import CliRunner

from julesctl import __version__
from julesctl.cli import app

runner = CliRunner()

SOURCES = {
    "sources": [
        source_payload("sources/github/a/b", "a", "b"),
        source_payload("sources/github/c/d", "c", "d"),
    ]
}
SESSIONS = {
    "sessions": [
        session_payload("s1", "sources/github/a/b", state="IN_PROGRESS", title="Add tests"),
        session_payload("s2", "sources/github/c/d", state="FAILED", title="Other repo"),
        session_payload("s3", "sources/github/a/b", state="COMPLETED"),
    ]
}
ACTIVITIES = {
    "activities": [
        {
            "id": "a1",
            "createTime": "2025-01-01T10:00:00Z",
            "userMessaged": {"userMessage": "first message"},
        },
        {
            "id": "a2",
            "createTime": "2025-01-01T11:00:00Z",
            "agentMessaged": {"agentMessage": "agent reply"},
        },
    ]
}


@pytest.fixture
def api(fake_api, monkeypatch):
    monkeypatch.setattr("julesctl.cli_app._client", lambda: fake_api.client())
    return fake_api


def test_root_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("sources", "sessions", "activities", "create", "send", "configure"):
        assert name in result.stdout


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_missing_api_key_exits_with_message() -> None:
    result = runner.invoke(app, ["sources", "list"])
    assert result.exit_code == 1
    assert "missing API key" in result.stdout


def test_sources_list_marks_auto_selected(api) -> None:
    api.add("GET", "/sources", json_body=SOURCES)

    result = runner.invoke(app, ["sources", "list"])

    assert result.exit_code == 0
    assert "* sources/github/a/b  a/b" in result.stdout
    assert "  sources/github/c/d  c/d" in result.stdout


def test_sources_list_failure_notifies(api) -> None:
    api.add("GET", "/sources", status=401, text="bad key")

    result = runner.invoke(app, ["sources", "list"])

    assert result.exit_code == 1
    assert "Failed to fetch sources" in result.stdout


def test_sources_show_lists_branches(api) -> None:
    api.add(
        "GET",
        "/sources/github/a/b",
        json_body=source_payload(
            "sources/github/a/b",
            "a",
            "b",
            defaultBranch={"displayName": "main"},
            branches=[{"displayName": "main"}, {"displayName": "dev"}],
        ),
    )

    result = runner.invoke(app, ["sources", "show", "sources/github/a/b"])

    assert result.exit_code == 0
    assert "default branch: main" in result.stdout
    assert "* main" in result.stdout
    assert "- dev" in result.stdout


def test_sessions_list_filters_by_first_source(api) -> None:
    api.add("GET", "/sources", json_body=SOURCES)
    api.add("GET", "/sessions", json_body=SESSIONS)

    result = runner.invoke(app, ["sessions", "list"])

    assert result.exit_code == 0
    assert "Add tests" in result.stdout
    assert "IN_PROGRESS" in result.stdout
    assert "prompt for s3" in result.stdout
    assert "Other repo" not in result.stdout
    assert result.stdout.index("Add tests") < result.stdout.index("prompt for s3")


def test_sessions_list_with_explicit_source_skips_source_fetch(api) -> None:
    api.add("GET", "/sessions", json_body=SESSIONS)

    result = runner.invoke(app, ["sessions", "list", "--source", "sources/github/c/d"])

    assert result.exit_code == 0
    assert "Other repo" in result.stdout
    assert "Add tests" not in result.stdout
    assert [r.url.path for r in api.requests] == ["/v1alpha/sessions"]


def test_sessions_list_failure_notifies(api) -> None:
    api.add("GET", "/sources", json_body=SOURCES)
    api.add("GET", "/sessions", status=500, text="backend down")

    result = runner.invoke(app, ["sessions", "list"])

    assert result.exit_code == 1
    assert "Failed to fetch sessions" in result.stdout


def test_sessions_list_without_sources(api) -> None:
    api.add("GET", "/sources", json_body={"sources": []})

    result = runner.invoke(app, ["sessions", "list"])

    assert result.exit_code == 1
    assert "No sources available" in result.stdout


def test_sessions_show_prints_json(api) -> None:
    api.add("GET", "/sessions/s1", json_body=session_payload("s1", "sources/github/a/b"))

    result = runner.invoke(app, ["sessions", "show", "s1"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["id"] == "s1"


def test_sessions_open_launches_url(api, monkeypatch) -> None:
    api.add("GET", "/sessions/s1", json_body=session_payload("s1", "sources/github/a/b"))
    launched: list[str] = []
    monkeypatch.setattr(typer, "launch", lambda url: launched.append(url) or 0)

    result = runner.invoke(app, ["sessions", "open", "s1"])

    assert result.exit_code == 0
    assert launched == ["https://jules.google.com/session/s1"]


def test_activities_newest_first_copy_text(api) -> None:
    api.add("GET", "/sessions/s1/activities", json_body=ACTIVITIES)

    result = runner.invoke(app, ["activities", "s1", "--copy-text"])

    assert result.exit_code == 0
    assert result.stdout.index("agent reply") < result.stdout.index("first message")


def test_activities_rendered_with_labels(api) -> None:
    api.add("GET", "/sessions/s1/activities", json_body=ACTIVITIES)

    result = runner.invoke(app, ["activities", "s1"])

    assert result.exit_code == 0
    assert "Jules" in result.stdout
    assert "You" in result.stdout
    assert "agent reply" in result.stdout


def test_activities_failure_notifies(api) -> None:
    api.add("GET", "/sessions/s1/activities", status=404, text="missing")

    result = runner.invoke(app, ["activities", "s1"])

    assert result.exit_code == 1
    assert "Failed to fetch activities" in result.stdout


def test_activities_follow_prints_new_items(api) -> None:
    completed = {"id": "a3", "createTime": "2025-01-01T12:00:00Z", "sessionCompleted": {}}
    responses = [ACTIVITIES, {"activities": [*ACTIVITIES["activities"], completed]}]

    def handler(request):
        return httpx.Response(200, json=responses[min(len(api.requests), 2) - 1])

    api.add_handler("GET", "/sessions/s1/activities", handler)

    result = runner.invoke(
        app, ["activities", "s1", "--copy-text", "--follow", "--interval", "0", "--polls", "1"]
    )

    assert result.exit_code == 0
    assert result.stdout.count("agent reply") == 1
    assert "Session Completed" in result.stdout
    assert len(api.requests) == 2


def test_create_session_uses_default_branch_and_shows_list(api) -> None:
    api.add("GET", "/sources", json_body=SOURCES)
    api.add(
        "GET",
        "/sources/github/a/b",
        json_body=source_payload(
            "sources/github/a/b", "a", "b", defaultBranch={"displayName": "trunk"}
        ),
    )
    api.add("POST", "/sessions", json_body=session_payload("s9", "sources/github/a/b"))
    api.add("GET", "/sessions", json_body=SESSIONS)

    result = runner.invoke(app, ["create", "--prompt", "write docs"])

    assert result.exit_code == 0
    assert "Session created successfully" in result.stdout
    assert "Session sessions/s9 created" in result.stdout
    assert "Sessions for sources/github/a/b" in result.stdout
    body = api.json_bodies()[0]
    assert body["prompt"] == "write docs"
    assert body["sourceContext"]["source"] == "sources/github/a/b"
    assert body["sourceContext"]["githubRepoContext"]["startingBranch"] == "trunk"


def test_create_session_failure_does_not_navigate_back(api) -> None:
    api.add("POST", "/sessions", status=400, text="prompt is required")
    api.add("GET", "/sessions", json_body=SESSIONS)

    result = runner.invoke(
        app, ["create", "--prompt", "", "--source", "sources/github/a/b", "--branch", "main"]
    )

    assert result.exit_code == 1
    assert "Failed to create session" in result.stdout
    assert "Sessions for" not in result.stdout
    assert [r.method for r in api.requests] == ["POST"]


def test_send_message_shows_last_activity_and_refreshes(api) -> None:
    api.add("GET", "/sessions/s1/activities", json_body=ACTIVITIES)
    api.add("POST", "/sessions/s1:sendMessage", json_body={})

    result = runner.invoke(app, ["send", "s1", "-m", "ship it"])

    assert result.exit_code == 0
    assert "Last Activity: Jules: agent reply" in result.stdout
    assert "Message sent" in result.stdout
    assert api.json_bodies() == [{"prompt": "ship it"}]
    assert [r.method for r in api.requests] == ["GET", "POST", "GET"]


def test_send_message_failure(api) -> None:
    api.add("GET", "/sessions/s1/activities", json_body={"activities": []})
    api.add("POST", "/sessions/s1:sendMessage", status=403, text="forbidden")

    result = runner.invoke(app, ["send", "s1", "-m", "hello"])

    assert result.exit_code == 1
    assert "Failed to send message" in result.stdout
    assert "Message sent" not in result.stdout


def test_configure_writes_and_show_config_masks(tmp_path: Path) -> None:
    result = runner.invoke(app, ["configure", "--api-key", "abcd1234", "--timeout-s", "5"])
    assert result.exit_code == 0

    data = json.loads((tmp_path / "config.json").read_text())
    assert data == {"api_key": "abcd1234", "timeout_s": 5}

    shown = runner.invoke(app, ["show-config"])
    assert shown.exit_code == 0
    assert "api_key: ****1234 (file)" in shown.stdout
    assert "abcd1234" not in shown.stdout


def test_activities_follow_tracks_items_without_ids(api) -> None:
    first = {"createTime": "2025-01-01T10:00:00Z", "userMessaged": {"userMessage": "hello"}}
    second = {"createTime": "2025-01-01T11:00:00Z", "agentMessaged": {"agentMessage": "on it"}}
    responses = [{"activities": [first]}, {"activities": [first, second]}]

    def handler(request):
        return httpx.Response(200, json=responses[min(len(api.requests), 2) - 1])

    api.add_handler("GET", "/sessions/s1/activities", handler)

    result = runner.invoke(
        app, ["activities", "s1", "--copy-text", "--follow", "--interval", "0", "--polls", "1"]
    )

    assert result.exit_code == 0
    assert result.stdout.count("hello") == 1
    assert result.stdout.count("on it") == 1


def test_configure_rejects_corrupt_config_file(tmp_path: Path) -> None:
    (tmp_path / "config.json").write_text("{broken")

    result = runner.invoke(app, ["configure", "--api-key", "abcd1234"])

    assert result.exit_code == 1
    assert "invalid config json" in result.stdout
    assert (tmp_path / "config.json").read_text() == "{broken"
