from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


def _str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    return str(value)


def _dict(payload: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = payload.get(key)
    return value if isinstance(value, dict) else None


@dataclass(frozen=True)
class GitHubBranch:
    display_name: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GitHubBranch:
        return cls(display_name=_str(payload, "displayName"))


@dataclass(frozen=True)
class GitHubRepo:
    owner: str
    repo: str
    default_branch: GitHubBranch | None = None
    branches: list[GitHubBranch] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GitHubRepo:
        default_branch = _dict(payload, "defaultBranch")
        branches = payload.get("branches") or []
        return cls(
            owner=_str(payload, "owner"),
            repo=_str(payload, "repo"),
            default_branch=GitHubBranch.from_payload(default_branch) if default_branch else None,
            branches=[GitHubBranch.from_payload(b) for b in branches if isinstance(b, dict)],
        )


@dataclass(frozen=True)
class Source:
    name: str
    id: str
    github_repo: GitHubRepo

    @property
    def title(self) -> str:
        return f"{self.github_repo.owner}/{self.github_repo.repo}"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Source:
        return cls(
            name=_str(payload, "name"),
            id=_str(payload, "id"),
            github_repo=GitHubRepo.from_payload(_dict(payload, "githubRepo") or {}),
        )


@dataclass(frozen=True)
class Session:
    name: str
    id: str
    title: str
    state: str
    url: str
    prompt: str
    source: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def display_title(self) -> str:
        return self.title or self.prompt or "Untitled Session"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Session:
        source_context = _dict(payload, "sourceContext") or {}
        source = source_context.get("source")
        return cls(
            name=_str(payload, "name"),
            id=_str(payload, "id"),
            title=_str(payload, "title"),
            state=_str(payload, "state"),
            url=_str(payload, "url"),
            prompt=_str(payload, "prompt"),
            source=str(source) if source is not None else None,
            raw=payload,
        )


# Activity variants. The wire format encodes these as mutually exclusive optional
# fields; exactly one is expected to be present.


@dataclass(frozen=True)
class UserMessaged:
    user_message: str


@dataclass(frozen=True)
class AgentMessaged:
    agent_message: str


@dataclass(frozen=True)
class PlanGenerated:
    steps: list[str]


@dataclass(frozen=True)
class ProgressUpdated:
    title: str
    description: str


@dataclass(frozen=True)
class SessionCompleted:
    pass


@dataclass(frozen=True)
class SessionFailed:
    reason: str


@dataclass(frozen=True)
class UnknownActivity:
    pass


ActivityVariant = Union[
    UserMessaged,
    AgentMessaged,
    PlanGenerated,
    ProgressUpdated,
    SessionCompleted,
    SessionFailed,
    UnknownActivity,
]


def _parse_variant(payload: dict[str, Any]) -> ActivityVariant:
    user = _dict(payload, "userMessaged")
    if user is not None:
        return UserMessaged(user_message=_str(user, "userMessage"))
    agent = _dict(payload, "agentMessaged")
    if agent is not None:
        return AgentMessaged(agent_message=_str(agent, "agentMessage"))
    plan_generated = _dict(payload, "planGenerated")
    if plan_generated is not None:
        plan = _dict(plan_generated, "plan") or {}
        steps = plan.get("steps") or []
        return PlanGenerated(
            steps=[_str(step, "title") for step in steps if isinstance(step, dict)]
        )
    progress = _dict(payload, "progressUpdated")
    if progress is not None:
        return ProgressUpdated(
            title=_str(progress, "title"), description=_str(progress, "description")
        )
    if _dict(payload, "sessionCompleted") is not None:
        return SessionCompleted()
    failed = _dict(payload, "sessionFailed")
    if failed is not None:
        return SessionFailed(reason=_str(failed, "reason"))
    return UnknownActivity()


@dataclass(frozen=True)
class Activity:
    name: str
    id: str
    description: str
    create_time: str
    originator: str
    variant: ActivityVariant = field(default_factory=UnknownActivity)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Activity:
        return cls(
            name=_str(payload, "name"),
            id=_str(payload, "id"),
            description=_str(payload, "description"),
            create_time=_str(payload, "createTime"),
            originator=_str(payload, "originator"),
            variant=_parse_variant(payload),
        )


@dataclass(frozen=True)
class ActivityDetails:
    label: str
    markdown: str
    copy_text: str
