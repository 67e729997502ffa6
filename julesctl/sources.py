from __future__ import annotations

import logging

from .api import JulesClient
from .types import Source

logger = logging.getLogger(__name__)


def branch_choices(source: Source) -> tuple[list[str], str | None]:
    """Branch display names for a source, plus its default branch if known."""

    repo = source.github_repo
    branches = [branch.display_name for branch in repo.branches if branch.display_name]
    default = repo.default_branch.display_name if repo.default_branch else None
    return branches, default or None


class SourceRegistry:
    def __init__(self, client: JulesClient, *, selected_source: str = "") -> None:
        self.client = client
        self.selected_source = selected_source
        self.sources: list[Source] = []

    def list_sources(self) -> list[Source]:
        # Only the first page is read; nextPageToken is ignored.
        payload = self.client.get("/sources")
        items = payload.get("sources") or []
        self.sources = [Source.from_payload(item) for item in items if isinstance(item, dict)]
        if self.sources and not self.selected_source:
            self.selected_source = self.sources[0].name
            logger.debug("auto-selected source %s", self.selected_source)
        return self.sources

    def get_source(self, name: str) -> Source:
        return Source.from_payload(self.client.get(f"/{name}"))

    def select(self, name: str) -> None:
        self.selected_source = name

    def source_titles(self) -> list[tuple[str, str]]:
        return [(source.name, source.title) for source in self.sources]
