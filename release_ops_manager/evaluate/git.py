"""Addon exposing git engine lookups to template expressions."""

from typing import Any

import structlog

from release_ops_manager.git.abc import GitEngineBase
from release_ops_manager.git.models import PullRequest
from release_ops_manager.utils.constants import HEAD_REF

from .addons import Addon, FuncMap

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def headed(values: list[str]) -> list[str]:
    """Prepend HEAD, treating the unreleased tip as the newest tag."""
    return [HEAD_REF, *values]


def list_prs(nodes: list[Any]) -> list[PullRequest]:
    """Collect pull requests attached to a ticket tree, unique by number and sorted by number."""
    found: dict[int, PullRequest] = {}
    stack = list(nodes)
    while stack:
        node = stack.pop()
        for pr in node.prs:
            found.setdefault(pr.number, pr)
        stack.extend(node.children)
    return [found[number] for number in sorted(found)]


class GitAddon(Addon):
    """Addon evaluating git-related functions in templates."""

    def __init__(self, engine: GitEngineBase) -> None:
        """Initialize the addon with the git engine to query."""
        self.engine = engine

    def __str__(self) -> str:
        return "git"

    async def funcs(self) -> FuncMap:
        return {
            "lastCommit": self.last_commit,
            "previousTag": self.previous_tag,
            "tags": self.tags,
            "headed": headed,
            "listPRs": list_prs,
        }

    async def last_commit(self, branch: str) -> str:
        """Return the SHA of the last commit of `branch`."""
        return await self.engine.get_last_commit_of_branch(branch)

    async def tags(self) -> list[str]:
        """Return tag names, oldest first."""
        tags = await self.engine.list_tags()
        return [tag.name for tag in reversed(tags)]

    async def previous_tag(self, commit_alias: str, tag_names: list[str]) -> str:
        """Return the tag preceding `commit_alias`, considering only `tag_names`.

        When the alias is one of the tags (by name or commit SHA), the next
        older tag is returned. Otherwise the newest tag from which the alias is
        reachable with at least one commit wins. HEAD is returned when nothing
        older exists.
        """
        allowed = set(tag_names)
        tags = [tag for tag in await self.engine.list_tags() if tag.name in allowed]

        for idx, tag in enumerate(tags):
            if commit_alias in (tag.name, tag.commit.sha):
                return tags[idx + 1].name if idx + 1 < len(tags) else HEAD_REF

        for tag in tags:
            comparison = await self.engine.compare(tag.name, commit_alias)
            if comparison.commits:
                logger.debug("Found closest tag", commit_alias=commit_alias, tag=tag.name)
                return tag.name

        return HEAD_REF
