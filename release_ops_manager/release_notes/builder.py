"""Categorizes pull requests and commits and renders them into release notes."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import jinja2
import structlog

from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.git.models import Commit, PullRequest

from .config import CategoryConfig, NotesConfig

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class BuildRequest:
    """Input snapshot for a single release notes build."""

    from_ref: str
    to_ref: str
    closed_prs: list[PullRequest] = field(default_factory=list)
    commits: list[Commit] = field(default_factory=list)


SORT_KEYS: dict[str, Callable[[PullRequest], Any]] = {
    "number": lambda pr: pr.number,
    "author": lambda pr: pr.author.username,
    "title": lambda pr: pr.title,
    "closed": lambda pr: pr.closed_at.timestamp() if pr.closed_at else float("-inf"),
}


def sort_prs(prs: list[PullRequest], sort_field: str = "") -> list[PullRequest]:
    """Sort pull requests by `sort_field` (`[+-]?(number|author|title|closed)`).

    Entries with an equal key always stay in ascending number order, whatever
    the direction of the primary field.
    """
    name = sort_field.lstrip("+-") or "number"
    descending = sort_field.startswith("-")
    by_number = sorted(prs, key=SORT_KEYS["number"])
    return sorted(by_number, key=SORT_KEYS[name], reverse=descending)


def _pr_matches(category: CategoryConfig, pr: PullRequest) -> bool:
    if category.labels and set(category.labels) & set(pr.labels):
        return True
    return category.branch is not None and category.branch.search(pr.source_branch) is not None


def _commit_matches(category: CategoryConfig, commit: Commit) -> bool:
    return category.commit_message is not None and category.commit_message.search(commit.message) is not None


class NotesBuilder:
    """Builds release notes from a configuration and a template evaluator.

    The configured template is compiled on the first build and reused for
    every later one.
    """

    def __init__(
        self,
        config: NotesConfig,
        evaluator: Evaluator | None = None,
        extras: dict[str, str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the builder; `extras` take precedence over the ones in the config."""
        self.config = config
        self.evaluator = evaluator or Evaluator()
        self.extras = {**config.extras, **(extras or {})}
        self.now = now or (lambda: datetime.now(timezone.utc))
        self._template: jinja2.Template | None = None
        self._lock = asyncio.Lock()

    async def template(self) -> jinja2.Template:
        """Return the compiled release notes template, compiling it on first use."""
        if self._template is None:
            async with self._lock:
                if self._template is None:
                    self._template = await self.evaluator.compile(self.config.template)
                    logger.debug("Compiled release notes template")
        return self._template

    def _is_ignored(self, pr: PullRequest) -> bool:
        if set(pr.labels) & set(self.config.ignore_labels):
            return True
        return self.config.ignore_branch is not None and self.config.ignore_branch.search(pr.source_branch) is not None

    def categorize(self, request: BuildRequest) -> list[dict[str, Any]]:
        """Split the request into non-empty categories, in config order, with Unused last."""
        used_prs = [self._is_ignored(pr) for pr in request.closed_prs]
        categories: list[dict[str, Any]] = []
        claimed: list[tuple[dict[str, Any], CategoryConfig]] = []

        for category in self.config.categories:
            prs: list[PullRequest] = []
            for idx, pr in enumerate(request.closed_prs):
                if used_prs[idx] or not _pr_matches(category, pr):
                    continue
                used_prs[idx] = True
                prs.append(pr)
            entry = {"title": category.title, "prs": sort_prs(prs, self.config.sort_field), "commits": []}
            claimed.append((entry, category))

        attributed = {sha for idx, pr in enumerate(request.closed_prs) if used_prs[idx] for sha in pr.received_by_shas}
        used_commits = [commit.sha in attributed for commit in request.commits]

        for entry, category in claimed:
            for idx, commit in enumerate(request.commits):
                if used_commits[idx] or not _commit_matches(category, commit):
                    continue
                used_commits[idx] = True
                entry["commits"].append(commit)
            if entry["prs"] or entry["commits"]:
                categories.append(entry)

        if self.config.unused_title:
            reachable = {sha for pr in request.closed_prs for sha in pr.received_by_shas}
            unused_prs = [pr for idx, pr in enumerate(request.closed_prs) if not used_prs[idx]]
            unused_commits = [c for idx, c in enumerate(request.commits) if not used_commits[idx] and c.sha not in reachable]
            if unused_prs or unused_commits:
                categories.append(
                    {
                        "title": self.config.unused_title,
                        "prs": sort_prs(unused_prs, self.config.sort_field),
                        "commits": unused_commits,
                    }
                )

        return categories

    async def build(self, request: BuildRequest) -> str:
        """Render release notes for the pull requests and commits in `request`."""
        template = await self.template()
        categories = self.categorize(request)
        data = {
            "from_ref": request.from_ref,
            "to_ref": request.to_ref,
            "date": self.now(),
            "extras": self.extras,
            "total": sum(len(category["prs"]) for category in categories),
            "total_commits": len(request.commits),
            "categories": categories,
        }
        logger.info(
            "Building release notes",
            from_ref=request.from_ref,
            to_ref=request.to_ref,
            categories=[category["title"] for category in categories],
            total=data["total"],
        )
        return await self.evaluator.render(template, data)
