"""Assembles a changelog for a commit range and delivers it to destinations."""

import re

import structlog

from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.git.abc import GitEngineBase
from release_ops_manager.git.models import PullRequest
from release_ops_manager.notify.base import Destination
from release_ops_manager.release_notes.builder import BuildRequest, NotesBuilder
from release_ops_manager.utils.constants import DEFAULT_MAX_CONCURRENT_PR_REQUESTS, DEFAULT_SQUASH_COMMIT_PATTERN

from .pull_requests import closed_prs_between
from .refs import resolve_refs

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ChangelogService:
    """Ties ref resolution, pull request aggregation, rendering and delivery together."""

    def __init__(
        self,
        engine: GitEngineBase,
        evaluator: Evaluator,
        notes_builder: NotesBuilder,
        notifier: Destination,
        squash_commit_rx: re.Pattern[str] | None = None,
        max_concurrent_pr_requests: int = DEFAULT_MAX_CONCURRENT_PR_REQUESTS,
        commits_only: bool = False,
    ) -> None:
        """Initialize the service with its collaborators.

        `evaluator` resolves the commit range; the notes builder carries its
        own evaluator for rendering.
        """
        self.engine = engine
        self.evaluator = evaluator
        self.notes_builder = notes_builder
        self.notifier = notifier
        self.squash_commit_rx = squash_commit_rx or re.compile(DEFAULT_SQUASH_COMMIT_PATTERN)
        self.max_concurrent_pr_requests = max_concurrent_pr_requests
        self.commits_only = commits_only

    async def changelog(self, from_expr: str, to_expr: str) -> str:
        """Build the changelog between two ref expressions, send it and return its text."""
        from_ref, to_ref = await resolve_refs(self.evaluator, from_expr, to_expr)

        comparison = await self.engine.compare(from_ref, to_ref)
        logger.info("Compared commit range", from_ref=from_ref, to_ref=to_ref, commits=len(comparison.commits))

        prs: list[PullRequest] = []
        if not self.commits_only:
            prs = await closed_prs_between(self.engine, comparison.commits, self.squash_commit_rx, self.max_concurrent_pr_requests)

        text = await self.notes_builder.build(BuildRequest(from_ref=from_ref, to_ref=to_ref, closed_prs=prs, commits=comparison.commits))
        await self.notifier.send(text, tag_name=to_ref)
        logger.info("Delivered changelog", destinations=str(self.notifier), pull_requests=len(prs))
        return text
