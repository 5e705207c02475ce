"""Detects merge points and aggregates the pull requests closed through them."""

import asyncio
import re

import structlog

from release_ops_manager.git.abc import GitEngineBase
from release_ops_manager.git.models import Commit, PullRequest

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def is_merge_point(commit: Commit, squash_commit_rx: re.Pattern[str]) -> bool:
    """Return whether the commit closes a pull request.

    Merge commits have more than one parent; squash merges are recognized by
    their message instead.
    """
    if len(commit.parent_shas) > 1:
        return True
    return squash_commit_rx.search(commit.message) is not None


def merge_pull_requests(batches: list[list[PullRequest]]) -> list[PullRequest]:
    """Deduplicate pull requests by number, unioning the SHAs they were received by.

    The first sighting of a number decides its position in the result.
    """
    merged: dict[int, PullRequest] = {}
    for batch in batches:
        for pr in batch:
            existing = merged.get(pr.number)
            if existing is None:
                merged[pr.number] = pr
                continue
            for sha in pr.received_by_shas:
                if sha not in existing.received_by_shas:
                    existing.received_by_shas.append(sha)
    return list(merged.values())


async def closed_prs_between(
    engine: GitEngineBase,
    commits: list[Commit],
    squash_commit_rx: re.Pattern[str],
    max_concurrency: int,
) -> list[PullRequest]:
    """Fetch the closed pull requests attached to every merge point among `commits`.

    Lookups run concurrently, at most `max_concurrency` at a time (at least
    one). The first failing lookup cancels the others and its exception is
    raised, so a partial result is never returned.
    """
    merge_points = [commit for commit in commits if is_merge_point(commit, squash_commit_rx)]
    if not merge_points:
        logger.info("No merge points found", commits=len(commits))
        return []

    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    batches: list[list[PullRequest]] = [[] for _ in merge_points]

    async def fetch(idx: int, sha: str) -> None:
        async with semaphore:
            prs = await engine.list_prs_of_commit(sha)
        batches[idx] = [pr.model_copy(update={"received_by_shas": [sha]}, deep=True) for pr in prs if pr.closed_at is not None]
        logger.debug("Listed pull requests of merge point", sha=sha, found=len(prs), closed=len(batches[idx]))

    try:
        async with asyncio.TaskGroup() as tg:
            for idx, commit in enumerate(merge_points):
                tg.create_task(fetch(idx, commit.sha))
    except ExceptionGroup as group:
        logger.error("Failed to list pull requests of merge points", error=str(group.exceptions[0]), failures=len(group.exceptions))
        raise group.exceptions[0] from None

    prs = merge_pull_requests(batches)
    logger.info("Collected closed pull requests", merge_points=len(merge_points), pull_requests=len(prs))
    return prs
