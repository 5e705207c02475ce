"""Unit tests for merge point detection and pull request aggregation."""

import asyncio
import re
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from release_ops_manager.changelog.pull_requests import closed_prs_between, is_merge_point, merge_pull_requests
from release_ops_manager.git.abc import GitEngineBase
from release_ops_manager.git.exceptions import EngineError
from release_ops_manager.git.models import Commit, PullRequest
from release_ops_manager.utils.constants import DEFAULT_SQUASH_COMMIT_PATTERN

SQUASH_RX = re.compile(DEFAULT_SQUASH_COMMIT_PATTERN)


@pytest.mark.parametrize(
    "message,parents,expected",
    [
        pytest.param("Merge pull request #1", 2, True, id="two_parents"),
        pytest.param("octopus merge", 3, True, id="three_parents"),
        pytest.param("squash: add feature", 1, True, id="squash_message"),
        pytest.param("fix typo", 1, False, id="regular_commit"),
        pytest.param("fix typo", 0, False, id="root_commit"),
    ],
)
def test_is_merge_point(make_commit: Callable[..., Commit], message: str, parents: int, expected: bool) -> None:
    """Test merge point detection by parent count and squash message."""
    assert is_merge_point(make_commit("abc", message, parents), SQUASH_RX) is expected


def test_merge_pull_requests_unions_shas(make_pr: Callable[..., PullRequest]) -> None:
    """Test that a pull request seen through two SHAs is kept once with both SHAs."""
    first = make_pr(1, received_by_shas=["s1"])
    again = make_pr(1, received_by_shas=["s2"])
    other = make_pr(2, received_by_shas=["s2"])

    merged = merge_pull_requests([[first], [again, other], [make_pr(1, received_by_shas=["s1"])]])

    assert [pr.number for pr in merged] == [1, 2]
    assert merged[0].received_by_shas == ["s1", "s2"]


@pytest.mark.asyncio
async def test_closed_prs_between(make_commit: Callable[..., Commit], make_pr: Callable[..., PullRequest]) -> None:
    """Test fetching, filtering and deduplicating pull requests of merge points."""
    commits = [
        make_commit("m1", "Merge pull request #1", parents=2),
        make_commit("plain", "regular work"),
        make_commit("sq", "squash: feature three"),
    ]
    pr1 = make_pr(1)
    open_pr = make_pr(2, closed_at=None)
    pr3 = make_pr(3)
    by_sha = {"m1": [pr1, open_pr], "sq": [pr3, pr1]}
    engine = MagicMock(spec=GitEngineBase)
    engine.list_prs_of_commit = AsyncMock(side_effect=lambda sha: by_sha[sha])

    prs = await closed_prs_between(engine, commits, SQUASH_RX, max_concurrency=10)

    assert [pr.number for pr in prs] == [1, 3]
    assert prs[0].received_by_shas == ["m1", "sq"]
    assert prs[1].received_by_shas == ["sq"]
    assert pr1.received_by_shas == []
    assert sorted(call.args[0] for call in engine.list_prs_of_commit.await_args_list) == ["m1", "sq"]


@pytest.mark.asyncio
async def test_closed_prs_between_without_merge_points(make_commit: Callable[..., Commit]) -> None:
    """Test that no lookups happen when no commit is a merge point."""
    engine = MagicMock(spec=GitEngineBase)
    engine.list_prs_of_commit = AsyncMock()

    assert await closed_prs_between(engine, [make_commit("a")], SQUASH_RX, max_concurrency=2) == []
    engine.list_prs_of_commit.assert_not_called()


@pytest.mark.asyncio
async def test_closed_prs_between_fails_fast(make_commit: Callable[..., Commit]) -> None:
    """Test that the first lookup failure cancels pending lookups and is raised."""
    error = EngineError("rate limited")
    slow_cancelled = asyncio.Event()

    async def list_prs_of_commit(sha: str) -> list[PullRequest]:
        if sha == "bad":
            raise error
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            slow_cancelled.set()
            raise
        return []

    engine = MagicMock(spec=GitEngineBase)
    engine.list_prs_of_commit = list_prs_of_commit
    commits = [make_commit("slow", parents=2), make_commit("bad", parents=2)]

    with pytest.raises(EngineError) as exc_info:
        await asyncio.wait_for(closed_prs_between(engine, commits, SQUASH_RX, max_concurrency=5), timeout=5)

    assert exc_info.value is error
    assert slow_cancelled.is_set()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "max_concurrency,expected_peak",
    [
        pytest.param(0, 1, id="zero_clamps_to_one"),
        pytest.param(-3, 1, id="negative_clamps_to_one"),
        pytest.param(2, 2, id="bounded"),
    ],
)
async def test_closed_prs_between_concurrency_cap(make_commit: Callable[..., Commit], max_concurrency: int, expected_peak: int) -> None:
    """Test that concurrent lookups never exceed the configured cap."""
    running = 0
    peak = 0

    async def list_prs_of_commit(sha: str) -> list[PullRequest]:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return []

    engine = MagicMock(spec=GitEngineBase)
    engine.list_prs_of_commit = list_prs_of_commit
    commits = [make_commit(f"m{i}", parents=2) for i in range(6)]

    await closed_prs_between(engine, commits, SQUASH_RX, max_concurrency=max_concurrency)

    assert peak == expected_peak
