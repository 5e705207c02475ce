"""Unit tests for the changelog service."""

from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from release_ops_manager.changelog.service import ChangelogService
from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.evaluate.git import GitAddon
from release_ops_manager.git.abc import GitEngineBase
from release_ops_manager.git.exceptions import EmptyRefError, EngineError
from release_ops_manager.git.models import Commit, CommitsComparison, PullRequest, Tag
from release_ops_manager.notify.base import Destination
from release_ops_manager.release_notes.builder import NotesBuilder
from release_ops_manager.release_notes.config import NotesConfig
from release_ops_manager.utils.constants import DEFAULT_FROM_EXPRESSION, DEFAULT_TO_EXPRESSION

TEMPLATE = (
    "{{ from_ref }}..{{ to_ref }}\n"
    "{% for c in categories %}{{ c.title }}: {{ c.prs | map(attribute='number') | join(',') }}"
    "{{ c.commits | map(attribute='sha') | join(',') }}\n{% endfor %}"
)


@pytest.fixture
def engine(make_commit: Callable[..., Commit], make_pr: Callable[..., PullRequest]) -> MagicMock:
    """Provide an engine with two semver tags, a merge commit and a direct push between them."""
    engine = MagicMock(spec=GitEngineBase)
    engine.list_tags = AsyncMock(
        return_value=[Tag(name="v1.1.0", commit=Commit(sha="t2")), Tag(name="nightly", commit=Commit(sha="n")), Tag(name="v1.0.0", commit=Commit(sha="t1"))]
    )
    engine.compare = AsyncMock(
        return_value=CommitsComparison(commits=[make_commit("m1", "Merge pull request #4", parents=2), make_commit("c1", "fix: direct")], total_commits=2)
    )
    engine.list_prs_of_commit = AsyncMock(return_value=[make_pr(4, labels=["feature"])])
    return engine


@pytest.fixture
def notifier() -> MagicMock:
    """Provide a mocked destination."""
    notifier = MagicMock(spec=Destination)
    notifier.send = AsyncMock()
    return notifier


def make_service(engine: MagicMock, notifier: MagicMock, commits_only: bool = False) -> ChangelogService:
    """Build a service with feature and fix categories."""
    config = NotesConfig.model_validate(
        {
            "categories": [{"title": "Features", "labels": ["feature"]}, {"title": "Fixes", "commit_message": "^fix"}],
            "template": TEMPLATE,
        }
    )
    return ChangelogService(engine, Evaluator(GitAddon(engine)), NotesBuilder(config), notifier, commits_only=commits_only)


@pytest.mark.asyncio
async def test_changelog_between_latest_tags(engine: MagicMock, notifier: MagicMock) -> None:
    """Test the whole flow with the default ref expressions."""
    text = await make_service(engine, notifier).changelog(DEFAULT_FROM_EXPRESSION, DEFAULT_TO_EXPRESSION)

    assert text == "v1.0.0..v1.1.0\nFeatures: 4\nFixes: c1\n"
    engine.compare.assert_awaited_once_with("v1.0.0", "v1.1.0")
    engine.list_prs_of_commit.assert_awaited_once_with("m1")
    notifier.send.assert_awaited_once_with(text, tag_name="v1.1.0")


@pytest.mark.asyncio
async def test_changelog_commits_only(engine: MagicMock, notifier: MagicMock) -> None:
    """Test that no pull requests are fetched in commits-only mode."""
    text = await make_service(engine, notifier, commits_only=True).changelog("v1.0.0", "HEAD")

    assert text == "v1.0.0..HEAD\nFixes: c1\n"
    engine.list_prs_of_commit.assert_not_called()
    notifier.send.assert_awaited_once_with(text, tag_name="HEAD")


@pytest.mark.asyncio
async def test_changelog_empty_ref(engine: MagicMock, notifier: MagicMock) -> None:
    """Test that an empty ref stops the flow before comparing."""
    with pytest.raises(EmptyRefError):
        await make_service(engine, notifier).changelog("v1.0.0", "{{ '' }}")

    engine.compare.assert_not_called()
    notifier.send.assert_not_called()


@pytest.mark.asyncio
async def test_changelog_engine_failure_skips_delivery(engine: MagicMock, notifier: MagicMock) -> None:
    """Test that a failing comparison is raised and nothing is sent."""
    engine.compare = AsyncMock(side_effect=EngineError("compare failed"))

    with pytest.raises(EngineError):
        await make_service(engine, notifier).changelog("v1.0.0", "v1.1.0")

    notifier.send.assert_not_called()
