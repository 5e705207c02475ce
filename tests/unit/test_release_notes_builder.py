"""Unit tests for release notes categorization, sorting and rendering."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

import jinja2
import pytest

from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.git.models import Commit, PullRequest
from release_ops_manager.release_notes.builder import BuildRequest, NotesBuilder, sort_prs
from release_ops_manager.release_notes.config import NotesConfig

SECTIONS_TEMPLATE = "{% for c in categories %}{{ c.title }}: {{ c.prs | map(attribute='number') | join(',') }}\n{% endfor %}"
COMMITS_TEMPLATE = "{% for c in categories %}{{ c.title }}: {{ c.commits | map(attribute='sha') | join(',') }}\n{% endfor %}"


def make_config(**kwargs: Any) -> NotesConfig:
    """Build a validated config from plain values."""
    return NotesConfig.model_validate(kwargs)


@pytest.mark.asyncio
async def test_build_end_to_end_categories(make_pr: Callable[..., PullRequest]) -> None:
    """Test categorization with branch and label categories, ignore labels, Unused and descending sort."""
    config = make_config(
        categories=[{"title": "Features", "branch": "^feature/"}, {"title": "Bugs", "labels": ["bug"]}],
        ignore_labels=["ignore"],
        sort_field="-number",
        unused_title="Unused",
        template=SECTIONS_TEMPLATE,
    )
    prs = [
        make_pr(1, labels=["bug"]),
        make_pr(2, source_branch="feature/login"),
        make_pr(3, source_branch="feature/logout"),
        make_pr(5),
        make_pr(7, labels=["ignore"], source_branch="feature/secret"),
    ]

    text = await NotesBuilder(config).build(BuildRequest(from_ref="v1", to_ref="v2", closed_prs=prs))

    assert text == "Features: 3,2\nBugs: 1\nUnused: 5\n"


@pytest.mark.asyncio
async def test_first_matching_category_wins(make_pr: Callable[..., PullRequest]) -> None:
    """Test that a pull request matching two categories lands in the first one only."""
    config = make_config(
        categories=[{"title": "Features", "branch": "^feature/"}, {"title": "Bugs", "labels": ["bug"]}],
        template=SECTIONS_TEMPLATE,
    )
    prs = [make_pr(4, labels=["bug"], source_branch="feature/fix"), make_pr(6, labels=["bug"])]

    text = await NotesBuilder(config).build(BuildRequest(from_ref="a", to_ref="b", closed_prs=prs))

    assert text == "Features: 4\nBugs: 6\n"


@pytest.mark.asyncio
async def test_ignore_branch_excludes_everywhere(make_pr: Callable[..., PullRequest]) -> None:
    """Test that pull requests from an ignored branch appear in no category, Unused included."""
    config = make_config(
        categories=[{"title": "Bugs", "labels": ["bug"]}],
        ignore_branch="^release/",
        unused_title="Other",
        template=SECTIONS_TEMPLATE,
    )
    prs = [make_pr(1, labels=["bug"], source_branch="release/1.0"), make_pr(2, source_branch="release/1.1"), make_pr(3)]

    text = await NotesBuilder(config).build(BuildRequest(from_ref="a", to_ref="b", closed_prs=prs))

    assert text == "Other: 3\n"


@pytest.mark.asyncio
async def test_commits_are_classified_after_pull_requests(make_pr: Callable[..., PullRequest], make_commit: Callable[..., Commit]) -> None:
    """Test commit attribution, skipping merge points of used pull requests and unreachable leftovers."""
    config = make_config(
        categories=[{"title": "Fixes", "labels": ["bug"], "commit_message": "^fix"}],
        ignore_labels=["ignore"],
        unused_title="Unused",
        template=COMMITS_TEMPLATE,
    )
    prs = [
        make_pr(1, labels=["bug"], received_by_shas=["m1"]),
        make_pr(2, labels=["ignore"], received_by_shas=["m2"]),
        make_pr(3, received_by_shas=["m3"]),
    ]
    commits = [
        make_commit("m1", "fix: merged through a claimed pull request", parents=2),
        make_commit("m2", "fix: merged through an ignored pull request", parents=2),
        make_commit("m3", "merged through an unclaimed pull request", parents=2),
        make_commit("c1", "fix: direct push"),
        make_commit("c2", "chore: direct push"),
        make_commit("c3", "fix: another direct push"),
    ]

    text = await NotesBuilder(config).build(BuildRequest(from_ref="a", to_ref="b", closed_prs=prs, commits=commits))

    assert text == "Fixes: c1,c3\nUnused: c2\n"


@pytest.mark.asyncio
async def test_empty_categories_are_omitted(make_pr: Callable[..., PullRequest]) -> None:
    """Test that categories without entries are not rendered and the default template reports no changes."""
    config = make_config(categories=[{"title": "Features", "labels": ["feature"]}])

    text = await NotesBuilder(config).build(BuildRequest(from_ref="a", to_ref="b", closed_prs=[make_pr(1)]))

    assert text == "- No changes\n"


@pytest.mark.asyncio
async def test_default_template_renders_sections(make_pr: Callable[..., PullRequest]) -> None:
    """Test the default template output for pull requests."""
    config = make_config(categories=[{"title": "Features", "labels": ["feature"]}])
    pr = make_pr(12, title="Add login", author="alice", labels=["feature"])

    text = await NotesBuilder(config).build(BuildRequest(from_ref="a", to_ref="b", closed_prs=[pr]))

    assert text == "## Features\n- Add login (#12) by @alice\n\n"


@pytest.mark.asyncio
async def test_render_data(make_pr: Callable[..., PullRequest], make_commit: Callable[..., Commit]) -> None:
    """Test refs, date, extras precedence and totals exposed to the template."""
    config = make_config(
        categories=[{"title": "All", "branch": ".*"}],
        extras={"team": "core", "channel": "config"},
        template="{{ from_ref }}..{{ to_ref }} {{ date.strftime('%Y-%m-%d') }} {{ extras.team }}/{{ extras.channel }} {{ total }}/{{ total_commits }}",
    )
    builder = NotesBuilder(config, extras={"channel": "cli"}, now=lambda: datetime(2024, 3, 9, tzinfo=timezone.utc))

    text = await builder.build(
        BuildRequest(from_ref="v1", to_ref="v2", closed_prs=[make_pr(1), make_pr(2)], commits=[make_commit("a"), make_commit("b"), make_commit("c")])
    )

    assert text == "v1..v2 2024-03-09 core/cli 2/3"


class CountingEvaluator(Evaluator):
    """Evaluator counting template compilations."""

    compilations = 0

    async def compile(self, expr: str) -> jinja2.Template:
        self.compilations += 1
        await asyncio.sleep(0)
        return await super().compile(expr)


@pytest.mark.asyncio
async def test_template_compiled_once_under_concurrent_builds(make_pr: Callable[..., PullRequest]) -> None:
    """Test that concurrent first builds share a single template compilation."""
    evaluator = CountingEvaluator()
    builder = NotesBuilder(make_config(categories=[{"title": "All", "branch": ".*"}], template=SECTIONS_TEMPLATE), evaluator)
    request = BuildRequest(from_ref="a", to_ref="b", closed_prs=[make_pr(1)])

    results = await asyncio.gather(*(builder.build(request) for _ in range(5)))
    await builder.build(request)

    assert set(results) == {"All: 1\n"}
    assert evaluator.compilations == 1


@pytest.mark.parametrize(
    "sort_field,expected",
    [
        pytest.param("", [1, 2, 3, 4], id="default_number"),
        pytest.param("number", [1, 2, 3, 4], id="number"),
        pytest.param("-number", [4, 3, 2, 1], id="number_desc"),
        pytest.param("author", [3, 2, 4, 1], id="author_ties_ascending"),
        pytest.param("+author", [3, 2, 4, 1], id="author_plus"),
        pytest.param("-author", [1, 2, 4, 3], id="author_desc_ties_ascending"),
        pytest.param("title", [4, 1, 3, 2], id="title"),
        pytest.param("-title", [2, 3, 1, 4], id="title_desc"),
        pytest.param("closed", [2, 4, 1, 3], id="closed"),
        pytest.param("-closed", [3, 1, 4, 2], id="closed_desc"),
    ],
)
def test_sort_prs(make_pr: Callable[..., PullRequest], sort_field: str, expected: list[int]) -> None:
    """Test sorting by every supported field and direction."""

    def closed(day: int) -> datetime:
        return datetime(2024, 5, day, tzinfo=timezone.utc)

    prs = [
        make_pr(4, author="bob", title="Alpha", closed_at=closed(2)),
        make_pr(1, author="carol", title="Bravo", closed_at=closed(3)),
        make_pr(3, author="alice", title="Charlie", closed_at=closed(4)),
        make_pr(2, author="bob", title="Delta", closed_at=closed(1)),
    ]

    assert [pr.number for pr in sort_prs(prs, sort_field)] == expected
