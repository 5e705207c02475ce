"""Fixtures for unit tests."""

from datetime import datetime, timezone
from typing import Any, Callable, Generator

import pytest
import structlog

from release_ops_manager.git.models import Commit, PullRequest, User


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    """Factory for closed pull requests."""

    def factory(number: int, **kwargs: Any) -> PullRequest:
        author = kwargs.pop("author", "octocat")
        kwargs.setdefault("title", f"Change {number}")
        kwargs.setdefault("closed_at", datetime(2024, 1, number % 28 + 1, tzinfo=timezone.utc))
        return PullRequest(number=number, author=User(username=author), **kwargs)

    return factory


@pytest.fixture
def make_commit() -> Callable[..., Commit]:
    """Factory for commits; pass `parents` to build merge commits."""

    def factory(sha: str, message: str = "", parents: int = 1) -> Commit:
        return Commit(sha=sha, message=message or f"commit {sha}", parent_shas=[f"{sha}-parent-{i}" for i in range(parents)])

    return factory
