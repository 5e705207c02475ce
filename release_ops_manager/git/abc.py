"""Base ABC for git engines."""

from abc import ABC, abstractmethod

from .exceptions import EngineError
from .models import CommitsComparison, PullRequest, Tag


class GitEngineBase(ABC):
    """Base ABC for git engines."""

    @abstractmethod
    async def compare(self, from_ref: str, to_ref: str) -> CommitsComparison:
        """Compare two refs and return the commits between them."""
        pass

    @abstractmethod
    async def list_prs_of_commit(self, sha: str) -> list[PullRequest]:
        """List pull requests associated with a commit."""
        pass

    @abstractmethod
    async def list_tags(self) -> list[Tag]:
        """List repository tags, newest first."""
        pass

    @abstractmethod
    async def get_last_commit_of_branch(self, branch: str) -> str:
        """Get the SHA of the last commit of a branch."""
        pass


class UnsupportedEngine(GitEngineBase):
    """Engine used when no git engine is configured; every call fails."""

    def __str__(self) -> str:
        return "unsupported"

    async def compare(self, from_ref: str, to_ref: str) -> CommitsComparison:
        raise EngineError("operation not supported")

    async def list_prs_of_commit(self, sha: str) -> list[PullRequest]:
        raise EngineError("operation not supported")

    async def list_tags(self) -> list[Tag]:
        raise EngineError("operation not supported")

    async def get_last_commit_of_branch(self, branch: str) -> str:
        raise EngineError("operation not supported")
