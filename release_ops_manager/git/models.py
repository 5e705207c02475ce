"""Pydantic models for data returned by git engines."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Pydantic model for a git hosting user."""

    username: str = ""
    email: str = ""
    date: datetime | None = None


class Commit(BaseModel):
    """Pydantic model for a repository commit.

    Commits are sourced from the engine per query and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    parent_shas: list[str] = Field(default_factory=list)
    message: str = ""
    committed_at: datetime | None = None
    authored_at: datetime | None = None
    url: str = ""
    author: User = Field(default_factory=User)
    committer: User = Field(default_factory=User)


class CommitsComparison(BaseModel):
    """Pydantic model for the result of comparing two refs."""

    commits: list[Commit] = Field(default_factory=list)
    total_commits: int = 0


class PullRequest(BaseModel):
    """Pydantic model for a pull/merge request.

    `received_by_shas` lists the merge point SHAs through which the pull
    request was discovered.
    """

    number: int
    title: str = ""
    body: str = ""
    author: User = Field(default_factory=User)
    labels: list[str] = Field(default_factory=list)
    closed_at: datetime | None = None
    source_branch: str = ""
    target_branch: str = ""
    url: str = ""
    received_by_shas: list[str] = Field(default_factory=list)
    assignees: list[User] = Field(default_factory=list)


class Tag(BaseModel):
    """Pydantic model for a repository tag."""

    name: str
    commit: Commit
