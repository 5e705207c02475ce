"""Git engine backed by the GitHub REST API through githubkit."""

from datetime import datetime
from pathlib import Path
from typing import Any, Self

import structlog
from githubkit.exception import GitHubException

from release_ops_manager.configuration.models import GitHubAuthenticationType
from release_ops_manager.utils.github import split_repository

from .abc import GitEngineBase
from .client import GitHubClient, get_github_client
from .exceptions import EngineError
from .models import Commit, CommitsComparison, PullRequest, Tag, User

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

PER_PAGE = 100


def _git_user(git_user: Any, account: Any = None) -> User:
    """Build a user from a git author/committer and the GitHub account linked to it, if any."""
    date = getattr(git_user, "date", None)
    return User(
        username=getattr(account, "login", None) or getattr(git_user, "name", None) or "",
        email=getattr(git_user, "email", None) or "",
        date=date if isinstance(date, datetime) else None,
    )


def commit_from_github(data: Any) -> Commit:
    """Convert a githubkit commit into a commit model."""
    details = data.commit
    return Commit(
        sha=data.sha,
        parent_shas=[parent.sha for parent in data.parents or []],
        message=details.message or "",
        committed_at=_git_user(details.committer).date,
        authored_at=_git_user(details.author).date,
        url=data.html_url or "",
        author=_git_user(details.author, data.author),
        committer=_git_user(details.committer, data.committer),
    )


def pull_request_from_github(data: Any) -> PullRequest:
    """Convert a githubkit pull request into a pull request model."""
    return PullRequest(
        number=data.number,
        title=data.title or "",
        body=data.body or "",
        author=User(username=getattr(data.user, "login", None) or "", email=getattr(data.user, "email", None) or ""),
        labels=[label.name for label in data.labels or []],
        closed_at=data.closed_at,
        source_branch=data.head.ref,
        target_branch=data.base.ref,
        url=data.html_url or "",
        assignees=[User(username=a.login, email=getattr(a, "email", None) or "") for a in data.assignees or []],
    )


class GitHubEngine(GitEngineBase):
    """Git engine talking to a single GitHub repository."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the engine with an already-authenticated client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    def __str__(self) -> str:
        return f"github on {self.owner}/{self.repo_name}"

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Create an engine for `repo` ('owner/repo') with the given credentials."""
        owner, repo_name = split_repository(repo)
        client = await get_github_client(
            repo=repo,
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    async def compare(self, from_ref: str, to_ref: str) -> CommitsComparison:
        """Compare two refs, following pagination until every commit is collected."""
        commits: list[Commit] = []
        total = 0
        page = 1
        try:
            while True:
                response = await self.client.rest.repos.async_compare_commits(
                    owner=self.owner,
                    repo=self.repo_name,
                    basehead=f"{from_ref}...{to_ref}",
                    per_page=PER_PAGE,
                    page=page,
                )
                comparison = response.parsed_data
                total = comparison.total_commits
                commits.extend(commit_from_github(commit) for commit in comparison.commits)
                if not comparison.commits or len(commits) >= total:
                    break
                page += 1
        except GitHubException as exc:
            raise EngineError(f"compare {from_ref}...{to_ref}: {exc}") from exc
        logger.debug("Compared refs", from_ref=from_ref, to_ref=to_ref, commits=len(commits), total_commits=total)
        return CommitsComparison(commits=commits, total_commits=total)

    async def list_prs_of_commit(self, sha: str) -> list[PullRequest]:
        """List pull requests associated with a commit."""
        try:
            response = await self.client.rest.repos.async_list_pull_requests_associated_with_commit(
                owner=self.owner,
                repo=self.repo_name,
                commit_sha=sha,
                per_page=PER_PAGE,
            )
        except GitHubException as exc:
            raise EngineError(f"list pull requests of commit {sha}: {exc}") from exc
        return [pull_request_from_github(pr) for pr in response.parsed_data]

    async def list_tags(self) -> list[Tag]:
        """List every tag of the repository, newest first as GitHub returns them."""
        tags: list[Tag] = []
        page = 1
        try:
            while True:
                response = await self.client.rest.repos.async_list_tags(owner=self.owner, repo=self.repo_name, per_page=PER_PAGE, page=page)
                batch = response.parsed_data
                tags.extend(Tag(name=tag.name, commit=Commit(sha=tag.commit.sha)) for tag in batch)
                if len(batch) < PER_PAGE:
                    break
                page += 1
        except GitHubException as exc:
            raise EngineError(f"list tags: {exc}") from exc
        logger.debug("Listed tags", count=len(tags))
        return tags

    async def get_last_commit_of_branch(self, branch: str) -> str:
        """Get the SHA of the last commit of a branch."""
        try:
            response = await self.client.rest.repos.async_get_branch(owner=self.owner, repo=self.repo_name, branch=branch)
        except GitHubException as exc:
            raise EngineError(f"get branch {branch}: {exc}") from exc
        return response.parsed_data.commit.sha
