"""Destination publishing release notes as a GitHub release."""

import structlog
from githubkit.exception import GitHubException

from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.git.client import GitHubClient

from .base import Destination
from .exceptions import NotifyError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_RELEASE_NAME_TEMPLATE = "{{ tag_name }}"


class GitHubReleaseDestination(Destination):
    """Creates a GitHub release for the released tag, with the release notes as its body.

    The release name is an expression evaluated with `tag_name` bound.
    """

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo_name: str,
        evaluator: Evaluator | None = None,
        release_name_template: str = DEFAULT_RELEASE_NAME_TEMPLATE,
        draft: bool = False,
        prerelease: bool = False,
    ) -> None:
        """Initialize the destination for the `owner/repo_name` repository."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name
        self.evaluator = evaluator or Evaluator()
        self.release_name_template = release_name_template
        self.draft = draft
        self.prerelease = prerelease

    def __str__(self) -> str:
        return f"github release on {self.owner}/{self.repo_name}"

    async def send(self, text: str, tag_name: str = "") -> None:
        if not tag_name:
            raise NotifyError("a tag name is required to create a release")

        name = await self.evaluator.evaluate(self.release_name_template, {"tag_name": tag_name})
        try:
            response = await self.client.rest.repos.async_create_release(
                owner=self.owner,
                repo=self.repo_name,
                tag_name=tag_name,
                name=name.strip(),
                body=text,
                draft=self.draft,
                prerelease=self.prerelease,
            )
        except GitHubException as exc:
            raise NotifyError(f"create release {tag_name}: {exc}") from exc
        logger.info("Created GitHub release", tag_name=tag_name, name=name.strip(), url=response.parsed_data.html_url)
