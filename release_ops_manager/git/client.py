"""Sets up the authenticated githubkit client used by the GitHub engine and release destination."""

from pathlib import Path
from typing import TypeAlias

import structlog
from githubkit import GitHub
from githubkit.auth import AppAuthStrategy, AppInstallationAuthStrategy, TokenAuthStrategy

from release_ops_manager.configuration.models import GitHubAuthenticationType
from release_ops_manager.utils.github import split_repository

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]


async def get_github_app_client(
    repo: str,
    github_app_id: int,
    github_app_private_key_path: Path,
    github_api_url: str,
) -> GitHub[AppInstallationAuthStrategy]:
    """Returns a client authenticated as the GitHub App installation of `repo`."""
    private_key = github_app_private_key_path.read_text(encoding="utf-8")
    # Disable HTTP caching so tags and comparisons are always fresh
    app_client = GitHub(auth=AppAuthStrategy(app_id=github_app_id, private_key=private_key), base_url=github_api_url, http_cache=False)

    owner, repository = split_repository(repo)
    try:
        resp = await app_client.rest.apps.async_get_repo_installation(owner=owner, repo=repository)
    except Exception as exc:
        raise ValueError(f"Failed to get GitHub App installation for {repo}: {exc}") from exc
    logger.debug("Resolved GitHub App installation", repo=repo, installation_id=resp.parsed_data.id)
    return app_client.with_auth(app_client.auth.as_installation(resp.parsed_data.id))


def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHub[TokenAuthStrategy]:
    """Returns a client authenticated with a personal access token."""
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False)


async def get_github_client(
    repo: str,
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_api_url: str,
) -> GitHubClient:
    """Returns an authenticated GitHub client using either GitHub App or PAT credentials.

    Supports a custom base URL for GitHub Enterprise Server.
    """
    logger.info("Creating GitHub client", github_api_url=github_api_url, repo=repo, auth_type=github_auth_type.value)
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path):
            raise RuntimeError("GitHub App authentication requires app_id and private_key_path.")
        return await get_github_app_client(repo, github_app_id, github_app_private_key_path, github_api_url)
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token.")
    return get_github_pat_client(github_pat_token, github_api_url)
