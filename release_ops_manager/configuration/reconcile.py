"""Reconcile GitHub authentication configuration."""

from pathlib import Path

from release_ops_manager.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError
from release_ops_manager.configuration.models import GitHubAuthenticationType


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If both or neither of PAT and App
            configurations are defined, or the App configuration is incomplete.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    if github_pat_token and (github_app_id or github_app_private_key_path):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if github_app_id and github_app_private_key_path:
        return GitHubAuthenticationType.APP

    if github_app_id:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "Incomplete GitHub App configuration - missing GitHub App private key path "
            "(command line option --github-app-private-key-path, environment variable GITHUB_APP_PRIVATE_KEY_PATH)"
        )
    if github_app_private_key_path:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "Incomplete GitHub App configuration - missing GitHub App ID (command line option --github-app-id, environment variable GITHUB_APP_ID)"
        )
    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
    )
