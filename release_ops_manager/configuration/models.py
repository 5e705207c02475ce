"""Models for configuration shared between CLI options and environment variables."""

from enum import Enum


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"
