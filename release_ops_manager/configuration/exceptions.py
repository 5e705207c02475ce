"""Contains exceptions raised when loading and reconciling application configuration."""


class ConfigError(Exception):
    """Raised when a release notes configuration file is missing, malformed or invalid."""

    def __init__(self, path: str, reason: str) -> None:
        """Initializes the exception with the config location and what is wrong with it."""
        super().__init__(f"invalid release notes config {path}: {reason}")
        self.path = path
        self.reason = reason


class GitHubAuthenticationConfigurationUndefinedError(Exception):
    """Raised when the GitHub authentication configuration is undefined or ambiguous."""

    pass
