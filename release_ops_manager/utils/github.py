"""Contains utility functions for GitHub interactions."""


def split_repository(repo: str | None) -> tuple[str, str]:
    """Splits an 'owner/repo' string into owner and repository."""
    if not repo:
        raise ValueError("Repository is required, set --repo or the REPO environment variable.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository
