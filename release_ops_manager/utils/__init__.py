"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_FROM_EXPRESSION,
    DEFAULT_MAX_CONCURRENT_PR_REQUESTS,
    DEFAULT_RELEASE_NOTES_TEMPLATE,
    DEFAULT_SQUASH_COMMIT_PATTERN,
    DEFAULT_TO_EXPRESSION,
    HEAD_REF,
    SEMVER_PATTERN,
)

__all__ = [
    "SEMVER_PATTERN",
    "HEAD_REF",
    "DEFAULT_SQUASH_COMMIT_PATTERN",
    "DEFAULT_TO_EXPRESSION",
    "DEFAULT_FROM_EXPRESSION",
    "DEFAULT_MAX_CONCURRENT_PR_REQUESTS",
    "DEFAULT_RELEASE_NOTES_TEMPLATE",
]
