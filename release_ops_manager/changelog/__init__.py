"""Changelog assembly over a git commit range."""

from .pull_requests import closed_prs_between, is_merge_point, merge_pull_requests
from .refs import resolve_refs
from .service import ChangelogService

__all__ = ["ChangelogService", "closed_prs_between", "is_merge_point", "merge_pull_requests", "resolve_refs"]
