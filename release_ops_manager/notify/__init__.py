"""Delivery of release notes to notification destinations."""

from .base import Destination, Destinations
from .exceptions import AggregateNotifyError, NotifyError
from .github_release import GitHubReleaseDestination
from .writer import WriterDestination

__all__ = [
    "Destination",
    "Destinations",
    "AggregateNotifyError",
    "NotifyError",
    "GitHubReleaseDestination",
    "WriterDestination",
]
