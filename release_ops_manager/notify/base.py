"""Base ABC for notification destinations and the concurrent fan-out over them."""

import asyncio
from abc import ABC, abstractmethod

import structlog

from .exceptions import AggregateNotifyError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class Destination(ABC):
    """Base ABC for a place release notes are delivered to."""

    @abstractmethod
    def __str__(self) -> str:
        """Return a name identifying the destination in logs and errors."""
        pass

    @abstractmethod
    async def send(self, text: str, tag_name: str = "") -> None:
        """Deliver `text`; `tag_name` is the released ref and may be ignored."""
        pass


class Destinations(Destination):
    """Sends release notes to every destination concurrently.

    Every destination is attempted exactly once regardless of the others
    failing, and nothing is retried.
    """

    def __init__(self, destinations: list[Destination] | None = None) -> None:
        """Initialize with the destinations to fan out to."""
        self.destinations = list(destinations or [])

    def __str__(self) -> str:
        return "[" + ", ".join(str(destination) for destination in self.destinations) + "]"

    async def send(self, text: str, tag_name: str = "") -> None:
        """Send `text` to every destination.

        Raises:
            AggregateNotifyError: If any destination failed, holding each failure.
        """
        results = await asyncio.gather(
            *(destination.send(text, tag_name) for destination in self.destinations),
            return_exceptions=True,
        )

        failures: list[Exception] = []
        failed: list[str] = []
        for destination, result in zip(self.destinations, results):
            if isinstance(result, Exception):
                logger.error("Failed to send release notes", destination=str(destination), error=str(result))
                failures.append(result)
                failed.append(str(destination))
            elif isinstance(result, BaseException):
                raise result
            else:
                logger.info("Sent release notes", destination=str(destination))

        if failures:
            raise AggregateNotifyError(f"notify {', '.join(failed)}", failures, failed)
