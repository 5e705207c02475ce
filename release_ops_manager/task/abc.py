"""Base ABC for task trackers and the shared tracker wrapper."""

from abc import ABC, abstractmethod

import structlog

from release_ops_manager.git.exceptions import EngineError

from .models import Ticket

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class TrackerBase(ABC):
    """Base ABC for task tracker engines."""

    @abstractmethod
    async def list(self, ids: list[str]) -> list[Ticket]:
        """List tickets by their IDs in a single batch."""
        pass

    @abstractmethod
    async def get(self, ticket_id: str) -> Ticket:
        """Get a single ticket by its ID."""
        pass


class UnsupportedTracker(TrackerBase):
    """Tracker used when no task tracker is configured; every call fails."""

    def __str__(self) -> str:
        return "unsupported"

    async def list(self, ids: list[str]) -> list[Ticket]:
        raise EngineError("operation not supported")

    async def get(self, ticket_id: str) -> Ticket:
        raise EngineError("operation not supported")


class Tracker:
    """Wraps a tracker engine with logic common to every implementation."""

    def __init__(self, engine: TrackerBase) -> None:
        """Initialize the tracker with an engine implementation."""
        self.engine = engine

    async def get(self, ticket_id: str) -> Ticket:
        """Get a single ticket by its ID."""
        try:
            return await self.engine.get(ticket_id)
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(f"get ticket {ticket_id}: {exc}") from exc

    async def list(self, ids: list[str], load_parents: bool = False) -> list[Ticket]:
        """List tickets by their IDs, optionally loading their ancestors.

        Parents are resolved in batched rounds: every round lists the parent
        IDs discovered in the previous one that were not loaded yet, until no
        new IDs appear.
        """
        result: list[Ticket] = []
        seen: set[str] = set()
        pending = list(dict.fromkeys(ids))
        rounds = 0
        while pending:
            seen.update(pending)
            try:
                tickets = await self.engine.list(pending)
            except EngineError:
                raise
            except Exception as exc:
                raise EngineError(f"list tickets {pending}: {exc}") from exc
            rounds += 1
            result.extend(tickets)
            if not load_parents:
                break
            pending = list(dict.fromkeys(t.parent_id for t in tickets if t.parent_id and t.parent_id not in seen))
        logger.debug("Listed tickets", requested=len(ids), loaded=len(result), rounds=rounds)
        return result
