"""Contains exceptions raised while delivering release notes to destinations."""

from typing import Self, Sequence


class NotifyError(Exception):
    """Raised when a destination rejects or fails to deliver release notes."""

    pass


class AggregateNotifyError(ExceptionGroup):
    """Raised when one or more destinations failed to deliver release notes.

    The failures are kept as they were raised, and `destinations` names the
    failed destination of each failure, in the same order.
    """

    def __new__(cls, message: str, exceptions: Sequence[Exception], destinations: Sequence[str] = ()) -> Self:
        self = super().__new__(cls, message, exceptions)
        self.destinations = list(destinations)
        return self

    def derive(self, excs: Sequence[Exception]) -> "AggregateNotifyError":
        destinations = [name for name, exc in zip(self.destinations, self.exceptions) if any(exc is kept for kept in excs)]
        return AggregateNotifyError(self.message, excs, destinations)
