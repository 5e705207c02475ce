"""Destination writing release notes to a stream or a file."""

from pathlib import Path
from typing import Self, TextIO

import structlog

from .base import Destination
from .exceptions import NotifyError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class WriterDestination(Destination):
    """Writes release notes to an open text stream, or to a file created on send."""

    def __init__(self, stream: TextIO | None = None, name: str = "", path: Path | None = None) -> None:
        """Initialize with either an open `stream` or a `path` to (over)write."""
        if (stream is None) == (path is None):
            raise ValueError("exactly one of stream and path must be set")
        self.stream = stream
        self.path = path
        self.name = name or str(path)

    @classmethod
    def to_file(cls, path: Path) -> Self:
        """Create a destination overwriting `path` with the release notes."""
        return cls(path=path)

    def __str__(self) -> str:
        return f"writer to {self.name}"

    async def send(self, text: str, tag_name: str = "") -> None:
        try:
            if self.path is not None:
                self.path.write_text(text, encoding="utf-8")
            elif self.stream is not None:
                self.stream.write(text)
                self.stream.flush()
        except OSError as exc:
            raise NotifyError(f"write release notes to {self.name}: {exc}") from exc
        logger.debug("Wrote release notes", destination=self.name, length=len(text))
