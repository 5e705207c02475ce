"""Addons extend the evaluator with additional template functions."""

from abc import ABC, abstractmethod
from typing import Any, Callable

import structlog

from .exceptions import AddonCollisionError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

FuncMap = dict[str, Callable[..., Any]]


class Addon(ABC):
    """Base ABC for a named provider of template functions."""

    @abstractmethod
    def __str__(self) -> str:
        """Return the name of the addon."""
        pass

    @abstractmethod
    async def funcs(self) -> FuncMap:
        """Return the functions this addon exposes to templates."""
        pass


def merge_funcs(target: dict[str, tuple[str, Any]], owner: str, funcs: dict[str, Any]) -> None:
    """Merge `funcs` owned by `owner` into `target`, rejecting names that are already taken.

    `target` maps a function name to `(owner, function)`.
    """
    for name, fn in funcs.items():
        if name in target:
            raise AddonCollisionError(name, owner, target[name][0])
        target[name] = (owner, fn)


class MultiAddon(Addon):
    """Combines several addons into one, failing on function name collisions."""

    def __init__(self, addons: list[Addon] | None = None) -> None:
        """Initialize with the addons to combine, in priority order."""
        self.addons = list(addons or [])

    def __str__(self) -> str:
        return "[" + ", ".join(str(addon) for addon in self.addons) + "]"

    async def funcs(self) -> FuncMap:
        """Return the merged function map of all underlying addons."""
        owned: dict[str, tuple[str, Any]] = {}
        for addon in self.addons:
            merge_funcs(owned, str(addon), await addon.funcs())
        logger.debug("Composed addon functions", addons=str(self), function_count=len(owned))
        return {name: fn for name, (_, fn) in owned.items()}
