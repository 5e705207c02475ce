"""Resolves the commit range of a changelog from literal refs or expressions."""

import structlog

from release_ops_manager.evaluate.evaluator import Evaluator
from release_ops_manager.git.exceptions import EmptyRefError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def resolve_refs(evaluator: Evaluator, from_expr: str, to_expr: str) -> tuple[str, str]:
    """Evaluate the `to` expression, then the `from` expression with `to_ref` bound.

    Literal refs evaluate to themselves. Surrounding whitespace is stripped.

    Raises:
        EmptyRefError: If either side evaluates to an empty string.
    """
    to_ref = (await evaluator.evaluate(to_expr, {"from_ref": "", "to_ref": ""})).strip()
    if not to_ref:
        raise EmptyRefError("to", to_expr)

    from_ref = (await evaluator.evaluate(from_expr, {"from_ref": "", "to_ref": to_ref})).strip()
    if not from_ref:
        raise EmptyRefError("from", from_expr)

    logger.info("Resolved commit range", from_ref=from_ref, to_ref=to_ref)
    return from_ref, to_ref
