"""Common evaluator for templated expressions that may call remote services.

The same evaluator type backs both commit ref resolution and release notes
rendering, so the restrictions on the function namespace apply wherever a
template is accepted.
"""

from typing import Any, Mapping

import jinja2
import structlog

from release_ops_manager.utils.templates import construct_jinja2_environment, find_undefined_functions

from .addons import Addon, merge_funcs
from .exceptions import TemplateExecutionError, TemplateParseError
from .functions import template_functions

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

BASE_OWNER = "base"


class Evaluator:
    """Evaluates Jinja2 expressions against the base helpers and an optional addon."""

    def __init__(self, addon: Addon | None = None) -> None:
        """Initialize the evaluator with an optional addon."""
        self.addon = addon

    async def funcs(self) -> dict[str, Any]:
        """Build the function namespace, rejecting addon names that shadow base helpers."""
        owned: dict[str, tuple[str, Any]] = {name: (BASE_OWNER, fn) for name, fn in template_functions().items()}
        if self.addon is not None:
            merge_funcs(owned, str(self.addon), await self.addon.funcs())
        return {name: fn for name, (_, fn) in owned.items()}

    async def compile(self, expr: str) -> jinja2.Template:
        """Parse and compile `expr` without executing it."""
        environment = construct_jinja2_environment(await self.funcs())
        try:
            ast = environment.parse(expr)
            undefined = find_undefined_functions(ast, environment)
            if undefined:
                raise TemplateParseError(f'function "{undefined[0]}" not defined')
            return environment.from_string(ast)
        except jinja2.TemplateSyntaxError as exc:
            logger.error("Failed to parse template expression", error=str(exc), line=exc.lineno)
            raise TemplateParseError(str(exc)) from exc

    async def validate(self, expr: str) -> None:
        """Check that `expr` parses and only calls known functions."""
        await self.compile(expr)

    async def render(self, template: jinja2.Template, data: Mapping[str, Any] | None = None) -> str:
        """Render an already compiled template with `data`."""
        try:
            return await template.render_async(dict(data or {}))
        except Exception as exc:
            logger.error("Failed to render template expression", error=str(exc), error_type=type(exc).__name__)
            raise TemplateExecutionError(str(exc)) from exc

    async def evaluate(self, expr: str, data: Mapping[str, Any] | None = None) -> str:
        """Evaluate `expr` with `data` and return the rendered text."""
        template = await self.compile(expr)
        return await self.render(template, data)
