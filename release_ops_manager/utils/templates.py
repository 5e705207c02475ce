"""Contains utilities for constructing Jinja2 environments for template expressions."""

from typing import Any

import jinja2
from jinja2 import nodes
from jinja2.sandbox import SandboxedEnvironment


def construct_jinja2_environment(functions: dict[str, Any] | None = None) -> SandboxedEnvironment:
    """Construct a sandboxed, async-capable Jinja2 environment exposing `functions` as globals.

    Async functions among `functions` are awaited transparently when called
    from a template.
    """
    jinja_env = SandboxedEnvironment(
        enable_async=True,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    if functions:
        jinja_env.globals.update(functions)
    return jinja_env


def implicit_callables(ast: nodes.Template) -> set[str]:
    """Return the callables Jinja2 itself provides inside the constructs used by `ast`."""
    implicit: set[str] = set()
    if any(loop.recursive for loop in ast.find_all(nodes.For)):
        implicit.add("loop")
    if any(True for _ in ast.find_all(nodes.Block)):
        implicit.add("super")
    if any(True for _ in ast.find_all((nodes.Macro, nodes.CallBlock))):
        implicit.update(("caller", "varargs", "kwargs"))
    return implicit


def find_undefined_functions(ast: nodes.Template, environment: jinja2.Environment) -> list[str]:
    """Return names called as functions in `ast` that neither the environment nor the template defines."""
    declared = {name.name for name in ast.find_all(nodes.Name) if name.ctx in ("store", "param")}
    declared.update(macro.name for macro in ast.find_all(nodes.Macro))
    declared.update(implicit_callables(ast))
    undefined: list[str] = []
    for call in ast.find_all(nodes.Call):
        if not isinstance(call.node, nodes.Name):
            continue
        name = call.node.name
        if name in environment.globals or name in declared or name in undefined:
            continue
        undefined.append(name)
    return undefined
