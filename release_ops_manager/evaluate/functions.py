"""Functions available to every template expression.

Besides the base helpers, templates can call Jinja2's own plain filters as
functions (`upper(s)`, `default(value, "x")`, `truncate(s, 20)`), plus a few
helpers Jinja2 does not ship. Nothing in this namespace reads the process
environment.
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable

from jinja2.filters import FILTERS

from release_ops_manager.utils.constants import SEMVER_PATTERN


def next_element(elem: str, elems: list[str]) -> str:
    """Return the element following `elem`, or an empty string."""
    for idx, current in enumerate(elems):
        if current == elem:
            return elems[idx + 1] if idx + 1 < len(elems) else ""
    return ""


def previous_element(elem: str, elems: list[str]) -> str:
    """Return the element preceding `elem`, or an empty string."""
    for idx, current in enumerate(elems):
        if current == elem:
            return elems[idx - 1] if idx > 0 else ""
    return ""


def filter_elements(pattern: str, elems: list[str]) -> list[str]:
    """Return the elements matching the regular expression, keeping their order."""
    rx = re.compile(pattern)
    return [e for e in elems if rx.search(e)]


def strings_from_anys(elems: list[Any]) -> list[str]:
    """Coerce every element to a string."""
    return [e if isinstance(e, str) else str(e) for e in elems]


def base_functions() -> dict[str, Any]:
    """Return the helpers every evaluator exposes regardless of addons."""
    return {
        "next": next_element,
        "previous": previous_element,
        "filter": filter_elements,
        "strings": strings_from_anys,
        "semver": SEMVER_PATTERN,
    }


def filter_functions() -> dict[str, Callable[..., Any]]:
    """Return Jinja2's built-in filters that can be called as plain functions.

    Filters that need the environment or the evaluation context passed in are
    left out; they stay usable with the `value | filter` syntax.
    """
    return {name: fn for name, fn in FILTERS.items() if getattr(fn, "jinja_pass_arg", None) is None}


def _date(fmt: str, value: datetime | None = None) -> str:
    return (value or datetime.now(timezone.utc)).strftime(fmt)


def _regex_find(pattern: str, s: str) -> str:
    match = re.search(pattern, s)
    return match.group(0) if match else ""


def extra_functions() -> dict[str, Callable[..., Any]]:
    """Return sprig-style helpers with no Jinja2 filter equivalent."""
    return {
        "now": lambda: datetime.now(timezone.utc),
        "date": _date,
        "trimPrefix": lambda prefix, s: s.removeprefix(prefix),
        "trimSuffix": lambda suffix, s: s.removesuffix(suffix),
        "regexMatch": lambda pattern, s: re.search(pattern, s) is not None,
        "regexFind": _regex_find,
        "regexReplaceAll": lambda pattern, s, repl: re.sub(pattern, repl, s),
    }


def template_functions() -> dict[str, Any]:
    """Return the full base namespace: callable filters, extra helpers and base helpers, later ones winning."""
    funcs: dict[str, Any] = filter_functions()
    funcs.update(extra_functions())
    funcs.update(base_functions())
    return funcs
