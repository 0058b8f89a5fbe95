"""Jinja2 environment shared by default expressions, predicates, and rendering.

A single factory keeps the three consumers in agreement about filters and
undefined-variable handling.  Templates run in a sandbox with
``StrictUndefined`` so that a missing variable is always an error instead of
an empty string.
"""

from __future__ import annotations

import re

from jinja2 import StrictUndefined
from jinja2.exceptions import TemplateRuntimeError
from jinja2.sandbox import SandboxedEnvironment


# Failures a template can raise while running: Jinja runtime and sandbox
# errors plus the plain Python errors an expression like `{{ n + 1 }}` or
# `{{ x // 0 }}` produces.
RENDER_ERRORS: tuple[type[Exception], ...] = (
    TemplateRuntimeError,
    TypeError,
    ValueError,
    ArithmeticError,
    LookupError,
)


def error_detail(exc: Exception) -> str:
    """Return a one-line description of a rendering failure."""
    if isinstance(exc, TemplateRuntimeError):
        return str(exc.message or exc)
    return f"{type(exc).__name__}: {exc}"


def create_environment() -> SandboxedEnvironment:
    """Return a fresh sandboxed environment with the scaffold filters registered."""
    env = SandboxedEnvironment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["slugify"] = _slugify_filter
    env.filters["pascal_case"] = _pascal_case_filter
    env.filters["snake_case"] = _snake_case_filter
    env.filters["camel_case"] = _camel_case_filter
    return env


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", str(value))
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", str(value))
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
