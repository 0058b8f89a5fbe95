"""Exceptions raised while resolving and rendering a scaffold.

Every error is fatal to the run.  The CLI is the only place that turns them
into exit codes; library callers decide whether to display, log, or retry.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class ValidationError(ScaffoldError):
    """A variable has no value, violates its constraint, or has cyclic defaults."""

    def __init__(self, variable: str, constraint: str) -> None:
        self.variable = variable
        self.constraint = constraint
        super().__init__(f"Variable '{variable}': {constraint}")


class TemplateError(ScaffoldError):
    """A template or predicate references something that cannot be resolved."""

    def __init__(self, file: str, token: str, message: str = "") -> None:
        self.file = file
        self.token = token
        detail = message or "unresolved reference"
        super().__init__(f"{file}: {detail} ({token})")
