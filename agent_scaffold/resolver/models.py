"""Data model for the scaffold resolver.

Variable definitions are a tagged union of Pydantic v2 models (``kind`` is the
discriminator) so that every value is coerced to a concrete ``str`` or
``bool`` exactly once, when it enters the resolver.  The manifest and file
descriptors are plain dataclasses: they are built by the loader, never by
user input, and carry parsed predicate objects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agent_scaffold.errors import ValidationError
from agent_scaffold.resolver.predicates import Predicate


# ---------------------------------------------------------------------------
# Value constraints
# ---------------------------------------------------------------------------

_VALIDATORS: dict[str, tuple[re.Pattern[str], str]] = {
    "non_empty": (re.compile(r".*\S.*", re.DOTALL), "must be a non-empty string"),
    "email": (re.compile(r"[^@\s]+@[^@\s]+\.[^@\s.]+"), "must be a valid email address"),
    "slug": (
        re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*"),
        "must be a lowercase slug of letters, digits and single hyphens",
    ),
}

_TRUE_STRINGS = frozenset({"true", "yes", "y", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "off", "0"})

ScalarValue = Union[bool, str]


def _scalar_text(name: str, value: Any) -> str:
    """Accept strings and plain numbers (YAML may hand us ``3.12``); reject the rest."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(name, f"expected a string, got {type(value).__name__}")
    return str(value)


# ---------------------------------------------------------------------------
# Variable definitions
# ---------------------------------------------------------------------------


class _VariableBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Variable name used in templates")
    help: str = Field(default="", description="Prompt text shown in interactive mode")

    def default_source(self) -> Optional[str]:
        """Return the Jinja source of a computed default, if any."""
        default = getattr(self, "default", None)
        return default if isinstance(default, str) else None

    def coerce(self, value: Any) -> ScalarValue:
        raise NotImplementedError


class StringVariable(_VariableBase):
    """Free-form text, optionally constrained by a named validator or regex."""

    kind: Literal["str"] = "str"
    default: Optional[str] = Field(
        default=None, description="Literal or Jinja expression over other variables"
    )
    validator: Optional[Literal["non_empty", "email", "slug"]] = None
    pattern: Optional[str] = Field(default=None, description="Regex the value must fully match")
    random_choices: list[str] = Field(
        default_factory=list,
        description="Pool the default is drawn from with the run's seeded RNG",
    )

    @model_validator(mode="after")
    def _check_default_sources(self) -> "StringVariable":
        if self.default is not None and self.random_choices:
            raise ValueError("default and random_choices are mutually exclusive")
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise ValueError(f"invalid pattern: {exc}") from exc
        return self

    def coerce(self, value: Any) -> str:
        text = _scalar_text(self.name, value)
        if self.validator is not None:
            regex, message = _VALIDATORS[self.validator]
            if not regex.fullmatch(text):
                raise ValidationError(self.name, f"{message}, got {text!r}")
        if self.pattern is not None and not re.fullmatch(self.pattern, text):
            raise ValidationError(self.name, f"must match pattern {self.pattern!r}, got {text!r}")
        return text


class BoolVariable(_VariableBase):
    """Yes/no switch.  Defaults to ``False`` unless declared otherwise."""

    kind: Literal["bool"] = "bool"
    default: Union[bool, str] = False

    def coerce(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise ValidationError(self.name, f"expected a boolean, got {value!r}")


class ChoiceVariable(_VariableBase):
    """One value out of a fixed, ordered set of options."""

    kind: Literal["choice"] = "choice"
    choices: list[str] = Field(..., min_length=1)
    default: Optional[str] = None
    random_choices: list[str] = Field(
        default_factory=list,
        description="Subset of choices the default is drawn from with the run's seeded RNG",
    )

    @model_validator(mode="after")
    def _check_choices(self) -> "ChoiceVariable":
        if len(set(self.choices)) != len(self.choices):
            raise ValueError("choices must be unique")
        if (
            self.default is not None
            and "{" not in self.default
            and self.default not in self.choices
        ):
            raise ValueError(
                f"default {self.default!r} is not one of {self.choices}"
            )
        if self.default is not None and self.random_choices:
            raise ValueError("default and random_choices are mutually exclusive")
        outside = [value for value in self.random_choices if value not in self.choices]
        if outside:
            raise ValueError(f"random_choices {outside} are not among the choices")
        return self

    def coerce(self, value: Any) -> str:
        text = _scalar_text(self.name, value)
        if text not in self.choices:
            raise ValidationError(
                self.name, f"{text!r} is not one of {', '.join(self.choices)}"
            )
        return text


AnyVariable = Union[StringVariable, BoolVariable, ChoiceVariable]

VariableDefinition = Annotated[
    Union[StringVariable, BoolVariable, ChoiceVariable],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Resolved answers
# ---------------------------------------------------------------------------


class ResolvedConfig(BaseModel):
    """The final, immutable Answer Set for one scaffold run."""

    model_config = ConfigDict(frozen=True)

    values: dict[str, ScalarValue] = Field(default_factory=dict)
    seed: int = Field(..., description="Seed used for randomised defaults")

    def __getitem__(self, name: str) -> ScalarValue:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def as_context(self) -> dict[str, ScalarValue]:
        """Return a fresh mapping suitable for ``Template.render``."""
        return dict(self.values)


# ---------------------------------------------------------------------------
# Template corpus
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemplateFile:
    """One corpus entry together with its conditional rule."""

    source: str
    dest: str
    body: str
    templated: bool = True
    when: Optional[Predicate] = None
    when_source: str = ""


@dataclass(frozen=True)
class FileDescriptor:
    """A file selected for output, with its destination already rendered."""

    source: str
    dest: str
    body: str
    templated: bool = True


@dataclass(frozen=True)
class TemplateManifest:
    """Variable definitions and file rules loaded from ``scaffold.yml``."""

    variables: dict[str, AnyVariable]
    files: list[TemplateFile] = field(default_factory=list)
    resolution_order: list[str] = field(default_factory=list)
    template_dir: Optional[Path] = None
    templates_suffix: str = ".j2"

    def variable(self, name: str) -> AnyVariable:
        return self.variables[name]
