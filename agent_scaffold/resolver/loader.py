"""Load variable definitions and conditional rules from a template directory.

A template directory holds a ``scaffold.yml`` plus the template corpus::

    project_name:
      type: str
      help: Project name
      default: my-project
      validator: non_empty

    project_type:
      type: str
      choices: [Python, PHP, Swift, Generic]
      default: Python

    _templates_suffix: .j2
    _files:
      - src: CLAUDE.md.j2
        when: ai_tool in ["Claude", "All"]

Top-level keys starting with ``_`` are settings; everything else is a
question.  Every reference (defaults, predicates, destination paths) is
checked against the declared variables here, so that resolution and
selection never meet an unknown name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from jinja2 import meta
from jinja2.exceptions import TemplateSyntaxError
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from agent_scaffold.errors import TemplateError, ValidationError
from agent_scaffold.resolver.environment import create_environment
from agent_scaffold.resolver.models import (
    AnyVariable,
    TemplateFile,
    TemplateManifest,
    VariableDefinition,
)
from agent_scaffold.resolver.predicates import PredicateSyntaxError, parse_predicate


MANIFEST_NAMES: tuple[str, ...] = ("scaffold.yml", "scaffold.yaml")
DEFAULT_SUFFIX = ".j2"

_KNOWN_SETTINGS = frozenset({"_templates_suffix", "_files"})
_VARIABLE_ADAPTER: TypeAdapter[Any] = TypeAdapter(VariableDefinition)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_manifest(template_dir: str | Path) -> TemplateManifest:
    """Read ``scaffold.yml`` and every corpus file under *template_dir*.

    Raises:
        FileNotFoundError: If the directory has no manifest file.
        ValidationError: For malformed variable definitions or cyclic defaults.
        TemplateError: For rules or defaults referencing undeclared names.
    """
    root = Path(template_dir)
    manifest_path = _find_manifest(root)
    data = yaml.safe_load(manifest_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValidationError(manifest_path.name, "manifest must be a mapping")

    corpus: dict[str, str] = {}
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path == manifest_path:
            continue
        rel = path.relative_to(root).as_posix()
        corpus[rel] = path.read_text(encoding="utf-8")

    return build_manifest(data, corpus, template_dir=root)


def build_manifest(
    data: Mapping[str, Any],
    corpus: Mapping[str, str],
    *,
    template_dir: Path | None = None,
) -> TemplateManifest:
    """Build a manifest from already-parsed YAML data and corpus contents.

    Args:
        data: The parsed ``scaffold.yml`` mapping.
        corpus: ``{relative_path: text}`` for every template file.
        template_dir: Where the corpus came from, recorded for update mode.
    """
    env = create_environment()

    unknown_settings = sorted(
        str(key) for key in data if str(key).startswith("_") and key not in _KNOWN_SETTINGS
    )
    if unknown_settings:
        raise ValidationError(unknown_settings[0], "unknown manifest setting")

    variables: dict[str, AnyVariable] = {}
    for key, entry in data.items():
        name = str(key)
        if name.startswith("_"):
            continue
        variables[name] = _parse_variable(name, entry)

    dependencies = {
        name: _default_dependencies(definition, variables, env)
        for name, definition in variables.items()
    }
    order = _resolution_order(list(variables), dependencies)

    suffix = str(data.get("_templates_suffix", DEFAULT_SUFFIX))
    files = _build_files(data.get("_files") or [], corpus, variables, suffix, env)

    return TemplateManifest(
        variables=variables,
        files=files,
        resolution_order=order,
        template_dir=template_dir,
        templates_suffix=suffix,
    )


# ---------------------------------------------------------------------------
# Variable definitions
# ---------------------------------------------------------------------------


def _find_manifest(root: Path) -> Path:
    for name in MANIFEST_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"No scaffold.yml found in template directory: {root}")


def _parse_variable(name: str, entry: Any) -> AnyVariable:
    """Turn one question entry into a typed definition.

    A scalar entry is shorthand for its default; ``type: bool`` selects a
    boolean, a ``choices`` list selects a choice variable.
    """
    if not isinstance(entry, dict):
        entry = {"default": entry, "type": "bool" if isinstance(entry, bool) else "str"}

    raw = dict(entry)
    declared_type = raw.pop("type", "str")
    if "choices" in raw:
        kind = "choice"
        if not isinstance(raw["choices"], list):
            raise ValidationError(name, "choices must be a list")
        raw["choices"] = [str(choice) for choice in raw["choices"]]
        if raw.get("default") is not None:
            raw["default"] = str(raw["default"])
        if isinstance(raw.get("random_choices"), list):
            raw["random_choices"] = [str(choice) for choice in raw["random_choices"]]
    elif declared_type in ("bool", "str"):
        kind = declared_type
        default = raw.get("default")
        if kind == "str" and isinstance(default, (int, float)) and not isinstance(default, bool):
            raw["default"] = str(default)
    else:
        raise ValidationError(name, f"unsupported type {declared_type!r} (use str or bool)")

    try:
        return _VARIABLE_ADAPTER.validate_python({**raw, "name": name, "kind": kind})
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != kind)
        detail = first.get("msg", "invalid definition")
        if location:
            detail = f"{location}: {detail}"
        raise ValidationError(name, detail) from exc


def _default_dependencies(
    definition: AnyVariable,
    variables: Mapping[str, AnyVariable],
    env: Any,
) -> list[str]:
    """Return the variables a computed default reads, in a stable order."""
    source = definition.default_source()
    if source is None:
        return []
    try:
        referenced = meta.find_undeclared_variables(env.parse(source))
    except TemplateSyntaxError as exc:
        raise ValidationError(definition.name, f"invalid default expression: {exc.message}") from exc
    referenced -= set(env.globals)
    undeclared = sorted(referenced - set(variables))
    if undeclared:
        raise ValidationError(
            definition.name, f"default references undeclared variable '{undeclared[0]}'"
        )
    return sorted(referenced)


def _resolution_order(
    declared: list[str], dependencies: Mapping[str, list[str]]
) -> list[str]:
    """Order variables so every default is computed after what it reads.

    Depth-first in declaration order, which keeps the result deterministic
    and as close to the declared order as the dependencies allow.
    """
    order: list[str] = []
    done: set[str] = set()
    stack: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in stack:
            cycle = " -> ".join(stack[stack.index(name):] + [name])
            raise ValidationError(name, f"cyclic default dependency: {cycle}")
        stack.append(name)
        for dependency in dependencies[name]:
            visit(dependency)
        stack.pop()
        done.add(name)
        order.append(name)

    for name in declared:
        visit(name)
    return order


# ---------------------------------------------------------------------------
# Conditional rules
# ---------------------------------------------------------------------------


def _build_files(
    rules: Any,
    corpus: Mapping[str, str],
    variables: Mapping[str, AnyVariable],
    suffix: str,
    env: Any,
) -> list[TemplateFile]:
    if not isinstance(rules, list):
        raise TemplateError("scaffold.yml", "_files", "_files must be a list of rules")

    by_source: dict[str, dict[str, Any]] = {}
    for rule in rules:
        if not isinstance(rule, dict) or "src" not in rule:
            raise TemplateError("scaffold.yml", str(rule), "each rule needs a 'src' key")
        source = str(rule["src"])
        if source not in corpus:
            raise TemplateError(source, source, "rule names a file missing from the corpus")
        if source in by_source:
            raise TemplateError(source, source, "file has more than one rule")
        by_source[source] = rule

    files: list[TemplateFile] = []
    for source in sorted(corpus):
        rule = by_source.get(source, {})
        templated = source.endswith(suffix)
        default_dest = source[: -len(suffix)] if templated else source
        dest = str(rule.get("dest") or default_dest)
        _check_names(source, dest, variables, env)

        when_source = rule.get("when")
        predicate = None
        if when_source is not None:
            try:
                predicate = parse_predicate(when_source, env)
            except PredicateSyntaxError as exc:
                raise TemplateError(source, str(when_source), str(exc)) from exc
            undeclared = sorted(predicate.variables() - set(variables))
            if undeclared:
                raise TemplateError(
                    source, undeclared[0], f"predicate {when_source!r} references an undeclared variable"
                )

        files.append(
            TemplateFile(
                source=source,
                dest=dest,
                body=corpus[source],
                templated=templated,
                when=predicate,
                when_source="" if when_source is None else str(when_source),
            )
        )
    return files


def _check_names(source: str, dest: str, variables: Mapping[str, Any], env: Any) -> None:
    """Ensure a destination path template only uses declared variables."""
    try:
        referenced = meta.find_undeclared_variables(env.parse(dest))
    except TemplateSyntaxError as exc:
        raise TemplateError(source, dest, f"invalid destination path: {exc.message}") from exc
    undeclared = sorted(referenced - set(variables) - set(env.globals))
    if undeclared:
        raise TemplateError(source, undeclared[0], "destination path references an undeclared variable")
