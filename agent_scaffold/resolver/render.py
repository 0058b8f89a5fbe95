"""File selection and placeholder substitution.

Selection only evaluates predicates; rendering only substitutes values.
Keeping them apart means inclusion logic can be tested without touching
template bodies, and vice versa.
"""

from __future__ import annotations

import posixpath
import re
from typing import Any, Optional

from jinja2 import meta
from jinja2.exceptions import TemplateSyntaxError

from agent_scaffold.errors import TemplateError
from agent_scaffold.resolver.environment import RENDER_ERRORS, create_environment, error_detail
from agent_scaffold.resolver.models import (
    FileDescriptor,
    ResolvedConfig,
    TemplateManifest,
)

# A ``{{ name }}`` that survived rendering, e.g. from a ``{% raw %}`` block.
_RESIDUAL_PLACEHOLDER = re.compile(r"\{\{\s*[A-Za-z_][A-Za-z0-9_.]*\s*\}\}")


def select_files(
    manifest: TemplateManifest, resolved: ResolvedConfig
) -> list[FileDescriptor]:
    """Return the files whose rule holds, in corpus order.

    Unconditional files are always included.  Destination paths are
    rendered with the resolved values.
    """
    env = create_environment()
    context = resolved.as_context()
    selected: list[FileDescriptor] = []
    for entry in manifest.files:
        if entry.when is not None and not entry.when.evaluate(context):
            continue
        dest = entry.dest
        if "{" in dest:
            try:
                dest = env.from_string(dest).render(**context)
            except RENDER_ERRORS as exc:
                raise TemplateError(
                    entry.source, entry.dest, f"destination failed to render: {error_detail(exc)}"
                ) from exc
        selected.append(
            FileDescriptor(
                source=entry.source,
                dest=_normalise_dest(dest),
                body=entry.body,
                templated=entry.templated,
            )
        )
    return selected


def render(
    descriptor: FileDescriptor,
    resolved: ResolvedConfig,
    *,
    env: Optional[Any] = None,
) -> str:
    """Substitute every placeholder in *descriptor* with its resolved value.

    Raises:
        TemplateError: If the body references a variable absent from
            *resolved*, is not valid Jinja, or still contains a placeholder
            after rendering.
    """
    if not descriptor.templated:
        return descriptor.body

    env = env or create_environment()
    try:
        parsed = env.parse(descriptor.body)
    except TemplateSyntaxError as exc:
        raise TemplateError(
            descriptor.source, f"line {exc.lineno}", f"template syntax error: {exc.message}"
        ) from exc

    missing = sorted(
        meta.find_undeclared_variables(parsed) - set(resolved.values) - set(env.globals)
    )
    if missing:
        raise TemplateError(
            descriptor.source, missing[0], "placeholder references an unresolved variable"
        )

    try:
        text = env.from_string(parsed).render(**resolved.as_context())
    except RENDER_ERRORS as exc:
        raise TemplateError(
            descriptor.source, error_detail(exc), "template failed to render"
        ) from exc

    leftover = _RESIDUAL_PLACEHOLDER.search(text)
    if leftover:
        raise TemplateError(
            descriptor.source, leftover.group(0), "unresolved placeholder left in output"
        )
    return text


def _normalise_dest(dest: str) -> str:
    return posixpath.normpath(dest.replace("\\", "/")).lstrip("/")
