"""Interactive construction of an Answer Set.

Asks one question per variable, in declaration order, offering the default
the resolver would compute from the answers given so far.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from agent_scaffold.errors import ValidationError
from agent_scaffold.resolver import BoolVariable, ChoiceVariable, TemplateManifest, resolve
from agent_scaffold.utils import console as default_console


def prompt_answers(
    manifest: TemplateManifest,
    preset: Optional[Mapping[str, Any]] = None,
    *,
    seed: int,
    console: Optional[Console] = None,
) -> dict[str, Any]:
    """Prompt for every variable not already in *preset*.

    Preset values are validated up front (an invalid preset is fatal, not
    re-asked).  Invalid typed input is reported and asked again.

    Returns:
        The complete answer mapping, ready for :func:`resolve`.
    """
    console = console or default_console
    answers: dict[str, Any] = dict(preset or {})
    resolve(manifest, answers, seed=seed, partial=True)

    for name, definition in manifest.variables.items():
        if name in answers:
            continue
        preview = resolve(manifest, answers, seed=seed, partial=True)
        answers[name] = _ask(definition, preview.values.get(name), console)
    return answers


def _ask(definition: Any, default: Any, console: Console) -> Any:
    question = definition.help or definition.name

    if isinstance(definition, BoolVariable):
        return Confirm.ask(question, default=bool(default), console=console)

    kwargs: dict[str, Any] = {"console": console}
    if default is not None:
        kwargs["default"] = default
    if isinstance(definition, ChoiceVariable):
        kwargs["choices"] = definition.choices

    while True:
        raw = Prompt.ask(question, **kwargs)
        try:
            return definition.coerce(raw)
        except ValidationError as exc:
            console.print(f"[bold red]{exc.constraint}[/bold red]")
