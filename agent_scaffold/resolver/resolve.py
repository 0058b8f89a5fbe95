"""Turn a (possibly partial) Answer Set into a complete ``ResolvedConfig``."""

from __future__ import annotations

import random
from typing import Any, Mapping, Optional

from agent_scaffold.errors import ValidationError
from agent_scaffold.resolver.environment import RENDER_ERRORS, create_environment, error_detail
from agent_scaffold.resolver.models import (
    AnyVariable,
    ResolvedConfig,
    ScalarValue,
    TemplateManifest,
)


def new_seed() -> int:
    """Draw a fresh seed for runs that did not pin one."""
    return random.SystemRandom().randrange(2**32)


def resolve(
    manifest: TemplateManifest,
    answers: Mapping[str, Any],
    *,
    seed: Optional[int] = None,
    partial: bool = False,
) -> ResolvedConfig:
    """Resolve every declared variable.

    Supplied answers are coerced and validated; missing ones take their
    default, computed in dependency order.  Randomised defaults draw from a
    ``random.Random`` seeded with *seed* (a fresh seed is drawn and recorded
    when none is given), so a run can always be reproduced.

    Args:
        manifest: Loaded definitions and rules.
        answers: User-supplied values keyed by variable name.
        seed: Seed for randomised defaults.
        partial: Skip variables that cannot be resolved yet instead of
            failing.  Used by the interactive prompt to preview defaults.

    Raises:
        ValidationError: On unknown answer keys, values that violate their
            constraint, or variables with neither a value nor a default.
    """
    unknown = sorted(set(answers) - set(manifest.variables))
    if unknown:
        raise ValidationError(unknown[0], "not a declared variable")

    if seed is None:
        seed = new_seed()
    rng = random.Random(seed)
    env = create_environment()

    resolved: dict[str, ScalarValue] = {}
    for name in manifest.resolution_order:
        definition = manifest.variables[name]
        if name in answers:
            resolved[name] = definition.coerce(answers[name])
            continue
        try:
            resolved[name] = _compute_default(definition, resolved, rng, env)
        except ValidationError:
            if not partial:
                raise

    ordered = {name: resolved[name] for name in manifest.variables if name in resolved}
    return ResolvedConfig(values=ordered, seed=seed)


def _compute_default(
    definition: AnyVariable,
    resolved: Mapping[str, ScalarValue],
    rng: random.Random,
    env: Any,
) -> ScalarValue:
    random_choices = getattr(definition, "random_choices", None)
    if random_choices:
        return definition.coerce(rng.choice(random_choices))

    default = getattr(definition, "default", None)
    if default is None:
        raise ValidationError(definition.name, "no value supplied and no default declared")
    if not isinstance(default, str):
        return definition.coerce(default)

    try:
        rendered = env.from_string(default).render(**resolved)
    except RENDER_ERRORS as exc:
        raise ValidationError(
            definition.name, f"default could not be computed: {error_detail(exc)}"
        ) from exc
    return definition.coerce(rendered)
