"""agent-scaffold configuration.

Typed run settings for the scaffolder.  All settings use Pydantic v2 models
so they can be validated at construction time and serialised to/from JSON or
environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from agent_scaffold.errors import ScaffoldError


DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates" / "default"
DEFAULT_ANSWERS_FILE = ".scaffold-answers.yml"

_TRUE_ENV_VALUES = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Settings for one scaffold run.

    Instances are typically created once by the CLI entry point and then
    passed to the generator.  CLI flags override values read from the
    environment.
    """

    template_dir: Path = Field(default=DEFAULT_TEMPLATE_DIR)
    output_dir: Path = Field(default=Path("."))
    answers_file: str = Field(
        default=DEFAULT_ANSWERS_FILE,
        min_length=1,
        description="Answers record written inside the generated project",
    )
    seed: Optional[int] = Field(
        default=None, ge=0, description="Seed for randomised defaults; drawn when unset"
    )
    overwrite: bool = Field(default=False, description="Replace files that already exist")

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def answers_path(self) -> Path:
        """Path of the recorded Answer Set inside the output directory."""
        return self.output_dir / self.answers_file

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            SCAFFOLD_TEMPLATE_DIR, SCAFFOLD_OUTPUT_DIR, SCAFFOLD_ANSWERS_FILE,
            SCAFFOLD_SEED, SCAFFOLD_OVERWRITE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SCAFFOLD_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["SCAFFOLD_TEMPLATE_DIR"])
        if os.environ.get("SCAFFOLD_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["SCAFFOLD_OUTPUT_DIR"])
        if os.environ.get("SCAFFOLD_ANSWERS_FILE"):
            kwargs["answers_file"] = os.environ["SCAFFOLD_ANSWERS_FILE"]
        if os.environ.get("SCAFFOLD_SEED"):
            try:
                kwargs["seed"] = int(os.environ["SCAFFOLD_SEED"])
            except ValueError as exc:
                raise ScaffoldError(
                    f"SCAFFOLD_SEED must be an integer, got {os.environ['SCAFFOLD_SEED']!r}"
                ) from exc
        if os.environ.get("SCAFFOLD_OVERWRITE"):
            kwargs["overwrite"] = os.environ["SCAFFOLD_OVERWRITE"].strip().lower() in _TRUE_ENV_VALUES
        return cls(**kwargs)
