"""agent-scaffold scaffolder -- writes resolved templates to disk.

Quick usage::

    from agent_scaffold.resolver import load_manifest, resolve
    from agent_scaffold.scaffolder import ProjectGenerator

    manifest = load_manifest("templates/default")
    resolved = resolve(manifest, {"project_type": "Python", "ai_tool": "Claude"}, seed=1)
    generator = ProjectGenerator(manifest, resolved)
    written = await generator.generate("/tmp/my-project")
"""

from agent_scaffold.scaffolder.generator import (
    ProjectGenerator,
    RecordedAnswers,
    RenderedFile,
    UpdateReport,
    load_recorded_answers,
)
from agent_scaffold.scaffolder.prompts import prompt_answers

__all__ = [
    "ProjectGenerator",
    "RecordedAnswers",
    "RenderedFile",
    "UpdateReport",
    "load_recorded_answers",
    "prompt_answers",
]
