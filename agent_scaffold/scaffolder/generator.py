"""Main scaffolding orchestrator.

Takes a ``TemplateManifest`` and a ``ResolvedConfig`` and materialises the
selected files into a project directory.  Every file is rendered before the
first one is written, so a resolution or template error never leaves a
half-generated project behind.

The resolved answers are recorded in ``.scaffold-answers.yml`` inside the
project; :meth:`ProjectGenerator.update` replays them to regenerate the tree
byte-for-byte and reports what changed.
"""

from __future__ import annotations

import asyncio
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from agent_scaffold.config import DEFAULT_ANSWERS_FILE
from agent_scaffold.errors import ScaffoldError, TemplateError
from agent_scaffold.resolver import (
    FileDescriptor,
    ResolvedConfig,
    TemplateManifest,
    render,
    resolve,
    select_files,
)
from agent_scaffold.resolver.environment import create_environment
from agent_scaffold.utils import dump_yaml, load_yaml

ANSWERS_HEADER = (
    "# Recorded by agent-scaffold; `agent-scaffold update` replays these answers.\n"
    "# Edit values here only if you intend to change them on the next update.\n"
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class RenderedFile:
    """A selected file with its final content."""

    dest: str
    content: str
    source: str = ""


@dataclass
class UpdateReport:
    """What an update run did to an existing project."""

    added: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.changed or self.removed)


class RecordedAnswers(BaseModel):
    """The contents of a project's answers file."""

    values: dict[str, Any] = Field(default_factory=dict)
    seed: int = Field(..., ge=0)
    template: Optional[str] = None
    files: list[str] = Field(default_factory=list)


def load_recorded_answers(
    project_dir: str | Path, answers_file: str = DEFAULT_ANSWERS_FILE
) -> RecordedAnswers:
    """Read the Answer Set recorded when *project_dir* was generated.

    Raises:
        ScaffoldError: If the project has no answers file or it lacks a seed.
    """
    path = Path(project_dir) / answers_file
    if not path.is_file():
        raise ScaffoldError(
            f"No recorded answers at {path}; was this project generated by agent-scaffold?"
        )
    data = load_yaml(path)
    if "_seed" not in data:
        raise ScaffoldError(f"Answers file {path} has no _seed entry")
    return RecordedAnswers(
        values={key: value for key, value in data.items() if not str(key).startswith("_")},
        seed=data["_seed"],
        template=data.get("_template"),
        files=list(data.get("_files") or []),
    )


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Write the files selected for a resolved Answer Set.

    Given a manifest and resolved answers, produces:
    - every corpus file whose rule holds, with placeholders substituted
    - the answers file that makes later updates reproducible
    """

    def __init__(
        self,
        manifest: TemplateManifest,
        resolved: ResolvedConfig,
        *,
        answers_file: str = DEFAULT_ANSWERS_FILE,
        previous_files: Optional[list[str]] = None,
    ) -> None:
        self.manifest = manifest
        self.resolved = resolved
        self.answers_file = answers_file
        self.previous_files = list(previous_files or [])

    @classmethod
    def from_recorded(
        cls,
        manifest: TemplateManifest,
        recorded: RecordedAnswers,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        answers_file: str = DEFAULT_ANSWERS_FILE,
    ) -> "ProjectGenerator":
        """Rebuild a generator from a project's recorded answers.

        Answers for variables the template no longer declares are dropped;
        *overrides* replace recorded values.
        """
        answers = {
            name: value
            for name, value in recorded.values.items()
            if name in manifest.variables
        }
        answers.update(overrides or {})
        resolved = resolve(manifest, answers, seed=recorded.seed)
        return cls(
            manifest,
            resolved,
            answers_file=answers_file,
            previous_files=recorded.files,
        )

    # -- Public API --------------------------------------------------------

    def plan(self) -> list[RenderedFile]:
        """Select and render every file without touching the disk.

        Raises:
            TemplateError: If a template cannot be rendered or two files
                share a destination.
        """
        env = create_environment()
        planned: list[RenderedFile] = []
        seen: dict[str, str] = {}
        for descriptor in select_files(self.manifest, self.resolved):
            self._check_destination(descriptor, seen)
            seen[descriptor.dest] = descriptor.source
            planned.append(
                RenderedFile(
                    dest=descriptor.dest,
                    content=render(descriptor, self.resolved, env=env),
                    source=descriptor.source,
                )
            )
        return planned

    def answers_document(self, files: list[str]) -> str:
        """Return the YAML text of the answers file for this run."""
        data: dict[str, Any] = {}
        if self.manifest.template_dir is not None:
            data["_template"] = str(self.manifest.template_dir)
        data["_seed"] = self.resolved.seed
        data["_files"] = list(files)
        data.update(self.resolved.values)
        return dump_yaml(data, header=ANSWERS_HEADER)

    async def generate(self, output_dir: str | Path, *, overwrite: bool = False) -> list[Path]:
        """Generate the project into *output_dir*.

        Args:
            output_dir: Project root.  Created if missing.
            overwrite: Replace files that already exist instead of failing.

        Returns:
            Paths of the written template files, in corpus order.

        Raises:
            ScaffoldError: If a target file exists and *overwrite* is false.
        """
        root = Path(output_dir)
        planned = self.plan()

        if not overwrite:
            for item in planned:
                if (root / item.dest).exists():
                    raise ScaffoldError(
                        f"Refusing to overwrite existing file {root / item.dest} "
                        "(pass --overwrite to replace it)"
                    )

        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
        written: list[Path] = []
        for item in planned:
            out = root / item.dest
            await asyncio.to_thread(_write_file, out, item.content)
            written.append(out)

        await asyncio.to_thread(
            _write_file,
            root / self.answers_file,
            self.answers_document([item.dest for item in planned]),
        )
        return written

    async def update(self, project_dir: str | Path) -> UpdateReport:
        """Regenerate an existing project and report the differences.

        Files whose content is already identical are left untouched.  Files
        recorded by the previous run whose rule no longer holds are deleted.
        """
        root = Path(project_dir)
        planned = self.plan()
        report = UpdateReport()

        for item in planned:
            target = root / item.dest
            if not target.exists():
                report.added.append(item.dest)
            elif await asyncio.to_thread(target.read_bytes) == item.content.encode("utf-8"):
                report.unchanged.append(item.dest)
                continue
            else:
                report.changed.append(item.dest)
            await asyncio.to_thread(_write_file, target, item.content)

        current = {item.dest for item in planned}
        for dest in self.previous_files:
            if dest in current or not _is_inside_project(dest):
                continue
            stale = root / dest
            if stale.is_file():
                await asyncio.to_thread(stale.unlink)
                report.removed.append(dest)

        await asyncio.to_thread(
            _write_file,
            root / self.answers_file,
            self.answers_document([item.dest for item in planned]),
        )
        return report

    # -- Destination checks ------------------------------------------------

    def _check_destination(self, descriptor: FileDescriptor, seen: dict[str, str]) -> None:
        dest = descriptor.dest
        if dest in ("", ".") or dest == ".." or dest.startswith("../"):
            raise TemplateError(
                descriptor.source, dest, "destination escapes the output directory"
            )
        if dest == self.answers_file:
            raise TemplateError(descriptor.source, dest, "destination collides with the answers file")
        if dest in seen:
            raise TemplateError(
                descriptor.source, dest, f"destination already produced by {seen[dest]}"
            )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _is_inside_project(dest: str) -> bool:
    """True when a recorded relative path stays within the project directory."""
    normalised = posixpath.normpath(dest.replace("\\", "/"))
    # Drive letters ("C:/...") count as absolute too.
    if normalised.startswith("/") or ":" in normalised.split("/")[0]:
        return False
    return normalised not in ("", ".", "..") and not normalised.startswith("../")


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")
