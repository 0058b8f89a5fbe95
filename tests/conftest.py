"""Shared pytest fixtures for the agent-scaffold test suite.

Provides reusable fixtures for:
- A small in-memory manifest (definitions, rules, corpus)
- Writing that manifest to a real template directory
- The bundled default template
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml

from agent_scaffold.config import DEFAULT_TEMPLATE_DIR
from agent_scaffold.resolver import TemplateManifest, build_manifest, load_manifest


# ---------------------------------------------------------------------------
# Minimal manifest
# ---------------------------------------------------------------------------

MINI_DATA: dict[str, Any] = {
    "project_name": {
        "type": "str",
        "help": "Project name",
        "default": "demo",
        "validator": "non_empty",
    },
    "project_slug": {
        "type": "str",
        "help": "Project slug",
        "default": "{{ project_name | slugify }}",
        "validator": "slug",
    },
    "project_type": {
        "type": "str",
        "help": "Project type",
        "choices": ["Python", "PHP", "Swift"],
        "default": "Python",
    },
    "ai_tool": {
        "type": "str",
        "help": "AI tool",
        "choices": ["Claude", "Codex", "All"],
        "default": "Claude",
    },
    "author_name": {
        "type": "str",
        "help": "Author",
        "random_choices": ["Ada", "Linus", "Grace", "Barbara"],
    },
    "use_git": {"type": "bool", "help": "Use git?", "default": True},
    "include_testing": {"type": "bool", "help": "Add tests?"},
    "_files": [
        {"src": "CLAUDE.md.j2", "when": 'ai_tool in ["Claude", "All"]'},
        {"src": "AGENTS.md.j2", "when": 'ai_tool in ["Codex", "All"]'},
        {"src": "pyproject.toml.j2", "when": 'project_type == "Python"'},
        {"src": "composer.json.j2", "when": 'project_type == "PHP"'},
        {"src": "gitignore.j2", "dest": ".gitignore", "when": "use_git"},
    ],
}

MINI_CORPUS: dict[str, str] = {
    "AGENTS.md.j2": "Agent rules for {{ project_slug }}\n",
    "CLAUDE.md.j2": "Claude rules for {{ project_slug }}\n",
    "LICENSE": "MIT License\n",
    "README.md.j2": "# {{ project_name }}\nby {{ author_name }}\n",
    "composer.json.j2": '{"name": "{{ project_slug }}"}\n',
    "gitignore.j2": (
        "{% if project_type == 'Python' %}\n__pycache__/\n{% endif %}\n.DS_Store\n"
    ),
    "pyproject.toml.j2": '[project]\nname = "{{ project_slug }}"\n',
}


@pytest.fixture
def mini_data() -> dict[str, Any]:
    """A fresh copy of the minimal ``scaffold.yml`` mapping."""
    return copy.deepcopy(MINI_DATA)


@pytest.fixture
def mini_corpus() -> dict[str, str]:
    """A fresh copy of the minimal template corpus."""
    return dict(MINI_CORPUS)


@pytest.fixture
def mini_manifest(mini_data: dict[str, Any], mini_corpus: dict[str, str]) -> TemplateManifest:
    """The minimal manifest, built in memory."""
    return build_manifest(mini_data, mini_corpus)


# ---------------------------------------------------------------------------
# Template directories
# ---------------------------------------------------------------------------


def _write_template_dir(root: Path, data: dict[str, Any], corpus: dict[str, str]) -> Path:
    """Write *data* as ``scaffold.yml`` and every corpus file under *root*."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "scaffold.yml").write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    for rel, text in corpus.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def mini_template_dir(tmp_path: Path, mini_data, mini_corpus) -> Path:
    """The minimal manifest written to a real template directory."""
    return _write_template_dir(tmp_path / "template", mini_data, mini_corpus)


@pytest.fixture
def template_dir_factory(tmp_path: Path):
    """Build a template directory from a manifest mapping and a corpus."""

    def _factory(data: dict[str, Any], corpus: dict[str, str], name: str = "custom") -> Path:
        return _write_template_dir(tmp_path / name, data, corpus)

    return _factory


@pytest.fixture
def default_manifest() -> TemplateManifest:
    """The bundled default template."""
    return load_manifest(DEFAULT_TEMPLATE_DIR)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every ``SCAFFOLD_*`` variable so config defaults apply."""
    for name in (
        "SCAFFOLD_TEMPLATE_DIR",
        "SCAFFOLD_OUTPUT_DIR",
        "SCAFFOLD_ANSWERS_FILE",
        "SCAFFOLD_SEED",
        "SCAFFOLD_OVERWRITE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def read_tree():
    """Return a helper mapping every file under a root to its bytes."""

    def _read(root: Path) -> dict[str, bytes]:
        return {
            path.relative_to(root).as_posix(): path.read_bytes()
            for path in sorted(root.rglob("*"))
            if path.is_file()
        }

    return _read
