"""Shared utility functions for agent-scaffold.

Provides YAML I/O, ``key=value`` parsing for CLI data maps, and Rich-based
console reporting.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from agent_scaffold.errors import ScaffoldError

console = Console()


# ---------------------------------------------------------------------------
# YAML I/O
# ---------------------------------------------------------------------------


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file that must contain a top-level mapping.

    Raises:
        FileNotFoundError: If the file does not exist.
        ScaffoldError: If the document is not a mapping.
    """
    file_path = Path(path)
    data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ScaffoldError(f"Expected a mapping at the top of {file_path}")
    return data


def dump_yaml(data: dict[str, Any], header: str = "") -> str:
    """Serialise *data* as block-style YAML, keeping key order."""
    body = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)
    return f"{header}{body}"


# ---------------------------------------------------------------------------
# CLI data maps
# ---------------------------------------------------------------------------


def parse_data_pairs(pairs: list[str]) -> dict[str, str]:
    """Parse repeated ``--data key=value`` arguments.

    Examples::

        parse_data_pairs(["project_type=Python", "use_git=true"])
        -> {"project_type": "Python", "use_git": "true"}
    """
    out: dict[str, str] = {}
    for item in pairs:
        if "=" not in item:
            raise ScaffoldError(f"Invalid --data value (expected key=value): {item}")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise ScaffoldError(f"Invalid --data key in: {item}")
        if key in out:
            raise ScaffoldError(f"Duplicate --data key: {key}")
        out[key] = value
    return out


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, Any], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
