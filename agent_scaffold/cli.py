"""agent-scaffold command line.

Usage::

    agent-scaffold copy ./my-project --data project_type=Python --data ai_tool=Claude
    agent-scaffold copy ./my-project --interactive
    agent-scaffold copy ./my-project --data-file answers.yml --seed 7 --pretend
    agent-scaffold update ./my-project
    agent-scaffold update ./my-project --data include_testing=true

``python -m agent_scaffold.cli`` works the same way.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from rich.panel import Panel
from rich.table import Table

from agent_scaffold.config import Config
from agent_scaffold.errors import ScaffoldError
from agent_scaffold.resolver import load_manifest, new_seed, resolve
from agent_scaffold.scaffolder import (
    ProjectGenerator,
    RenderedFile,
    UpdateReport,
    load_recorded_answers,
    prompt_answers,
)
from agent_scaffold.utils import (
    console,
    load_yaml,
    parse_data_pairs,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent-scaffold",
        description="Generate AI-assistant project scaffolds from templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  agent-scaffold copy ./my-project --data project_type=Python\n"
            "  agent-scaffold copy ./my-project --interactive\n"
            "  agent-scaffold update ./my-project\n"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("destination", help="Project directory to generate or update")
    common.add_argument(
        "--template", "-t",
        default=None,
        help="Template directory containing scaffold.yml (default: bundled template)",
    )
    common.add_argument(
        "--data", "-d",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Answer for one variable (repeatable)",
    )
    common.add_argument(
        "--answers-file",
        default=None,
        help="Name of the answers record inside the project (default: .scaffold-answers.yml)",
    )
    common.add_argument(
        "--pretend",
        action="store_true",
        help="Show what would be written without touching the disk",
    )

    copy = subparsers.add_parser("copy", parents=[common], help="Generate a new project")
    copy.add_argument("--data-file", default=None, help="YAML file with answers")
    copy.add_argument("--seed", type=int, default=None, help="Seed for randomised defaults")
    copy.add_argument(
        "--interactive", "-i",
        action="store_true",
        help="Prompt for every variable not given with --data",
    )
    copy.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace files that already exist in the destination",
    )

    subparsers.add_parser(
        "update", parents=[common], help="Regenerate a project from its recorded answers"
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> Config:
    """Environment first, then CLI flags on top."""
    updates: dict[str, Any] = {"output_dir": Path(args.destination)}
    if args.template:
        updates["template_dir"] = Path(args.template)
    if args.answers_file:
        updates["answers_file"] = args.answers_file
    if getattr(args, "seed", None) is not None:
        updates["seed"] = args.seed
    if getattr(args, "overwrite", False):
        updates["overwrite"] = True
    try:
        config = Config.from_env()
        return Config(**{**config.model_dump(), **updates})
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ScaffoldError(f"Invalid setting {field}: {first.get('msg')}") from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_copy(args: argparse.Namespace, config: Config) -> None:
    manifest = load_manifest(config.template_dir)

    preset: dict[str, Any] = {}
    if args.data_file:
        preset.update(load_yaml(args.data_file))
    preset.update(parse_data_pairs(args.data))

    seed = config.seed if config.seed is not None else new_seed()
    answers = prompt_answers(manifest, preset, seed=seed) if args.interactive else preset
    resolved = resolve(manifest, answers, seed=seed)
    generator = ProjectGenerator(manifest, resolved, answers_file=config.answers_file)

    print_summary_table(dict(resolved.values), title="Resolved answers")
    if args.pretend:
        _print_plan(generator.plan())
        return

    written = asyncio.run(generator.generate(config.output_dir, overwrite=config.overwrite))
    print_success(f"Generated {len(written)} file(s) in {config.output_dir}")
    console.print(f"[dim]Answers recorded in {config.answers_path}[/dim]")


def _run_update(args: argparse.Namespace, config: Config) -> None:
    recorded = load_recorded_answers(config.output_dir, config.answers_file)

    template_dir = config.template_dir
    if not args.template and recorded.template:
        if Path(recorded.template).is_dir():
            template_dir = Path(recorded.template)
        else:
            print_warning(
                f"Recorded template {recorded.template} not found; using {template_dir}"
            )
    manifest = load_manifest(template_dir)

    generator = ProjectGenerator.from_recorded(
        manifest,
        recorded,
        overrides=parse_data_pairs(args.data),
        answers_file=config.answers_file,
    )
    if args.pretend:
        _print_plan(generator.plan())
        return

    report = asyncio.run(generator.update(config.output_dir))
    _print_update_report(report)
    if report.has_changes:
        print_success(f"Updated {config.output_dir}")
    else:
        print_success(f"Already up to date: {config.output_dir}")


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _print_plan(planned: list[RenderedFile]) -> None:
    table = Table(title="Files to write", show_header=True, header_style="bold cyan")
    table.add_column("Destination")
    table.add_column("Template", style="dim")
    table.add_column("Bytes", justify="right")
    for item in planned:
        table.add_row(item.dest, item.source, str(len(item.content.encode("utf-8"))))
    console.print(table)


def _print_update_report(report: UpdateReport) -> None:
    lines = []
    for label, style, paths in (
        ("added", "green", report.added),
        ("changed", "yellow", report.changed),
        ("removed", "red", report.removed),
    ):
        lines.extend(f"[{style}]{label:>8}[/{style}] {path}" for path in paths)
    lines.append(f"[dim]{len(report.unchanged)} file(s) unchanged[/dim]")
    console.print(Panel("\n".join(lines), title="[bold]Update[/bold]", border_style="cyan"))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``agent-scaffold``."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _config_from_args(args)
        if args.command == "copy":
            _run_copy(args, config)
        else:
            _run_update(args, config)
    except (ScaffoldError, FileNotFoundError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
