from __future__ import annotations

"""
Typer CLI entry point.

- `neurolint analyze TARGET` analyzes a file, or every source file under a
  directory, and prints rich tables (or the per-file JSON with --json).
- `neurolint fix TARGET` runs the layers in fix mode and writes changed files
  unless --dry-run.
- `neurolint layers` lists the eight layers and their rules.

Exit codes: 0 clean, 1 when any error-severity issue or failed file was
reported, 2 for a bad --layers value or configuration.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import typer
from rich.console import Console
from rich.logging import RichHandler

from neurolint.adapter import CoreAdapter
from neurolint.config import Config, load_config
from neurolint.errors import ConfigError, InvalidLayerError
from neurolint.layers.registry import layer_info
from neurolint.parser import language_for_filename
from neurolint.reporting.console import print_fix_report, print_layers, print_report
from neurolint.selector import AUTO, parse_layers, validate_layers
from neurolint.traversal import find_source_files

logger = logging.getLogger(__name__)

app = typer.Typer(help="NeuroLint - layered analysis and fixes for JavaScript, TypeScript and React/Next.js.")

EXIT_ISSUES = 1
EXIT_USAGE = 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_layers_option(value: str) -> Union[str, List[int]]:
    """Validate --layers up front so a bad value is a usage error, not a per-file failure."""
    try:
        parsed = parse_layers(value)
        if parsed == AUTO:
            return AUTO
        return validate_layers(parsed)
    except InvalidLayerError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc


def _load_config(path: Optional[Path]) -> Config:
    candidate = path if path is not None else Path.cwd() / "pyproject.toml"
    try:
        return load_config(candidate)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc


def _collect_files(target: Path) -> List[Path]:
    """
    Resolve a target path into the files to analyze.

    - A single file is taken as is when its extension has a grammar.
    - A directory is walked with traversal.find_source_files(), JSON included.
    """
    if target.is_file():
        if language_for_filename(target.name) is None:
            raise typer.BadParameter(f"Unsupported file type: {target.name}")
        return [target]

    if target.is_dir():
        files = find_source_files(target, include_json=True)
        if not files:
            logger.warning("No source files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


def _exit_code(payloads: List[Dict[str, Any]]) -> int:
    for payload in payloads:
        if not payload["success"]:
            return EXIT_ISSUES
        if any(issue["severity"] == "error" for issue in payload["issues"]):
            return EXIT_ISSUES
    return 0


def _echo_json(target: Path, payloads: List[Dict[str, Any]]) -> None:
    data: Any = payloads[0] if target.is_file() and len(payloads) == 1 else payloads
    typer.echo(json.dumps(data, indent=2))


def _base_dir(target: Path) -> Path:
    return target if target.is_dir() else target.parent


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="File or directory to analyze.",
    ),
    layers: str = typer.Option(AUTO, "--layers", "-l", help='Layers to run: "auto" or a list such as "1,2,3".'),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON instead of tables."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and remediation hints."),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        help="pyproject.toml with a [tool.neurolint] table (default: ./pyproject.toml).",
    ),
) -> None:
    """Analyze a single file or every source file under a directory."""
    _configure_logging(verbose)
    selection = _parse_layers_option(layers)
    adapter = CoreAdapter(_load_config(config_path))
    files = _collect_files(target)

    payloads = [adapter.process_file(path, layers=selection) for path in files]

    if as_json:
        _echo_json(target, payloads)
    else:
        print_report(payloads, base=_base_dir(target), verbose=verbose)

    code = _exit_code(payloads)
    if code:
        raise typer.Exit(code=code)


@app.command()
def fix(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="File or directory to fix.",
    ),
    layers: str = typer.Option(AUTO, "--layers", "-l", help='Layers to run: "auto" or a list such as "1,2,3".'),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report fixes without writing files."),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON instead of tables."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        help="pyproject.toml with a [tool.neurolint] table (default: ./pyproject.toml).",
    ),
) -> None:
    """Apply fixes layer by layer and write the changed files."""
    _configure_logging(verbose)
    selection = _parse_layers_option(layers)
    adapter = CoreAdapter(_load_config(config_path))
    files = _collect_files(target)

    payloads = [
        adapter.process_file(path, layers=selection, apply_fixes=True, dry_run=dry_run) for path in files
    ]

    if as_json:
        _echo_json(target, payloads)
    else:
        print_fix_report(payloads, base=_base_dir(target), dry_run=dry_run)

    if any(not payload["success"] for payload in payloads):
        raise typer.Exit(code=EXIT_ISSUES)


@app.command("layers")
def list_layers(
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON instead of a table."),
) -> None:
    """List the analysis layers and their rules."""
    info = layer_info()
    if as_json:
        typer.echo(json.dumps(info, indent=2))
    else:
        print_layers(info)


def main() -> None:
    """Entry point for the `neurolint` console script."""
    app()


if __name__ == "__main__":
    main()
