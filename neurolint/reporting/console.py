# Rich console output: render per-file CLI payloads (see CoreAdapter.process_file)
# as tables grouped by file, plus a summary panel.

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

Payload = Mapping[str, Any]

# Severity -> Rich style
SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
    "info": "bold blue",
}

RISK_STYLE = {
    "critical": "bold red",
    "high": "bold red",
    "medium": "bold yellow",
    "low": "bold blue",
    "clean": "bold green",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def _shorten_path(path: str | Path, base: Path | None = None) -> str:
    """Path relative to base when it lies under it, otherwise as given."""
    if base is not None:
        try:
            return Path(path).relative_to(base).as_posix()
        except ValueError:
            pass
    return str(path).replace("\\", "/")


def _issue_sort_key(issue: Mapping[str, Any]):
    loc = issue.get("location", {})
    return (loc.get("line", 0), loc.get("column", 0), issue.get("layer", 0))


def print_report(
    payloads: Sequence[Payload],
    base: Path | None = None,
    verbose: bool = False,
    console: Console | None = None,
) -> None:
    """
    Print analysis payloads grouped by file, colored by severity.

    Files without issues are listed only in the summary. If verbose, each rule's
    remediation hint is shown once per file.
    """
    console = console or Console()

    for payload in sorted(payloads, key=lambda p: p["filePath"]):
        issues = sorted(payload.get("issues", []), key=_issue_sort_key)
        if not issues and payload.get("success", True) and not payload.get("layerErrors"):
            continue

        console.print()
        console.print(Panel(
            f"[bold cyan]{escape(_shorten_path(payload['filePath'], base))}[/bold cyan]",
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        if payload.get("error"):
            console.print(f"  [bold red]Failed:[/bold red] {escape(payload['error'])}")
        for layer_error in payload.get("layerErrors", []):
            console.print(f"  [yellow]Layer {layer_error['layer']} skipped:[/yellow] {escape(layer_error['message'])}")

        if issues:
            table = Table(
                show_header=True,
                header_style="bold magenta",
                box=box.SIMPLE,
                padding=(0, 1),
                expand=False,
            )
            table.add_column("Line", justify="right", style="dim", width=5)
            table.add_column("Col", justify="right", style="dim", width=4)
            table.add_column("Layer", justify="right", width=5)
            table.add_column("Severity", width=10)
            table.add_column("Rule", width=28)
            table.add_column("Message", style="white")

            for issue in issues:
                loc = issue["location"]
                table.add_row(
                    str(loc["line"]),
                    str(loc["column"]),
                    str(issue["layer"]),
                    Text(issue["severity"].upper(), style=_severity_style(issue["severity"])),
                    Text(f"[{issue['ruleName']}]", style="dim"),
                    issue["message"],
                )
            console.print(table)

        if verbose:
            seen_rules: set[str] = set()
            for issue in issues:
                rule = issue["ruleName"]
                if rule in seen_rules or not issue.get("remediation"):
                    continue
                seen_rules.add(rule)
                console.print(f"  [dim]\\[Fix][/dim] {escape(f'[{rule}]')} {escape(issue['remediation'])}")
            if seen_rules:
                console.print()

    _print_summary(payloads, console)


def _print_summary(payloads: Sequence[Payload], console: Console) -> None:
    by_severity: Dict[str, int] = {}
    total = 0
    failed = 0
    worst_risk = None
    for payload in payloads:
        if not payload.get("success", True):
            failed += 1
        for issue in payload.get("issues", []):
            total += 1
            by_severity[issue["severity"]] = by_severity.get(issue["severity"], 0) + 1
        security = payload.get("security")
        if security and security.get("riskLevel") not in (None, "clean"):
            worst_risk = _worse_risk(worst_risk, security["riskLevel"])

    files = len(payloads)
    parts = [
        f"[bold]{files} file{'s' if files != 1 else ''}[/bold]",
        f"[bold]{total} issue{'s' if total != 1 else ''}[/bold]",
    ]
    for sev in ("error", "warning", "info"):
        if sev in by_severity:
            parts.append(f"[{_severity_style(sev)}]{by_severity[sev]} {sev}[/]")
    if worst_risk is not None:
        parts.append(f"[{RISK_STYLE.get(worst_risk, DEFAULT_SEVERITY_STYLE)}]risk: {worst_risk}[/]")
    if failed:
        parts.append(f"[bold red]{failed} failed[/bold red]")

    console.print()
    console.print(
        Panel(
            " | ".join(parts),
            title="NeuroLint Summary",
            border_style="red" if failed or "error" in by_severity else ("yellow" if total else "green"),
            box=box.ROUNDED,
        )
    )


_RISK_ORDER = ("low", "medium", "high", "critical")


def _worse_risk(current: str | None, candidate: str) -> str:
    if current is None:
        return candidate
    rank = {name: i for i, name in enumerate(_RISK_ORDER)}
    return candidate if rank.get(candidate, -1) > rank.get(current, -1) else current


def print_fix_report(
    payloads: Sequence[Payload],
    base: Path | None = None,
    dry_run: bool = False,
    console: Console | None = None,
) -> None:
    """Print the fixes applied (or, with dry_run, the fixes that would be applied) per file."""
    console = console or Console()
    verb = "would change" if dry_run else "changed"
    changed_files = 0

    table = Table(
        title="Dry run" if dry_run else "Fixes",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=14)
    table.add_column("Fixes", justify="right", width=6)
    table.add_column("Rules", style="dim")

    for payload in sorted(payloads, key=lambda p: p["filePath"]):
        fixes = payload.get("appliedFixes", [])
        if not payload.get("success", True):
            status = Text("FAILED", style="bold red")
        elif payload.get("changed"):
            changed_files += 1
            status = Text(verb.upper(), style="bold green")
        else:
            status = Text("UNCHANGED", style="dim")
        rules = sorted({fix["rule"] for fix in fixes})
        table.add_row(
            _shorten_path(payload["filePath"], base),
            status,
            str(len(fixes)),
            ", ".join(rules),
        )

    console.print(table)
    console.print(
        Panel(
            f"[bold]{changed_files}[/bold] of {len(payloads)} file(s) {verb}",
            title="NeuroLint Fix",
            border_style="green" if changed_files else "yellow",
            box=box.ROUNDED,
        )
    )


def print_layers(layers: Sequence[Mapping[str, Any]], console: Console | None = None) -> None:
    console = console or Console()
    table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED)
    table.add_column("#", justify="right", width=3)
    table.add_column("Layer", style="bold cyan")
    table.add_column("Description")
    table.add_column("Rules", style="dim")
    for info in layers:
        table.add_row(str(info["id"]), info["name"], info["description"], ", ".join(info["rules"]))
    console.print(table)
