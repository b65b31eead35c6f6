"""Scan, inspection and setup commands."""

from __future__ import annotations

import json
import os
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from iacguard import __logo__
from iacguard.core.models import Invocation, ScanReport
from iacguard.scan.context import SKIP_DIRS

from .core import app, console, load_runtime

SEVERITY_STYLES = {"critical": "red", "warn": "yellow", "info": "cyan"}


def _iter_files(paths: list[Path]) -> list[Path]:
    """Expand directories into the files beneath them, in a stable order."""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            for current, dirs, names in os.walk(path):
                dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)
                files.extend(Path(current) / name for name in sorted(names))
        elif path.is_file():
            files.append(path)
        else:
            console.print(f"[yellow]Skipping {path}: not a file or directory[/yellow]")
    return files


def _report_to_dict(report: ScanReport) -> dict:
    return {
        "path": str(report.path),
        "categories": sorted(str(c) for c in report.categories),
        "findings": [
            {
                "checkId": f.check_id,
                "severity": f.severity,
                "title": f.title,
                "message": f.message,
                "subject": f.subject,
            }
            for f in report.findings
        ],
    }


@app.command()
def scan(
    paths: list[Path] = typer.Argument(..., help="Files or directories to scan"),
    as_json: bool = typer.Option(False, "--json", help="Print findings as JSON"),
) -> None:
    """Scan files on disk as if they had just been written."""
    from iacguard.hooks.responder import evaluate

    config, engine = load_runtime()
    reports = []
    for file_path in _iter_files(paths):
        invocation = Invocation(tool_name="Write", file_path=file_path.resolve(), phase="post")
        report = evaluate(invocation, engine=engine, config=config)
        if report.findings:
            reports.append(report)

    if as_json:
        console.print_json(json.dumps([_report_to_dict(r) for r in reports], ensure_ascii=False))
    elif not reports:
        console.print("[green]✓[/green] No findings")
    else:
        table = Table(title="iacguard findings")
        table.add_column("Severity")
        table.add_column("Check", style="cyan")
        table.add_column("Subject")
        table.add_column("Message")
        for report in reports:
            for f in report.findings:
                style = SEVERITY_STYLES[f.severity]
                table.add_row(f"[{style}]{f.severity}[/{style}]", f.check_id, escape(f.subject), escape(f.message))
        console.print(table)

    if any(f.severity == "critical" for r in reports for f in r.findings):
        raise typer.Exit(1)


@app.command()
def classify(path: Path = typer.Argument(..., help="File to classify")) -> None:
    """Show which artifact categories a file is treated as."""
    from iacguard.scan.classifier import classify as classify_path
    from iacguard.scan.context import file_exists, read_text

    content = read_text(path) if file_exists(path) else None
    categories = classify_path(path, content)
    if not categories:
        console.print(f"{path}: [dim]unclassified[/dim]")
        return
    console.print(f"{path}: {', '.join(sorted(str(c) for c in categories))}")


@app.command()
def checks() -> None:
    """List the checks currently enabled."""
    _, engine = load_runtime()
    table = Table(title=f"{__logo__} iacguard checks ({len(engine.library)})")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Phases")
    table.add_column("Title")
    for check in engine.library:
        style = SEVERITY_STYLES[check.severity]
        table.add_row(
            check.id,
            str(check.category),
            f"[{style}]{check.severity}[/{style}]",
            ",".join(sorted(check.phases)),
            check.title,
        )
    console.print(table)


@app.command()
def init(force: bool = typer.Option(False, "--force", "-f", help="Overwrite without asking")) -> None:
    """Write a default configuration file."""
    from iacguard.config.loader import get_config_path, save_config
    from iacguard.config.schema import Config

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config(), config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")
    console.print("\nRegister the hooks with your agent:")
    console.print("  PreToolUse   (Edit|Write|MultiEdit): [cyan]iacguard hook pre[/cyan]")
    console.print("  PostToolUse  (Edit|Write|MultiEdit): [cyan]iacguard hook post[/cyan]")
    console.print("  SessionStart:                       [cyan]iacguard hook session[/cyan]")
