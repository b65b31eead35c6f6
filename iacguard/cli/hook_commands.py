"""Hook entry points invoked by the coding agent."""

from __future__ import annotations

from pathlib import Path

import typer
from loguru import logger

from iacguard.core.models import HookPhase

from .core import app, load_runtime, setup_logging

hook_app = typer.Typer(help="Agent hook entry points (JSON on stdin, JSON on stdout)")
app.add_typer(hook_app, name="hook")


def _read_stdin() -> bytes:
    try:
        return typer.get_binary_stream("stdin").read()
    except OSError as e:
        logger.error("Cannot read hook payload: {}", e)
        raise typer.Exit(2)


def _write_stdout(payload: bytes) -> None:
    if not payload:
        return
    try:
        stream = typer.get_binary_stream("stdout")
        stream.write(payload)
        stream.flush()
    except OSError as e:
        logger.error("Cannot write hook response: {}", e)
        raise typer.Exit(2)


def _run_write_hook(phase: HookPhase) -> None:
    from iacguard.hooks.protocol import handle

    raw = _read_stdin()
    config, engine = load_runtime()
    _write_stdout(handle(raw, phase, engine=engine, config=config))


@hook_app.command("pre")
def hook_pre() -> None:
    """Before a write: block protected files, flag risky content."""
    _run_write_hook("pre")


@hook_app.command("post")
def hook_post() -> None:
    """After a write: report findings for the edited file."""
    _run_write_hook("post")


@hook_app.command("session")
def hook_session() -> None:
    """At session start: survey the project's infrastructure setup."""
    from iacguard.config.loader import load_config
    from iacguard.hooks.protocol import handle_session

    raw = _read_stdin()
    config = load_config()
    setup_logging(config)
    _write_stdout(handle_session(raw, cwd=Path.cwd(), config=config))
