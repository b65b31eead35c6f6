"""Shared CLI application context and setup helpers."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import typer
from loguru import logger
from rich.console import Console

from iacguard import __logo__, __version__
from iacguard.config.schema import Config

if TYPE_CHECKING:
    from iacguard.scan.engine import RuleEngine

app = typer.Typer(
    name="iacguard",
    help=f"{__logo__} iacguard - Infrastructure-as-code guardrails for coding agents",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} iacguard v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
    """iacguard - Infrastructure-as-code guardrails for coding agents."""


def setup_logging(config: Config) -> None:
    """Route loguru to stderr at the configured level. stdout is reserved for hook payloads."""
    logger.remove()
    logger.add(sys.stderr, level=config.log_level)


def load_runtime() -> tuple[Config, RuleEngine]:
    """Load config, configure logging and build the rule engine."""
    from iacguard.checks.library import build_library
    from iacguard.config.loader import load_config
    from iacguard.scan.engine import RuleEngine

    config = load_config()
    setup_logging(config)
    return config, RuleEngine(build_library(config.checks))
