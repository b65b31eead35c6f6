"""CLI commands for iacguard."""

from . import hook_commands, scan_commands  # noqa: F401  (registers commands)
from .core import app

__all__ = ["app"]

if __name__ == "__main__":
    app()
