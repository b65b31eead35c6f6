"""Centralized defaults for generated config files."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

DEFAULT_LOG_LEVEL = "WARNING"

DEFAULT_CHECKS: dict[str, Any] = {
    "disabled": [],
    "terraform_fmt": True,
    "terraform_fmt_timeout_s": 10,
    "rules_path": None,
}

DEFAULT_SCAN: dict[str, Any] = {
    "max_file_bytes": 2 * 1024 * 1024,
    "max_depth": 3,
}


def apply_missing_defaults(data: dict[str, Any]) -> None:
    """Fill absent sections of a snake_case config payload in place."""
    data.setdefault("enabled", True)
    data.setdefault("log_level", DEFAULT_LOG_LEVEL)
    for key, defaults in (("checks", DEFAULT_CHECKS), ("scan", DEFAULT_SCAN)):
        section = data.get(key)
        if not isinstance(section, dict):
            section = {}
            data[key] = section
        for name, value in defaults.items():
            section.setdefault(name, deepcopy(value))
