"""User-defined regex checks loaded from a JSON rules file."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from iacguard.checks.base import Check, all_of, lacks, matches
from iacguard.core.models import ArtifactCategory
from iacguard.core.ports import Detector


class RuleModel(BaseModel):
    """Base model with strict rule-file parsing."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class CustomRule(RuleModel):
    """One regex rule: fires when ``pattern`` matches and ``unless`` does not."""

    id: str = Field(min_length=1, pattern=r"^[A-Z][A-Z0-9_]*$")
    category: ArtifactCategory
    severity: Literal["critical", "warn", "info"] = "warn"
    title: str = "CUSTOM"
    pattern: str
    unless: str | None = None
    message: str
    ignore_case: bool = Field(default=False, alias="ignoreCase")
    phases: list[Literal["pre", "post"]] = Field(default_factory=lambda: ["pre", "post"])


class RulesFile(RuleModel):
    """Top-level rules file payload."""

    rules: list[CustomRule] = Field(default_factory=list)


def load_custom_checks(path: Path) -> tuple[Check, ...]:
    """Load rules from ``path``. Missing/invalid files and bad regexes are logged and skipped."""
    try:
        with open(path) as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.warning("Rules file {} not found; no custom checks loaded", path)
        return ()
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to read rules file {}: {}", path, e)
        return ()

    if isinstance(raw, list):
        raw = {"rules": raw}
    try:
        rules_file = RulesFile.model_validate(raw)
    except ValidationError as e:
        logger.warning("Invalid rules file {}: {}", path, e)
        return ()

    checks: list[Check] = []
    for rule in rules_file.rules:
        try:
            detect = _compile(rule)
        except re.error as e:
            logger.warning("Skipping custom rule {}: invalid regex ({})", rule.id, e)
            continue
        checks.append(
            Check(
                id=rule.id,
                category=rule.category,
                severity=rule.severity,
                title=rule.title,
                detect=detect,
                message=rule.message,
                phases=frozenset(rule.phases),
            )
        )
    return tuple(checks)


def _compile(rule: CustomRule) -> Detector:
    detect = matches(rule.pattern, ignore_case=rule.ignore_case)
    if rule.unless:
        detect = all_of(detect, lacks(rule.unless, ignore_case=rule.ignore_case))
    return detect
