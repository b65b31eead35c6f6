"""Checks that look beyond the single file at the repository root."""

from __future__ import annotations

import re
from pathlib import Path

from iacguard.checks.base import Check
from iacguard.core.models import ArtifactCategory, RepoContext

_ENV_PATTERN = re.compile(r"\.env")
_TFSTATE_PATTERN = re.compile(r"\.tfstate|\btfstate\b")


def active_patterns(gitignore: str) -> str:
    """Drop negated (`!`) lines, which re-include files rather than ignore them."""
    return "\n".join(line for line in gitignore.splitlines() if not line.lstrip().startswith("!"))


def _gitignore_missing_env(content: str, path: Path, repo: RepoContext) -> bool:
    if repo.gitignore_content is None:
        return False
    return _ENV_PATTERN.search(active_patterns(repo.gitignore_content)) is None


def _gitignore_missing_tfstate(content: str, path: Path, repo: RepoContext) -> bool:
    if repo.gitignore_content is None or not repo.has_terraform:
        return False
    return _TFSTATE_PATTERN.search(active_patterns(repo.gitignore_content)) is None


REPOSITORY_CHECKS: tuple[Check, ...] = (
    Check(
        id="GITIGNORE_MISSING_ENV",
        category=ArtifactCategory.ANY,
        severity="warn",
        title="GITIGNORE",
        detect=_gitignore_missing_env,
        message="Missing .env exclusion in {root}/.gitignore. Add '.env*' to prevent accidental secret commits.",
        needs_content=False,
        scope="repository",
    ),
    Check(
        id="GITIGNORE_MISSING_TFSTATE",
        category=ArtifactCategory.ANY,
        severity="warn",
        title="GITIGNORE",
        detect=_gitignore_missing_tfstate,
        message="Missing .tfstate exclusion in {root}/.gitignore. Add '*.tfstate' and '*.tfstate.*'.",
        needs_content=False,
        scope="repository",
    ),
)
