"""Port interfaces for pluggable check predicates."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from iacguard.core.models import RepoContext


class Detector(Protocol):
    """Detection predicate bound to one check."""

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        """Return True when the check matches the file."""
