"""Check definitions and predicate builders for the pattern library.

A check is data: an id, the artifact category it applies to, a severity,
a detection predicate and a message template. Predicates are composed from
the small builders below so new checks never touch the engine. Message
templates may reference ``{path}``, ``{directory}`` and ``{root}``; any
other braces are left as-is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from iacguard.core.models import ArtifactCategory, CheckScope, Finding, HookPhase, RepoContext, Severity
from iacguard.core.ports import Detector

ALL_PHASES: frozenset[HookPhase] = frozenset({"pre", "post"})


@dataclass(frozen=True, slots=True, kw_only=True)
class Check:
    """One immutable rule definition."""

    id: str
    category: ArtifactCategory
    severity: Severity
    title: str
    detect: Detector
    message: str
    phases: frozenset[HookPhase] = ALL_PHASES
    needs_content: bool = True
    suppressed_by: frozenset[ArtifactCategory] = frozenset()
    scope: CheckScope = "file"

    def applies_to(self, categories: frozenset[ArtifactCategory], phase: HookPhase) -> bool:
        if phase not in self.phases:
            return False
        if self.suppressed_by & categories:
            return False
        return self.category is ArtifactCategory.ANY or self.category in categories

    def finding(self, path: Path, repo: RepoContext) -> Finding:
        subject = {"directory": repo.directory, "repository": repo.root_path}.get(self.scope, path)
        text = (
            self.message.replace("{path}", str(path))
            .replace("{directory}", str(repo.directory))
            .replace("{root}", str(repo.root_path))
        )
        return Finding(
            check_id=self.id,
            severity=self.severity,
            title=self.title,
            message=text,
            subject=str(subject),
        )


@dataclass(frozen=True, slots=True)
class _Matches:
    pattern: re.Pattern[str]

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        return self.pattern.search(content) is not None


@dataclass(frozen=True, slots=True)
class _Not:
    inner: Detector

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        return not self.inner(content, path, repo)


@dataclass(frozen=True, slots=True)
class _AllOf:
    parts: tuple[Detector, ...] = field(default_factory=tuple)

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        return all(part(content, path, repo) for part in self.parts)


@dataclass(frozen=True, slots=True)
class _AnyOf:
    parts: tuple[Detector, ...] = field(default_factory=tuple)

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        return any(part(content, path, repo) for part in self.parts)


@dataclass(frozen=True, slots=True)
class _PathMatches:
    pattern: re.Pattern[str]

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        return self.pattern.search(normalized_path(path)) is not None


@dataclass(frozen=True, slots=True)
class _SiblingMissing:
    name: str

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        return not repo.has_sibling(self.name)


def matches(pattern: str, *, ignore_case: bool = False) -> Detector:
    """Content contains ``pattern`` (multiline: ``^``/``$`` anchor lines)."""
    flags = re.MULTILINE | (re.IGNORECASE if ignore_case else 0)
    return _Matches(re.compile(pattern, flags))


def lacks(pattern: str, *, ignore_case: bool = False) -> Detector:
    """Content does not contain ``pattern``."""
    return _Not(matches(pattern, ignore_case=ignore_case))


def all_of(*parts: Detector) -> Detector:
    return _AllOf(tuple(parts))


def any_of(*parts: Detector) -> Detector:
    return _AnyOf(tuple(parts))


def path_matches(pattern: str) -> Detector:
    """Lowercased ``/``-separated path (with a leading ``/``) matches ``pattern``."""
    return _PathMatches(re.compile(pattern))


def sibling_missing(name: str) -> Detector:
    """No file called ``name`` sits next to the target file."""
    return _SiblingMissing(name)


def normalized_path(path: Path) -> str:
    text = path.as_posix().lower()
    return text if text.startswith("/") else "/" + text
