"""Domain models shared by the classifier, rule engine and hook adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Literal, TypeAlias

HookPhase: TypeAlias = Literal["pre", "post"]
Severity: TypeAlias = Literal["critical", "warn", "info"]
CheckScope: TypeAlias = Literal["file", "directory", "repository"]

WRITE_TOOLS = frozenset({"Edit", "Write", "MultiEdit"})


class ArtifactCategory(StrEnum):
    """Inferred infrastructure file type driving which checks apply."""

    TERRAFORM = "terraform"
    TERRAFORM_VARS = "terraform_vars"
    KUBERNETES = "kubernetes"
    DOCKERFILE = "dockerfile"
    DOCKER_COMPOSE = "docker_compose"
    CI_PIPELINE = "ci_pipeline"
    ANSIBLE = "ansible"
    ENV_FILE = "env_file"
    GENERIC = "generic"
    # Not a classification result: marks checks that run for every file.
    ANY = "any"


@dataclass(frozen=True, slots=True, kw_only=True)
class Invocation:
    """One hook run against one target file."""

    tool_name: str
    file_path: Path
    phase: HookPhase

    @property
    def is_write(self) -> bool:
        return self.tool_name in WRITE_TOOLS


@dataclass(frozen=True, slots=True, kw_only=True)
class RepoContext:
    """Read-only view of the repository around the target file."""

    root_path: Path
    directory: Path
    sibling_files: tuple[str, ...] = ()
    terraform_sources: tuple[tuple[str, str], ...] = ()
    gitignore_content: str | None = None
    has_terraform: bool = False

    def has_sibling(self, name: str) -> bool:
        return name in self.sibling_files


@dataclass(frozen=True, slots=True, kw_only=True)
class Finding:
    """One check matching one invocation."""

    check_id: str
    severity: Severity
    title: str
    message: str
    subject: str

    def render(self) -> str:
        """Single human-readable line used in hook responses."""
        return f"[{self.check_id}] {self.title}: {self.message}"


@dataclass(frozen=True, slots=True)
class Allow:
    """Let the write proceed, optionally with advisory findings."""

    findings: tuple[Finding, ...] = ()


@dataclass(frozen=True, slots=True)
class Block:
    """Abort the write (pre-write deny-list only)."""

    reason: str


Decision: TypeAlias = Allow | Block


@dataclass(frozen=True, slots=True, kw_only=True)
class ScanReport:
    """Everything one pipeline run produced for a file."""

    path: Path
    categories: frozenset[ArtifactCategory] = frozenset()
    decision: Decision = field(default_factory=Allow)

    @property
    def findings(self) -> tuple[Finding, ...]:
        if isinstance(self.decision, Allow):
            return self.decision.findings
        return ()
