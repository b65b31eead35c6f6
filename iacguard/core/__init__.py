"""Typed core models for iacguard."""

from iacguard.core.models import (
    Allow,
    ArtifactCategory,
    Block,
    Decision,
    Finding,
    HookPhase,
    Invocation,
    RepoContext,
    ScanReport,
    Severity,
)

__all__ = [
    "Allow",
    "ArtifactCategory",
    "Block",
    "Decision",
    "Finding",
    "HookPhase",
    "Invocation",
    "RepoContext",
    "ScanReport",
    "Severity",
]
