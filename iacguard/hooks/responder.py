"""Decision responder: pre-write deny-list and the classify/check pipeline."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import PurePath

from loguru import logger

from iacguard.config.schema import Config
from iacguard.core.models import Allow, Block, Decision, Finding, Invocation, ScanReport
from iacguard.scan.classifier import classify
from iacguard.scan.context import build_context, file_exists, read_text
from iacguard.scan.engine import RuleEngine


@dataclass(frozen=True, slots=True)
class DenyRule:
    """Basename glob whose modification is refused before it happens."""

    pattern: str
    reason: str


_STATE_REASON = "Direct modification of Terraform state files is blocked. Use 'terraform state' commands."
_CREDENTIALS_REASON = "Direct modification of credential files is blocked. Use a secret manager."
_VAULT_REASON = "Ansible vault password files must never be written or committed."

DENY_LIST: tuple[DenyRule, ...] = (
    DenyRule("*.tfstate", _STATE_REASON),
    DenyRule("*.tfstate.backup", _STATE_REASON),
    DenyRule("credentials", _CREDENTIALS_REASON),
    DenyRule("credentials.json", _CREDENTIALS_REASON),
    DenyRule("service-account*.json", _CREDENTIALS_REASON),
    DenyRule("vault_password_file", _VAULT_REASON),
    DenyRule(".vault_pass", _VAULT_REASON),
)


def deny_reason(path: str | PurePath) -> str | None:
    """Return the block reason when ``path`` is on the deny-list."""
    basename = PurePath(str(path)).name.lower()
    if not basename:
        return None
    for rule in DENY_LIST:
        if fnmatchcase(basename, rule.pattern):
            return f"BLOCKED: {rule.reason}"
    return None


def decide(invocation: Invocation, findings: Iterable[Finding]) -> Decision:
    """Pre-write blocks only deny-listed paths; everything else is allowed with findings."""
    if invocation.phase == "pre":
        reason = deny_reason(invocation.file_path)
        if reason is not None:
            return Block(reason)
    return Allow(tuple(findings))


def evaluate(invocation: Invocation, *, engine: RuleEngine, config: Config) -> ScanReport:
    """Run the full pipeline for one invocation."""
    path = invocation.file_path

    if invocation.phase == "pre" and deny_reason(path) is not None:
        decision = decide(invocation, ())
        logger.info("hook_block path={} reason={}", path, getattr(decision, "reason", ""))
        return ScanReport(path=path, decision=decision)

    content: str | None = None
    if file_exists(path):
        content = read_text(path, max_bytes=config.scan.max_file_bytes)
        if content is None:
            # Present but unreadable: fail open with nothing to report.
            return ScanReport(path=path)

    categories = classify(path, content)
    repo = build_context(path, max_bytes=config.scan.max_file_bytes, max_depth=config.scan.max_depth)
    findings = engine.run(invocation, categories, content, repo)
    return ScanReport(path=path, categories=categories, decision=decide(invocation, findings))
