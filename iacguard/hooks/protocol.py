"""Hook protocol adapter.

Translates the agent's JSON hook payload into an :class:`Invocation`, runs
the pipeline and serializes the decision back. Output is UTF-8 JSON, or
empty bytes when there is nothing to say.

Response shapes::

    {"decision": "block", "reason": "..."}                         # pre, deny-listed
    {"additionalContext": [{"type": "text", "text": "..."}],
     "systemMessage": "..."}                                       # pre, findings
    {"systemMessage": "..."}                                       # post, findings
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from iacguard.config.schema import Config
from iacguard.core.models import WRITE_TOOLS, Block, Decision, Finding, HookPhase, Invocation
from iacguard.hooks.responder import evaluate
from iacguard.hooks.survey import survey_project
from iacguard.scan.context import file_exists
from iacguard.scan.engine import RuleEngine

PRE_HEADER = "iacguard: infrastructure review before this edit"
POST_HEADER = "iacguard: infrastructure review of the edited file"
SESSION_HEADER = "iacguard: project infrastructure warnings"
SESSION_CONTEXT_HEADER = "iacguard: infrastructure detected in this project"


@dataclass(frozen=True, slots=True, kw_only=True)
class HookPayload:
    """Fields read from the hook's stdin JSON. Missing fields are empty."""

    tool_name: str = ""
    file_path: str = ""
    cwd: str = ""

    def resolve_path(self) -> Path | None:
        if not self.file_path:
            return None
        path = _expand(Path(self.file_path))
        if not path.is_absolute() and self.cwd:
            path = Path(self.cwd) / path
        return path


def parse_payload(raw: bytes) -> HookPayload:
    """Decode a hook payload, treating anything malformed as empty."""
    try:
        data = json.loads(raw.decode("utf-8", errors="replace")) if raw.strip() else {}
    except json.JSONDecodeError as e:
        logger.debug("Ignoring malformed hook payload: {}", e)
        return HookPayload()
    if not isinstance(data, dict):
        return HookPayload()

    tool_input = data.get("tool_input")
    file_path = data.get("file_path")
    if not file_path and isinstance(tool_input, dict):
        file_path = tool_input.get("file_path")
    return HookPayload(
        tool_name=_as_str(data.get("tool_name")),
        file_path=_as_str(file_path),
        cwd=_as_str(data.get("cwd")),
    )


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _expand(path: Path) -> Path:
    try:
        return path.expanduser()
    except RuntimeError:
        # Unknown ~user: keep the literal path.
        return path


def to_invocation(payload: HookPayload, phase: HookPhase) -> Invocation | None:
    """Return the invocation to evaluate, or None when the hook has nothing to do."""
    if payload.tool_name not in WRITE_TOOLS:
        return None
    path = payload.resolve_path()
    if path is None:
        return None
    if phase == "post" and not file_exists(path):
        return None
    return Invocation(tool_name=payload.tool_name, file_path=path, phase=phase)


def bullet(finding: Finding) -> str:
    return f"- {finding.render()}"


def serialize(phase: HookPhase, decision: Decision) -> bytes:
    """Encode a decision in the agent's hook response format."""
    if isinstance(decision, Block):
        return _dump({"decision": "block", "reason": decision.reason})

    findings = decision.findings
    if not findings:
        return b""

    if phase == "post":
        lines = [POST_HEADER, *(bullet(f) for f in findings)]
        return _dump({"systemMessage": "\n".join(lines)})

    response: dict[str, Any] = {}
    advisory = [f for f in findings if f.severity == "info"]
    serious = [f for f in findings if f.severity != "info"]
    if advisory:
        response["additionalContext"] = [{"type": "text", "text": bullet(f)} for f in advisory]
    if serious:
        response["systemMessage"] = "\n".join([PRE_HEADER, *(bullet(f) for f in serious)])
    return _dump(response)


def _dump(response: dict[str, Any]) -> bytes:
    return (json.dumps(response, ensure_ascii=False) + "\n").encode("utf-8")


def handle(raw: bytes, phase: HookPhase, *, engine: RuleEngine, config: Config) -> bytes:
    """Process one pre- or post-write hook call end to end."""
    if not config.enabled:
        return b""
    invocation = to_invocation(parse_payload(raw), phase)
    if invocation is None:
        return b""
    try:
        report = evaluate(invocation, engine=engine, config=config)
    except Exception as e:
        # Fail open: a broken scan must never stop the agent from writing.
        logger.warning("hook_error phase={} path={} error={!r}", phase, invocation.file_path, e)
        return b""
    return serialize(phase, report.decision)


def handle_session(raw: bytes, *, cwd: Path, config: Config) -> bytes:
    """Survey the project at session start and report what was found."""
    if not config.enabled:
        return b""
    payload = parse_payload(raw)
    root = _expand(Path(payload.cwd)) if payload.cwd else cwd
    try:
        survey = survey_project(root, max_depth=config.scan.max_depth)
    except Exception as e:
        logger.warning("session_error root={} error={!r}", root, e)
        return b""
    if survey.is_empty:
        return b""

    response: dict[str, Any] = {}
    context = survey.context_lines()
    if context:
        text = "\n".join([SESSION_CONTEXT_HEADER, *(f"- {line}" for line in context)])
        response["additionalContext"] = [{"type": "text", "text": text}]
    if survey.warnings:
        response["systemMessage"] = "\n".join([SESSION_HEADER, *(f"- {w}" for w in survey.warnings)])
    return _dump(response)
