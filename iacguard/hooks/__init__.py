"""Agent hook integration: decisions, wire protocol and session survey."""

from iacguard.hooks.protocol import handle, handle_session, parse_payload, serialize
from iacguard.hooks.responder import DENY_LIST, decide, deny_reason, evaluate
from iacguard.hooks.survey import ProjectSurvey, survey_project

__all__ = [
    "DENY_LIST",
    "ProjectSurvey",
    "decide",
    "deny_reason",
    "evaluate",
    "handle",
    "handle_session",
    "parse_payload",
    "serialize",
    "survey_project",
]
