"""Classification, repository context and rule evaluation."""

from iacguard.scan.classifier import classify
from iacguard.scan.context import build_context, read_text
from iacguard.scan.engine import RuleEngine

__all__ = ["RuleEngine", "build_context", "classify", "read_text"]
