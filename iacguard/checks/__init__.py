"""Pattern library of infrastructure checks."""

from iacguard.checks.base import Check
from iacguard.checks.library import BUILTIN_CHECKS, PatternLibrary, build_library

__all__ = ["BUILTIN_CHECKS", "Check", "PatternLibrary", "build_library"]
