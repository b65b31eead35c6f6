"""Rule engine: run applicable checks against one classified file."""

from __future__ import annotations

from loguru import logger

from iacguard.checks.library import PatternLibrary
from iacguard.core.models import ArtifactCategory, Finding, Invocation, RepoContext


class RuleEngine:
    """Evaluates the pattern library for one invocation.

    Checks run in registration order so the finding list is stable for
    identical inputs. A check that raises is logged and skipped; the rest
    still run.
    """

    def __init__(self, library: PatternLibrary):
        self._library = library

    @property
    def library(self) -> PatternLibrary:
        return self._library

    def run(
        self,
        invocation: Invocation,
        categories: frozenset[ArtifactCategory],
        content: str | None,
        repo: RepoContext,
    ) -> list[Finding]:
        findings: list[Finding] = []
        path = invocation.file_path
        for check in self._library.applicable(categories, invocation.phase):
            if content is None and check.needs_content:
                continue
            try:
                hit = check.detect(content or "", path, repo)
            except Exception as e:
                logger.warning(
                    "check_error check={} path={} error={!r}",
                    check.id,
                    path,
                    e,
                )
                continue
            if hit:
                findings.append(check.finding(path, repo))
        if findings:
            logger.debug(
                "scan_result path={} phase={} checks={}",
                path,
                invocation.phase,
                [f.check_id for f in findings],
            )
        return findings
