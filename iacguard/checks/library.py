"""Process-wide pattern library: built-in checks plus optional extras."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from loguru import logger

from iacguard.checks.ansible import ANSIBLE_CHECKS
from iacguard.checks.base import Check
from iacguard.checks.custom import load_custom_checks
from iacguard.checks.docker import COMPOSE_CHECKS, DOCKERFILE_CHECKS
from iacguard.checks.kubernetes import KUBERNETES_CHECKS
from iacguard.checks.pipelines import PIPELINE_CHECKS
from iacguard.checks.repository import REPOSITORY_CHECKS
from iacguard.checks.secrets import SECRET_CHECKS
from iacguard.checks.terraform import TERRAFORM_CHECKS, TFVARS_CHECKS, terraform_fmt_check
from iacguard.config.schema import ChecksConfig
from iacguard.core.models import ArtifactCategory, HookPhase

BUILTIN_CHECKS: tuple[Check, ...] = (
    *TERRAFORM_CHECKS,
    *TFVARS_CHECKS,
    *KUBERNETES_CHECKS,
    *DOCKERFILE_CHECKS,
    *PIPELINE_CHECKS,
    *COMPOSE_CHECKS,
    *ANSIBLE_CHECKS,
    *SECRET_CHECKS,
    *REPOSITORY_CHECKS,
)


@dataclass(frozen=True, slots=True)
class PatternLibrary:
    """Ordered, immutable collection of checks. Order is registration order."""

    checks: tuple[Check, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for check in self.checks:
            if check.id in seen:
                raise ValueError(f"duplicate check id: {check.id}")
            seen.add(check.id)

    def __iter__(self) -> Iterator[Check]:
        return iter(self.checks)

    def __len__(self) -> int:
        return len(self.checks)

    def get(self, check_id: str) -> Check | None:
        return next((c for c in self.checks if c.id == check_id), None)

    def applicable(self, categories: frozenset[ArtifactCategory], phase: HookPhase) -> tuple[Check, ...]:
        return tuple(c for c in self.checks if c.applies_to(categories, phase))


def build_library(config: ChecksConfig | None = None) -> PatternLibrary:
    """Assemble the library once at startup from built-ins and config."""
    config = config or ChecksConfig()
    checks: list[Check] = list(BUILTIN_CHECKS)

    if config.terraform_fmt:
        fmt = terraform_fmt_check(config.terraform_fmt_timeout_s)
        if fmt is not None:
            # Keep formatting next to the other terraform checks.
            checks.insert(len(TERRAFORM_CHECKS), fmt)

    rules_file = config.rules_file
    if rules_file is not None:
        known = {c.id for c in checks}
        for extra in load_custom_checks(rules_file):
            if extra.id in known:
                logger.warning("Custom rule {} shadows an existing check id; skipped", extra.id)
                continue
            known.add(extra.id)
            checks.append(extra)

    disabled = set(config.disabled)
    unknown = disabled - {c.id for c in checks}
    if unknown:
        logger.warning("Unknown check ids in checks.disabled: {}", ", ".join(sorted(unknown)))

    return PatternLibrary(tuple(c for c in checks if c.id not in disabled))
