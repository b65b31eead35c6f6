"""Credential detectors: env-file checks and the always-on generic detectors."""

from __future__ import annotations

from iacguard.checks.base import Check, any_of, matches, path_matches
from iacguard.checks.pipelines import AWS_ACCESS_KEY_PATTERN, GITHUB_TOKEN_PATTERN, GITLAB_TOKEN_PATTERN
from iacguard.core.models import ArtifactCategory

ANY = ArtifactCategory.ANY

STRIPE_LIVE_KEY_PATTERN = r"\b(sk_live_|rk_live_|pk_live_)[A-Za-z0-9]{8,}"
OPENAI_KEY_PATTERN = r"\bsk-(proj-)?[A-Za-z0-9_\-]{20,}"

SECRET_CHECKS: tuple[Check, ...] = (
    Check(
        id="ENV_LIVE_CREDENTIAL",
        category=ArtifactCategory.ENV_FILE,
        severity="critical",
        title="ENV CRITICAL",
        detect=any_of(
            matches(AWS_ACCESS_KEY_PATTERN),
            matches(GITHUB_TOKEN_PATTERN),
            matches(GITLAB_TOKEN_PATTERN),
            matches(r"\b(sk_live_|rk_live_)[A-Za-z0-9]{8,}"),
            matches(OPENAI_KEY_PATTERN),
        ),
        message=(
            "Real credential detected in environment file. This file must NEVER be committed. "
            "Verify .gitignore excludes it."
        ),
    ),
    Check(
        id="SECRET_AWS_ACCESS_KEY",
        category=ANY,
        severity="critical",
        title="SECRET DETECTED",
        detect=matches(AWS_ACCESS_KEY_PATTERN),
        message="AWS access key ID pattern (AKIA...) found. Remove it and use IAM roles, instance profiles or OIDC federation.",
        suppressed_by=frozenset({ArtifactCategory.CI_PIPELINE}),
    ),
    Check(
        id="SECRET_GITHUB_TOKEN",
        category=ANY,
        severity="critical",
        title="SECRET DETECTED",
        detect=matches(GITHUB_TOKEN_PATTERN),
        message="GitHub token pattern found. Remove it and use GITHUB_TOKEN or deploy keys.",
        suppressed_by=frozenset({ArtifactCategory.CI_PIPELINE}),
    ),
    Check(
        id="SECRET_PRIVATE_KEY",
        category=ANY,
        severity="critical",
        title="SECRET DETECTED",
        detect=matches(r"-----BEGIN ([A-Z0-9]+ )*PRIVATE KEY( BLOCK)?-----"),
        message="Private key found in file. Private keys must never be stored in code. Use a secret manager or certificate store.",
    ),
    Check(
        id="SECRET_DATABASE_URI",
        category=ANY,
        severity="critical",
        title="SECRET DETECTED",
        detect=matches(
            r"\b(mysql|postgres|postgresql|mongodb(\+srv)?|redis|rediss|amqp)://[^:/\s@]+:(?![$%{<])[^@\s/]+@",
            ignore_case=True,
        ),
        message="Database connection string with embedded password. Use environment variables or secret manager references.",
    ),
    Check(
        id="SECRET_STRIPE_LIVE_KEY",
        category=ANY,
        severity="critical",
        title="SECRET DETECTED",
        detect=matches(STRIPE_LIVE_KEY_PATTERN),
        message="Stripe live key found. Remove it and use environment variables. Never commit live payment keys.",
    ),
    Check(
        id="SENSITIVE_TARGET",
        category=ANY,
        severity="info",
        title="SENSITIVE FILE",
        detect=path_matches(r"\.(env|key|pem|credentials|secret|p12|pfx)$"),
        message="About to modify a potentially sensitive file: {path}. Keep secrets out of version control.",
        phases=frozenset({"pre"}),
        needs_content=False,
    ),
)
