"""CI/CD pipeline checks."""

from __future__ import annotations

from iacguard.checks.base import Check, all_of, lacks, matches, path_matches
from iacguard.core.models import ArtifactCategory

CI = ArtifactCategory.CI_PIPELINE

GITHUB_TOKEN_PATTERN = r"(ghp_|gho_|ghu_|ghs_|github_pat_)[A-Za-z0-9_]{20,}"
GITLAB_TOKEN_PATTERN = r"glpat-[A-Za-z0-9_\-]{20,}"
AWS_ACCESS_KEY_PATTERN = r"\b(AKIA|ASIA)[0-9A-Z]{16}\b"

_GITHUB_WORKFLOW = path_matches(r"/\.github/workflows/")

PIPELINE_CHECKS: tuple[Check, ...] = (
    Check(
        id="CI_GITHUB_TOKEN",
        category=CI,
        severity="critical",
        title="CI/CD CRITICAL",
        detect=matches(GITHUB_TOKEN_PATTERN),
        message="GitHub token detected in pipeline config. Remove it immediately, rotate the token and use repository secrets.",
    ),
    Check(
        id="CI_GITLAB_TOKEN",
        category=CI,
        severity="critical",
        title="CI/CD CRITICAL",
        detect=matches(GITLAB_TOKEN_PATTERN),
        message="GitLab personal access token detected. Remove it, rotate it and use CI/CD variables.",
    ),
    Check(
        id="CI_AWS_ACCESS_KEY",
        category=CI,
        severity="critical",
        title="CI/CD CRITICAL",
        detect=matches(AWS_ACCESS_KEY_PATTERN),
        message="AWS access key detected. Remove it and use OIDC federation or repository secrets.",
    ),
    Check(
        id="CI_ACTION_BRANCH_PIN",
        category=CI,
        severity="warn",
        title="CI/CD SUPPLY CHAIN",
        detect=matches(r"""uses:\s*["']?[^\s@"']+@(main|master|latest)\b"""),
        message="GitHub Actions pinned to branch names (main/master/latest). Pin to a commit SHA for supply chain security.",
    ),
    Check(
        id="CI_ACTION_MAJOR_PIN",
        category=CI,
        severity="warn",
        title="CI/CD SUPPLY CHAIN",
        detect=matches(r"""uses:\s*["']?[^\s@"']+@v\d+["']?\s*(#.*)?$"""),
        message=(
            "GitHub Actions pinned to a major version tag (e.g. @v4). Pin to the full commit SHA "
            "with a version comment for supply chain security."
        ),
    ),
    Check(
        id="CI_SECRET_ECHO",
        category=CI,
        severity="warn",
        title="CI/CD SECRETS",
        detect=matches(
            r"\b(echo|print|printf|write-host|write-output)\b.*(\$\{\{\s*secrets\.|\$\{?secrets\.)",
            ignore_case=True,
        ),
        message=(
            "Possible secret exposure via echo/print. Never log secret values; GitHub masks known "
            "secrets but derived values may leak."
        ),
    ),
    Check(
        id="CI_WRITE_ALL_PERMISSIONS",
        category=CI,
        severity="warn",
        title="CI/CD PERMISSIONS",
        detect=matches(r"permissions:\s*write-all\b"),
        message=(
            "write-all permissions detected. Use granular permissions (contents: read, packages: write, "
            "etc.) following the principle of least privilege."
        ),
    ),
    Check(
        id="CI_NO_PERMISSIONS",
        category=CI,
        severity="warn",
        title="CI/CD PERMISSIONS",
        detect=all_of(_GITHUB_WORKFLOW, lacks(r"^permissions:")),
        message="No explicit top-level permissions block. Add one to restrict the GITHUB_TOKEN scope.",
    ),
    Check(
        id="CI_NO_TIMEOUT",
        category=CI,
        severity="warn",
        title="CI/CD TIMEOUT",
        detect=all_of(_GITHUB_WORKFLOW, lacks(r"\btimeout-minutes:")),
        message="No timeout-minutes set. Add a timeout so hung workflows do not consume runner minutes.",
    ),
)
