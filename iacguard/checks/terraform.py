"""Terraform and tfvars checks."""

from __future__ import annotations

import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from iacguard.checks.base import Check, all_of, any_of, lacks, matches
from iacguard.core.models import ArtifactCategory, RepoContext

TF = ArtifactCategory.TERRAFORM

_RESOURCE_BLOCK = re.compile(r'^\s*resource\s+"', re.MULTILINE)
_BACKEND_BLOCK = re.compile(r'\bbackend\s+"', re.MULTILINE)


def _missing_backend(content: str, path: Path, repo: RepoContext) -> bool:
    sources = dict(repo.terraform_sources)
    if path.suffix == ".tf":
        sources[path.name] = content
    if not any(_RESOURCE_BLOCK.search(text) for text in sources.values()):
        return False
    return not any(_BACKEND_BLOCK.search(text) for text in sources.values())


@dataclass(frozen=True, slots=True)
class TerraformFmt:
    """Shells out to ``terraform fmt -check``; True when the file needs formatting."""

    binary: str
    timeout_s: float

    def __call__(self, content: str, path: Path, repo: RepoContext) -> bool:
        if not path.is_file():
            return False
        try:
            completed = subprocess.run(
                [self.binary, "fmt", "-check", "-no-color", str(path)],
                capture_output=True,
                timeout=self.timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug("terraform fmt timed out after {}s for {}", self.timeout_s, path)
            return False
        return completed.returncode != 0


TERRAFORM_CHECKS: tuple[Check, ...] = (
    Check(
        id="TF_HARDCODED_SECRET",
        category=TF,
        severity="warn",
        title="TERRAFORM SECRETS",
        detect=matches(r'(password|secret|token|api_key)\s*=\s*"[^${}"][^"]{4,}"', ignore_case=True),
        message=(
            "Possible hardcoded secret detected. Use variable references to a secret manager "
            "(aws_secretsmanager_secret, google_secret_manager_secret, azurerm_key_vault_secret)."
        ),
    ),
    Check(
        id="TF_NO_REMOTE_BACKEND",
        category=TF,
        severity="warn",
        title="TERRAFORM STATE",
        detect=_missing_backend,
        message=(
            "No remote state backend configured in {directory}. Add a backend block "
            "(S3, GCS, Azure Blob) with encryption and locking."
        ),
        scope="directory",
    ),
    Check(
        id="TF_OPEN_SECURITY_GROUP",
        category=TF,
        severity="warn",
        title="TERRAFORM SECURITY",
        detect=all_of(
            matches(r'cidr_blocks\s*=\s*\[\s*"0\.0\.0\.0/0"\s*\]'),
            matches(r"ingress|inbound"),
        ),
        message=(
            "Security group allows ingress from 0.0.0.0/0. Restrict to specific CIDR blocks "
            "unless this is a public load balancer on ports 80/443."
        ),
    ),
    Check(
        id="TF_AZURE_OPEN_NSG",
        category=TF,
        severity="warn",
        title="TERRAFORM SECURITY",
        detect=matches(r'source_address_prefix\s*=\s*"\*"'),
        message="Azure NSG allows traffic from any source (*). Restrict to specific address prefixes.",
    ),
    Check(
        id="TF_GCP_OPEN_FIREWALL",
        category=TF,
        severity="warn",
        title="TERRAFORM SECURITY",
        detect=matches(r'source_ranges\s*=\s*\[\s*"0\.0\.0\.0/0"\s*\]'),
        message="GCP firewall allows traffic from 0.0.0.0/0. Restrict source ranges.",
    ),
    Check(
        id="TF_S3_UNENCRYPTED",
        category=TF,
        severity="warn",
        title="TERRAFORM ENCRYPTION",
        detect=all_of(
            matches(r"\baws_s3_bucket\b"),
            lacks(r"server_side_encryption_configuration|aws_s3_bucket_server_side_encryption"),
        ),
        message=(
            "S3 bucket without explicit encryption configuration. Add server_side_encryption_configuration "
            "or use the aws_s3_bucket_server_side_encryption_configuration resource."
        ),
    ),
    Check(
        id="TF_RDS_UNENCRYPTED",
        category=TF,
        severity="warn",
        title="TERRAFORM ENCRYPTION",
        detect=all_of(matches(r"aws_db_instance|aws_rds_cluster"), lacks(r"storage_encrypted")),
        message="RDS instance without storage_encrypted = true. Enable encryption at rest.",
    ),
    Check(
        id="TF_EBS_UNENCRYPTED",
        category=TF,
        severity="warn",
        title="TERRAFORM ENCRYPTION",
        detect=all_of(matches(r"aws_ebs_volume"), lacks(r"\bencrypted\b")),
        message="EBS volume without encryption. Set encrypted = true.",
    ),
    Check(
        id="TF_IAM_WILDCARD_ACTION",
        category=TF,
        severity="warn",
        title="TERRAFORM IAM",
        detect=any_of(
            matches(r'"actions"\s*:\s*\[\s*"\*"\s*\]'),
            matches(r'\bactions\s*=\s*\[\s*"\*"\s*\]'),
            matches(r'"Action"\s*:\s*(\[\s*)?"\*"'),
        ),
        message=(
            "Wildcard (*) actions detected in IAM policy. Follow the principle of least privilege "
            "and grant only the specific actions needed."
        ),
    ),
    Check(
        id="TF_IAM_WILDCARD_RESOURCE",
        category=TF,
        severity="warn",
        title="TERRAFORM IAM",
        detect=any_of(
            matches(r'"resources"\s*:\s*\[\s*"\*"\s*\]'),
            matches(r'\bresources\s*=\s*\[\s*"\*"\s*\]'),
            matches(r'"Resource"\s*:\s*(\[\s*)?"\*"'),
        ),
        message="Wildcard (*) resources detected in IAM policy. Scope to specific resource ARNs.",
    ),
    Check(
        id="TF_PUBLIC_DATABASE",
        category=TF,
        severity="warn",
        title="TERRAFORM SECURITY",
        detect=matches(r"publicly_accessible\s*=\s*true"),
        message=(
            "Database set to publicly_accessible = true. Databases should sit in private subnets, "
            "reached through bastion hosts or VPN."
        ),
    ),
    Check(
        id="TF_IMDSV1_ALLOWED",
        category=TF,
        severity="warn",
        title="TERRAFORM SECURITY",
        detect=all_of(matches(r"aws_instance|aws_launch_template"), lacks(r"http_tokens")),
        message=(
            'EC2 instance without IMDSv2 enforcement. Add metadata_options { http_tokens = "required" } '
            "to prevent SSRF-based credential theft."
        ),
    ),
    Check(
        id="TF_MISSING_TAGS",
        category=TF,
        severity="warn",
        title="TERRAFORM TAGS",
        detect=all_of(matches(r'resource\s+"aws_'), lacks(r"tags")),
        message=(
            "AWS resources without tags. Add tags for cost tracking, ownership and environment "
            "identification (Project, Environment, ManagedBy)."
        ),
    ),
    Check(
        id="TF_PROVIDER_UNPINNED",
        category=TF,
        severity="warn",
        title="TERRAFORM PROVIDERS",
        detect=all_of(matches(r"required_providers"), matches(r'version\s*=\s*">=')),
        message=(
            'Provider version uses a >= constraint. Pin to an exact version (version = "x.y.z") '
            "or use ~> for patch-level flexibility."
        ),
    ),
)

TFVARS_CHECKS: tuple[Check, ...] = (
    Check(
        id="TFVARS_SECRET_RISK",
        category=ArtifactCategory.TERRAFORM_VARS,
        severity="info",
        title="TERRAFORM VARS",
        detect=matches(r'^\s*"?[A-Za-z_][\w-]*"?\s*[=:]\s*\S'),
        message=(
            "tfvars files often end up holding secrets. Reference a secret manager "
            "(aws_secretsmanager_secret_version, vault_generic_secret) instead of literal values "
            "and keep *.tfvars out of version control."
        ),
    ),
)


def terraform_fmt_check(timeout_s: float) -> Check | None:
    """Build the optional formatting check when ``terraform`` is installed."""
    binary = shutil.which("terraform")
    if binary is None:
        return None
    return Check(
        id="TF_FORMAT",
        category=TF,
        severity="info",
        title="TERRAFORM FORMAT",
        detect=TerraformFmt(binary=binary, timeout_s=timeout_s),
        message="File not formatted. Run 'terraform fmt {path}'.",
        phases=frozenset({"post"}),
    )
