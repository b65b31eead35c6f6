"""Session-start project survey.

Looks at the working directory once when a session starts and reports
which infrastructure tooling is in use plus a handful of baseline warnings
(local Terraform state, committed state files, weak ``.gitignore``, ...).
All reads are bounded by depth and file count and fail open.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from iacguard.checks.docker import DOCKERFILE_CHECKS
from iacguard.checks.repository import active_patterns
from iacguard.core.models import RepoContext
from iacguard.scan.context import SKIP_DIRS, read_text

MAX_FILES = 5000
MAX_CONTENT_FILES = 200
_CONTENT_MAX_BYTES = 512 * 1024

_BACKEND = re.compile(r'\bbackend\s+"(?P<kind>[^"]+)"')
_REMOTE_BACKENDS = frozenset({"s3", "gcs", "azurerm", "remote", "consul", "http", "cos", "oss", "pg", "kubernetes"})
_CLOUD_PROVIDERS = (
    ("AWS", re.compile(r'provider\s+"aws"|\baws_')),
    ("GCP", re.compile(r'provider\s+"google"|\bgoogle_')),
    ("Azure", re.compile(r'provider\s+"azurerm"|\bazurerm_')),
    ("DigitalOcean", re.compile(r'provider\s+"digitalocean"|\bdigitalocean_')),
)
_COMPOSE_NAMES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")
_COMPOSE_LIMITS = re.compile(r"deploy:|resources:|mem_limit|cpus:")
_GITIGNORE_TERRAFORM = re.compile(r"\.terraform|tfstate")
_GITIGNORE_ENV = re.compile(r"^(\.env|\*\.env|\.env\*|\.env\.\*)\s*$", re.MULTILINE)
_PRIVATE_KEY_SUFFIXES = (".pem", ".key", ".p12", ".pfx")
_DOCKERFILE_WARNINGS = {
    "DOCKER_NO_USER": "Dockerfile has no USER instruction - container runs as root by default",
    "DOCKER_LATEST_TAG": "Dockerfile uses a :latest base image - pin to a specific version for reproducibility",
    "DOCKER_UNTAGGED_IMAGE": "Dockerfile uses an untagged base image - pin to a specific version for reproducibility",
    "DOCKER_NO_HEALTHCHECK": "Dockerfile has no HEALTHCHECK instruction - orchestrators cannot detect unhealthy containers",
}


@dataclass(frozen=True, slots=True, kw_only=True)
class ProjectSurvey:
    """What the survey found in one project directory."""

    root: Path
    iac_tools: tuple[str, ...] = ()
    ci_systems: tuple[str, ...] = ()
    cloud_providers: tuple[str, ...] = ()
    containers: tuple[str, ...] = ()
    monitoring: tuple[str, ...] = ()
    security_tools: tuple[str, ...] = ()
    state_backend: str | None = None
    details: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def context_lines(self) -> list[str]:
        lines: list[str] = []
        for label, values in (
            ("IaC tools", self.iac_tools),
            ("CI/CD", self.ci_systems),
            ("Cloud providers", self.cloud_providers),
            ("Containers", self.containers),
            ("Monitoring", self.monitoring),
            ("Security tools", self.security_tools),
        ):
            if values:
                lines.append(f"{label}: {', '.join(values)}")
        if self.state_backend:
            lines.append(f"Terraform state backend: {self.state_backend}")
        lines.extend(self.details)
        return lines

    @property
    def is_empty(self) -> bool:
        return not self.context_lines() and not self.warnings


@dataclass(slots=True)
class _FileIndex:
    root: Path
    files: list[str] = field(default_factory=list)
    dirs: set[str] = field(default_factory=set)

    def has_file(self, rel: str) -> bool:
        return rel in self.files

    def has_dir(self, rel: str) -> bool:
        return rel in self.dirs

    def with_suffix(self, *suffixes: str) -> list[str]:
        return [f for f in self.files if f.lower().endswith(suffixes)]

    def named(self, predicate) -> list[str]:
        return [f for f in self.files if predicate(f.rsplit("/", 1)[-1].lower())]

    def read(self, rel: str) -> str | None:
        return read_text(self.root / rel, max_bytes=_CONTENT_MAX_BYTES)

    def read_many(self, rels: list[str]) -> list[tuple[str, str]]:
        out: list[tuple[str, str]] = []
        for rel in rels[:MAX_CONTENT_FILES]:
            text = self.read(rel)
            if text is not None:
                out.append((rel, text))
        return out


def _index(root: Path, max_depth: int) -> _FileIndex:
    index = _FileIndex(root=root)
    root_depth = len(root.parts)
    for current, dirs, files in os.walk(root, onerror=lambda e: None):
        current_path = Path(current)
        rel_dir = current_path.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"
        depth = len(current_path.parts) - root_depth
        for name in sorted(files):
            index.files.append(prefix + name)
            if len(index.files) >= MAX_FILES:
                logger.debug("survey file cap reached under {}", root)
                return index
        keep = sorted(d for d in dirs if d not in SKIP_DIRS)
        index.dirs.update(prefix + d for d in keep)
        dirs[:] = keep if depth < max_depth - 1 else []
    return index


def survey_project(root: Path, *, max_depth: int = 3) -> ProjectSurvey:
    """Survey ``root`` for infrastructure tooling and baseline risks."""
    index = _index(root, max_depth)
    iac: list[str] = []
    ci: list[str] = []
    containers: list[str] = []
    monitoring: list[str] = []
    security: list[str] = []
    details: list[str] = []
    warnings: list[str] = []
    backend: str | None = None

    tf_files = index.with_suffix(".tf")
    tf_sources = index.read_many(tf_files)
    if tf_files:
        iac.append("Terraform")
        backend = _detect_backend(tf_sources)
        if backend is None:
            warnings.append(
                "WARNING: Terraform files found but no remote state backend detected - state is stored "
                "locally (risk of loss and no locking)"
            )
        if index.has_file(".terraform.lock.hcl"):
            details.append("Terraform provider lockfile present")
        tfvars = index.with_suffix(".tfvars", ".tfvars.json")
        if tfvars:
            details.append(f"{len(tfvars)} tfvars file(s) found")
        if index.with_suffix(".tfstate"):
            warnings.append(
                "CRITICAL: Terraform state file (.tfstate) found in repository - state files contain "
                "sensitive data and should not be committed"
            )
        if index.has_dir("modules") or index.has_dir("infrastructure/modules"):
            details.append("Terraform module structure detected")
        if index.has_dir("environments") or index.has_dir("infrastructure/environments"):
            details.append("Multi-environment directory structure detected")

    if index.has_file("Pulumi.yaml"):
        iac.append("Pulumi")
    structured = index.with_suffix(".yaml", ".yml", ".json")
    structured_sources = index.read_many(structured)
    if any("AWSTemplateFormatVersion" in text for _, text in structured_sources):
        iac.append("CloudFormation")
    if index.has_file("cdk.json"):
        iac.append("AWS CDK")
    if any(
        (index.has_file("ansible.cfg"), index.has_file("playbook.yml"), index.has_dir("playbooks"), index.has_dir("roles"))
    ):
        iac.append("Ansible")
        if index.named(lambda name: "vault" in name):
            details.append("Ansible Vault files detected")
        if index.has_file("inventory") or index.has_file("inventory.yml") or index.has_dir("inventory"):
            details.append("Ansible inventory detected")
    if index.has_file("Vagrantfile"):
        iac.append("Vagrant")
    if index.with_suffix(".pkr.hcl", ".pkr.json"):
        iac.append("Packer")

    if index.has_dir(".github/workflows"):
        ci.append("GitHub Actions")
        workflows = [f for f in index.with_suffix(".yml", ".yaml") if f.startswith(".github/workflows/")]
        details.append(f"GitHub Actions: {len(workflows)} workflow(s)")
    for rel, name in (
        (".gitlab-ci.yml", "GitLab CI"),
        ("Jenkinsfile", "Jenkins"),
        (".circleci/config.yml", "CircleCI"),
        (".travis.yml", "Travis CI"),
        ("azure-pipelines.yml", "Azure Pipelines"),
        ("bitbucket-pipelines.yml", "Bitbucket Pipelines"),
        (".drone.yml", "Drone CI"),
    ):
        if index.has_file(rel):
            ci.append(name)
    if index.has_dir(".buildkite"):
        ci.append("Buildkite")

    clouds = [name for name, pattern in _CLOUD_PROVIDERS if any(pattern.search(text) for _, text in tf_sources)]

    compose_file = next((name for name in _COMPOSE_NAMES if index.has_file(name)), None)
    if index.has_file("Dockerfile") or compose_file:
        containers.append("Docker")
        if index.has_file("Dockerfile"):
            warnings.extend(_dockerfile_warnings(root, index.read("Dockerfile")))
        if compose_file:
            compose = index.read(compose_file)
            if compose is not None and not _COMPOSE_LIMITS.search(compose):
                warnings.append(
                    "Docker Compose has no resource limits - containers can consume unlimited host resources"
                )
    if any(index.has_dir(d) for d in ("k8s", "kubernetes", "manifests", "deploy")):
        containers.append("Kubernetes")
    if index.has_dir("charts") or index.has_dir("helm") or index.has_file("Chart.yaml"):
        containers.append("Helm")
    if index.named(lambda name: name in ("kustomization.yaml", "kustomization.yml")):
        containers.append("Kustomize")

    if index.named(lambda name: name in ("prometheus.yml", "prometheus.yaml")):
        monitoring.append("Prometheus")
    if index.named(lambda name: name.startswith("grafana")):
        monitoring.append("Grafana")
    if index.named(lambda name: name.startswith("datadog")):
        monitoring.append("Datadog")
    if any("aws_cloudwatch" in text for _, text in tf_sources):
        monitoring.append("CloudWatch")
    if any(re.search(r"opentelemetry|\botel\b", text) for _, text in structured_sources):
        monitoring.append("OpenTelemetry")

    for rels, name in (
        ((".trivyignore", "trivy.yaml"), "Trivy"),
        ((".tfsec.yml",), "tfsec"),
        ((".checkov.yml", ".checkov.yaml"), "Checkov"),
        ((".gitleaks.toml",), "Gitleaks"),
        ((".snyk",), "Snyk"),
        ((".github/dependabot.yml",), "Dependabot"),
        (("renovate.json", ".renovaterc.json"), "Renovate"),
    ):
        if any(index.has_file(rel) for rel in rels):
            security.append(name)

    warnings.extend(_gitignore_warnings(root, index, has_iac=bool(iac)))
    warnings.extend(_tracked_env_warnings(root, index))
    if index.with_suffix(*_PRIVATE_KEY_SUFFIXES):
        warnings.append("WARNING: Private key files detected in repository")
    if iac and not monitoring:
        warnings.append(
            "No monitoring configuration detected - infrastructure without monitoring means outages go undetected"
        )
    if iac and not security:
        warnings.append(
            "No IaC security scanning detected (tfsec, checkov, trivy) - consider adding infrastructure "
            "security scanning"
        )

    survey = ProjectSurvey(
        root=root,
        iac_tools=tuple(iac),
        ci_systems=tuple(ci),
        cloud_providers=tuple(clouds),
        containers=tuple(containers),
        monitoring=tuple(monitoring),
        security_tools=tuple(security),
        state_backend=backend,
        details=tuple(details),
        warnings=tuple(warnings),
    )
    logger.info(
        "session_survey root={} iac={} ci={} clouds={} containers={} warnings={}",
        root,
        list(survey.iac_tools),
        list(survey.ci_systems),
        list(survey.cloud_providers),
        list(survey.containers),
        len(survey.warnings),
    )
    return survey


def _detect_backend(sources: list[tuple[str, str]]) -> str | None:
    for _, text in sources:
        for match in _BACKEND.finditer(text):
            kind = match.group("kind")
            if kind in _REMOTE_BACKENDS:
                return kind
    return None


def _dockerfile_warnings(root: Path, content: str | None) -> list[str]:
    if content is None:
        return []
    path = root / "Dockerfile"
    repo = RepoContext(root_path=root, directory=root)
    return [
        _DOCKERFILE_WARNINGS[check.id]
        for check in DOCKERFILE_CHECKS
        if check.id in _DOCKERFILE_WARNINGS and check.detect(content, path, repo)
    ]


def _gitignore_warnings(root: Path, index: _FileIndex, *, has_iac: bool) -> list[str]:
    if not (root / ".git").exists():
        return []
    gitignore = index.read(".gitignore")
    if gitignore is None:
        return ["CRITICAL: No .gitignore found in git repository"]
    gitignore = active_patterns(gitignore)
    warnings: list[str] = []
    if has_iac and not _GITIGNORE_TERRAFORM.search(gitignore):
        warnings.append("WARNING: .gitignore does not exclude Terraform state and the .terraform directory")
    if not _GITIGNORE_ENV.search(gitignore):
        warnings.append("WARNING: .gitignore does not appear to exclude .env files")
    return warnings


def _tracked_env_warnings(root: Path, index: _FileIndex) -> list[str]:
    candidates = [name for name in (".env", ".env.local", ".env.production") if index.has_file(name)]
    git = shutil.which("git")
    if not candidates or git is None or not (root / ".git").exists():
        return []
    warnings: list[str] = []
    for name in candidates:
        try:
            completed = subprocess.run(
                [git, "-C", str(root), "ls-files", "--error-unmatch", name],
                capture_output=True,
                timeout=5,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("git ls-files failed for {}: {}", name, e)
            continue
        if completed.returncode == 0:
            warnings.append(f"CRITICAL: {name} is tracked by git - secrets may be exposed in history")
    return warnings
