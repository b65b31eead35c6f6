"""Artifact classifier: path (and, for ambiguous YAML, content) to categories."""

from __future__ import annotations

import re
from pathlib import PurePath

from iacguard.core.models import ArtifactCategory

CI_DIRECTORIES = (".github/workflows", ".circleci", ".buildkite")
CI_BASENAMES = frozenset(
    {
        "jenkinsfile",
        ".gitlab-ci.yml",
        ".travis.yml",
        "azure-pipelines.yml",
        "bitbucket-pipelines.yml",
        ".drone.yml",
    }
)
ANSIBLE_SEGMENTS = frozenset({"playbooks", "roles", "inventory", "group_vars", "host_vars"})
KUBERNETES_SEGMENTS = frozenset({"k8s", "kubernetes", "manifests", "charts", "helm", "deploy"})
KUBERNETES_KINDS = (
    "Deployment",
    "Service",
    "Pod",
    "StatefulSet",
    "DaemonSet",
    "Job",
    "CronJob",
    "Ingress",
    "ConfigMap",
    "Secret",
    "Namespace",
    "NetworkPolicy",
    "Role",
    "RoleBinding",
    "ClusterRole",
    "ClusterRoleBinding",
)

_KIND_LINE = re.compile(r"^kind:\s*[\"']?(" + "|".join(KUBERNETES_KINDS) + r")[\"']?\s*(#.*)?$", re.MULTILINE)
_ENV_BASENAME = re.compile(r"^\.env|env\.local|env\.production|env\.staging")
_COMPOSE_BASENAME = re.compile(r"^(docker-compose|compose)([.\-].*)?\.ya?ml$")


def classify(path: str | PurePath, content: str | None = None) -> frozenset[ArtifactCategory]:
    """Assign artifact categories to a file.

    Path rules are evaluated first and may yield several categories. YAML that
    no path rule claimed falls back to Kubernetes detection by directory name
    or by a top-level ``kind:`` line. A file nothing recognizes is ``generic``;
    only an empty path yields the empty set.
    """
    text = str(path).strip()
    if not text:
        return frozenset()

    pure = PurePath(text)
    basename = pure.name.lower()
    lowered = "/" + pure.as_posix().lower().lstrip("/")
    segments = {part.lower() for part in pure.parts[:-1]}
    suffix = pure.suffix.lower()

    categories: set[ArtifactCategory] = set()

    if suffix == ".tf":
        categories.add(ArtifactCategory.TERRAFORM)
    elif suffix == ".tfvars" or basename.endswith(".tfvars.json"):
        categories.add(ArtifactCategory.TERRAFORM_VARS)

    if basename == "dockerfile" or basename.startswith("dockerfile.") or basename.endswith(".dockerfile"):
        categories.add(ArtifactCategory.DOCKERFILE)

    if _COMPOSE_BASENAME.match(basename):
        categories.add(ArtifactCategory.DOCKER_COMPOSE)

    if basename in CI_BASENAMES or any(f"/{d}/" in lowered for d in CI_DIRECTORIES):
        categories.add(ArtifactCategory.CI_PIPELINE)

    if segments & ANSIBLE_SEGMENTS:
        categories.add(ArtifactCategory.ANSIBLE)

    if _ENV_BASENAME.search(basename):
        categories.add(ArtifactCategory.ENV_FILE)

    if not categories and _is_kubernetes(suffix, segments, content):
        categories.add(ArtifactCategory.KUBERNETES)

    return frozenset(categories) or frozenset({ArtifactCategory.GENERIC})


def _is_kubernetes(suffix: str, segments: set[str], content: str | None) -> bool:
    if suffix == ".json":
        return bool(segments & KUBERNETES_SEGMENTS)
    if suffix not in (".yaml", ".yml"):
        return False
    if segments & KUBERNETES_SEGMENTS:
        return True
    return content is not None and _KIND_LINE.search(content) is not None
