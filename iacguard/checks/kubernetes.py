"""Kubernetes manifest checks."""

from __future__ import annotations

from iacguard.checks.base import Check, all_of, lacks, matches
from iacguard.core.models import ArtifactCategory

K8S = ArtifactCategory.KUBERNETES

KUBERNETES_CHECKS: tuple[Check, ...] = (
    Check(
        id="K8S_PLAIN_SECRET",
        category=K8S,
        severity="warn",
        title="K8S SECRETS",
        detect=matches(r"^\s*kind:\s*Secret\s*$"),
        message=(
            "Kubernetes Secret written. Base64 encoding is NOT encryption. Use External Secrets Operator, "
            "Sealed Secrets, or mount from a secret manager (Vault, AWS Secrets Manager)."
        ),
    ),
    Check(
        id="K8S_PRIVILEGED",
        category=K8S,
        severity="warn",
        title="K8S SECURITY",
        detect=matches(r"\bprivileged:\s*true\b"),
        message=(
            "Privileged container detected. This grants full host access. Remove unless absolutely "
            "required (e.g. CNI plugin, storage driver)."
        ),
    ),
    Check(
        id="K8S_HOST_NETWORK",
        category=K8S,
        severity="warn",
        title="K8S SECURITY",
        detect=matches(r"\bhostNetwork:\s*true\b"),
        message="hostNetwork enabled. The container shares the node's network namespace and bypasses network policies.",
    ),
    Check(
        id="K8S_HOST_PID",
        category=K8S,
        severity="warn",
        title="K8S SECURITY",
        detect=matches(r"\bhostPID:\s*true\b"),
        message="hostPID enabled. The container can see all processes on the node, a privilege escalation risk.",
    ),
    Check(
        id="K8S_RUN_AS_ROOT",
        category=K8S,
        severity="warn",
        title="K8S SECURITY",
        detect=matches(r"\brunAsNonRoot:\s*false\b"),
        message=(
            "Container explicitly set to run as root (runAsNonRoot: false). Set runAsNonRoot: true "
            "and specify a non-root runAsUser."
        ),
    ),
    Check(
        id="K8S_NO_RESOURCES",
        category=K8S,
        severity="warn",
        title="K8S RESOURCES",
        detect=all_of(matches(r"^\s*kind:\s*(Deployment|StatefulSet|DaemonSet)\b"), lacks(r"\bresources:")),
        message=(
            "Workload without resource limits. Add CPU and memory requests and limits to prevent "
            "noisy-neighbor problems and OOM kills."
        ),
    ),
    Check(
        id="K8S_NO_PROBES",
        category=K8S,
        severity="warn",
        title="K8S PROBES",
        detect=all_of(
            matches(r"^\s*kind:\s*(Deployment|StatefulSet)\b"),
            lacks(r"\b(readinessProbe|livenessProbe):"),
        ),
        message=(
            "Workload without health probes. Add a readinessProbe (traffic routing) and a livenessProbe "
            "(restart policy) for reliable rollouts."
        ),
    ),
    Check(
        id="K8S_LATEST_TAG",
        category=K8S,
        severity="warn",
        title="K8S IMAGES",
        detect=matches(r"""^\s*-?\s*image:\s*["']?\S+:latest["']?\s*(#.*)?$"""),
        message=(
            "Container uses the ':latest' tag. Pin to a specific version or SHA digest for "
            "reproducible deployments and safe rollbacks."
        ),
    ),
    Check(
        id="K8S_SINGLE_REPLICA",
        category=K8S,
        severity="warn",
        title="K8S AVAILABILITY",
        detect=all_of(matches(r"^\s*replicas:\s*1\s*$"), matches(r"^\s*kind:\s*Deployment\s*$")),
        message=(
            "Deployment has 1 replica. Consider multiple replicas with a PodDisruptionBudget "
            "for high availability."
        ),
    ),
    Check(
        id="K8S_CLUSTER_ADMIN",
        category=K8S,
        severity="warn",
        title="K8S RBAC",
        detect=matches(r"\bcluster-admin\b"),
        message=(
            "cluster-admin role binding detected. This grants unrestricted cluster access. "
            "Use scoped roles with the minimum necessary permissions."
        ),
    ),
)
