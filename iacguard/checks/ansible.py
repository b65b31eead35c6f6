"""Ansible variable and inventory checks."""

from __future__ import annotations

from iacguard.checks.base import Check, matches
from iacguard.core.models import ArtifactCategory

ANSIBLE = ArtifactCategory.ANSIBLE

ANSIBLE_CHECKS: tuple[Check, ...] = (
    Check(
        id="ANSIBLE_PLAINTEXT_CONNECTION_PASSWORD",
        category=ANSIBLE,
        severity="warn",
        title="ANSIBLE SECRETS",
        detect=matches(r"\b(ansible_become_password|ansible_become_pass|ansible_ssh_pass|ansible_password)\b"),
        message="Plaintext credentials detected. Encrypt with 'ansible-vault encrypt_string' or use Ansible Vault files.",
    ),
    Check(
        id="ANSIBLE_PLAINTEXT_SECRET",
        category=ANSIBLE,
        severity="warn",
        title="ANSIBLE SECRETS",
        detect=matches(r"""(password|secret|token|api_key):\s*[A-Za-z0-9"'][^{]""", ignore_case=True),
        message="Possible plaintext secret in variable file. Use ansible-vault to encrypt sensitive values.",
    ),
)
