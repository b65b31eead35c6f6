from pathlib import Path

from iacguard.core.models import ArtifactCategory as C
from iacguard.scan.classifier import classify


def test_classify_terraform_and_tfvars() -> None:
    assert classify("infra/main.tf") == {C.TERRAFORM}
    assert classify("envs/prod.tfvars") == {C.TERRAFORM_VARS}
    assert classify("envs/prod.tfvars.json") == {C.TERRAFORM_VARS}


def test_classify_docker_files() -> None:
    assert classify("Dockerfile") == {C.DOCKERFILE}
    assert classify("docker/Dockerfile.prod") == {C.DOCKERFILE}
    assert classify("api.dockerfile") == {C.DOCKERFILE}
    assert classify("docker-compose.yml") == {C.DOCKER_COMPOSE}
    assert classify("compose.override.yaml") == {C.DOCKER_COMPOSE}


def test_composer_json_is_not_compose() -> None:
    assert classify("composer.json") == {C.GENERIC}


def test_classify_ci_pipelines() -> None:
    assert classify("/repo/.github/workflows/ci.yml") == {C.CI_PIPELINE}
    assert classify(".gitlab-ci.yml") == {C.CI_PIPELINE}
    assert classify("Jenkinsfile") == {C.CI_PIPELINE}
    assert classify(".circleci/config.yml") == {C.CI_PIPELINE}


def test_classify_ansible_and_env() -> None:
    assert classify("group_vars/all.yml") == {C.ANSIBLE}
    assert classify("roles/web/tasks/main.yml") == {C.ANSIBLE}
    assert classify(".env") == {C.ENV_FILE}
    assert classify("config/.env.production") == {C.ENV_FILE}


def test_kubernetes_by_directory_or_kind_line() -> None:
    assert classify("k8s/app.yaml") == {C.KUBERNETES}
    assert classify("deploy/service.json") == {C.KUBERNETES}
    assert classify("app.yaml", "apiVersion: apps/v1\nkind: Deployment\n") == {C.KUBERNETES}
    assert classify("app.yaml", "name: just-config\n") == {C.GENERIC}
    assert classify("app.yaml") == {C.GENERIC}


def test_kind_line_must_be_top_level() -> None:
    content = "spec:\n  kind: Deployment\n"
    assert classify("values.yaml", content) == {C.GENERIC}


def test_path_rules_win_over_kubernetes_sniffing() -> None:
    content = "kind: Deployment\n"
    assert classify(".github/workflows/deploy.yml", content) == {C.CI_PIPELINE}


def test_unknown_and_empty_paths() -> None:
    assert classify("README.md") == {C.GENERIC}
    assert classify(Path("src/app.py")) == {C.GENERIC}
    assert classify("") == frozenset()


def test_classification_is_case_insensitive_on_basename() -> None:
    assert classify("DOCKERFILE") == {C.DOCKERFILE}
    assert classify("MAIN.TF") == {C.TERRAFORM}
