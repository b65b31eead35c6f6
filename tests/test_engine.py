from pathlib import Path

from iacguard.checks import Check, PatternLibrary, build_library
from iacguard.checks.base import matches
from iacguard.config.schema import ChecksConfig
from iacguard.core.models import ArtifactCategory, Invocation, RepoContext
from iacguard.scan.classifier import classify
from iacguard.scan.context import build_context, contains_terraform, find_repo_root, read_text
from iacguard.scan.engine import RuleEngine


def _boom(content: str, path: Path, repo: RepoContext) -> bool:
    raise RuntimeError("boom")


def _invocation(path: Path, phase: str = "post") -> Invocation:
    return Invocation(tool_name="Write", file_path=path, phase=phase)


def test_engine_output_is_deterministic(tmp_path: Path) -> None:
    engine = RuleEngine(build_library(ChecksConfig(terraform_fmt=False)))
    path = tmp_path / "Dockerfile"
    content = "FROM node:latest\n"
    repo = RepoContext(root_path=tmp_path, directory=tmp_path)
    categories = classify(path, content)
    first = engine.run(_invocation(path), categories, content, repo)
    second = engine.run(_invocation(path), categories, content, repo)
    assert first == second
    assert [f.check_id for f in first][:2] == ["DOCKER_NO_USER", "DOCKER_LATEST_TAG"]


def test_engine_skips_a_failing_check() -> None:
    library = PatternLibrary(
        (
            Check(
                id="BROKEN",
                category=ArtifactCategory.ANY,
                severity="warn",
                title="BROKEN",
                detect=_boom,
                message="never",
            ),
            Check(
                id="HELLO",
                category=ArtifactCategory.ANY,
                severity="info",
                title="HELLO",
                detect=matches(r"hello"),
                message="found hello in {path}",
            ),
        )
    )
    path = Path("/work/notes.txt")
    repo = RepoContext(root_path=Path("/work"), directory=Path("/work"))
    findings = RuleEngine(library).run(_invocation(path), classify(path), "hello", repo)
    assert [f.check_id for f in findings] == ["HELLO"]
    assert findings[0].message == "found hello in /work/notes.txt"
    assert findings[0].render() == "[HELLO] HELLO: found hello in /work/notes.txt"


def test_engine_without_content_runs_only_path_checks() -> None:
    engine = RuleEngine(build_library(ChecksConfig(terraform_fmt=False)))
    path = Path("/work/secrets/.env")
    repo = RepoContext(root_path=Path("/work"), directory=path.parent)
    findings = engine.run(_invocation(path, "pre"), classify(path), None, repo)
    assert [f.check_id for f in findings] == ["SENSITIVE_TARGET"]


def test_find_repo_root_and_read_text(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    nested = tmp_path / "infra" / "modules"
    nested.mkdir(parents=True)
    assert find_repo_root(nested) == tmp_path

    text_file = tmp_path / "a.tf"
    text_file.write_text('resource "x" "y" {}\n')
    assert read_text(text_file) == 'resource "x" "y" {}\n'
    assert read_text(tmp_path / "missing.tf") is None
    assert read_text(text_file, max_bytes=3) is None

    binary = tmp_path / "blob.bin"
    binary.write_bytes(b"abc\x00def")
    assert read_text(binary) is None


def test_contains_terraform_respects_depth(tmp_path: Path) -> None:
    deep = tmp_path / "a" / "b" / "c"
    deep.mkdir(parents=True)
    (deep / "main.tf").write_text("")
    assert not contains_terraform(tmp_path, max_depth=3)
    assert contains_terraform(tmp_path, max_depth=4)


def test_build_context_collects_siblings_and_gitignore(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / ".gitignore").write_text("node_modules\n")
    infra = tmp_path / "infra"
    infra.mkdir()
    (infra / "backend.tf").write_text('terraform {\n  backend "s3" {}\n}\n')
    (infra / "main.tf").write_text('resource "aws_sqs_queue" "q" {}\n')

    repo = build_context(infra / "main.tf")
    assert repo.root_path == tmp_path
    assert repo.directory == infra
    assert repo.sibling_files == ("backend.tf", "main.tf")
    assert dict(repo.terraform_sources)["backend.tf"].startswith("terraform")
    assert repo.gitignore_content == "node_modules\n"
    assert repo.has_terraform


def test_repository_checks_report_once_against_root(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / ".gitignore").write_text("node_modules\n")
    infra = tmp_path / "infra"
    infra.mkdir()
    path = infra / "main.tf"
    path.write_text('terraform {\n  backend "s3" {}\n}\nresource "aws_sqs_queue" "q" {\n  tags = {}\n}\n')

    engine = RuleEngine(build_library(ChecksConfig(terraform_fmt=False)))
    content = read_text(path)
    findings = engine.run(_invocation(path), classify(path, content), content, build_context(path))
    by_id = {f.check_id: f for f in findings}
    assert set(by_id) == {"GITIGNORE_MISSING_ENV", "GITIGNORE_MISSING_TFSTATE"}
    assert by_id["GITIGNORE_MISSING_ENV"].subject == str(tmp_path)
    assert str(tmp_path / ".gitignore") in by_id["GITIGNORE_MISSING_TFSTATE"].message


def test_negated_gitignore_lines_do_not_count_as_exclusions(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / ".gitignore").write_text("!.env.example\n!terraform.tfstate.d/keep\n")
    path = tmp_path / "main.tf"
    path.write_text('resource "aws_sqs_queue" "q" {}\n')

    engine = RuleEngine(build_library(ChecksConfig(terraform_fmt=False)))
    content = read_text(path)
    findings = engine.run(_invocation(path), classify(path, content), content, build_context(path))
    ids = {f.check_id for f in findings}
    assert {"GITIGNORE_MISSING_ENV", "GITIGNORE_MISSING_TFSTATE"} <= ids

    (tmp_path / ".gitignore").write_text(".env*\n!.env.example\n*.tfstate\n")
    findings = engine.run(_invocation(path), classify(path, content), content, build_context(path))
    assert not {f.check_id for f in findings} & {"GITIGNORE_MISSING_ENV", "GITIGNORE_MISSING_TFSTATE"}


def test_backend_finding_is_reported_per_directory(tmp_path: Path) -> None:
    infra = tmp_path / "infra"
    infra.mkdir()
    (infra / "network.tf").write_text('resource "aws_vpc" "main" {\n  tags = {}\n}\n')
    path = infra / "compute.tf"
    path.write_text('resource "aws_sqs_queue" "q" {\n  tags = {}\n}\n')

    engine = RuleEngine(build_library(ChecksConfig(terraform_fmt=False)))
    content = read_text(path)
    findings = engine.run(_invocation(path), classify(path, content), content, build_context(path))
    backend = [f for f in findings if f.check_id == "TF_NO_REMOTE_BACKEND"]
    assert len(backend) == 1
    assert backend[0].subject == str(infra)
