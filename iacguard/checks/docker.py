"""Dockerfile and Docker Compose checks."""

from __future__ import annotations

import re
from pathlib import Path

from iacguard.checks.base import Check, all_of, lacks, matches, sibling_missing
from iacguard.core.models import ArtifactCategory, RepoContext

DOCKERFILE = ArtifactCategory.DOCKERFILE
COMPOSE = ArtifactCategory.DOCKER_COMPOSE

_FROM_LINE = re.compile(
    r"^\s*FROM\s+(?:--\S+\s+)*(?P<image>\S+)(?:\s+AS\s+(?P<alias>\S+))?\s*$",
    re.IGNORECASE | re.MULTILINE,
)

DATABASE_PORTS = frozenset({"3306", "5432", "27017", "6379", "9200"})

_PORTS_KEY = re.compile(r"^(?P<indent>\s*)ports:\s*(?P<inline>\[.*\])?\s*(#.*)?$")
_PORT_ITEM = re.compile(r"""^\s*-\s*["']?(?P<spec>[^"'\s#]+)""")
_LONG_SYNTAX_PORT = re.compile(r"""^\s*-?\s*(published|target):\s*["']?(?P<port>\d+)""")


def _untagged_base_image(content: str, path: Path, repo: RepoContext) -> bool:
    stages: set[str] = set()
    for match in _FROM_LINE.finditer(content):
        image = match.group("image")
        alias = match.group("alias")
        name = image.rsplit("/", 1)[-1]
        untagged = (
            "$" not in image
            and "@" not in image
            and ":" not in name
            and image.lower() != "scratch"
            and image.lower() not in stages
        )
        if alias:
            stages.add(alias.lower())
        if untagged:
            return True
    return False


def _port_spec_hits_database(spec: str) -> bool:
    # "8080:80", "127.0.0.1:5432:5432", "5432/tcp", "6379-6380:6379-6380"
    for part in spec.split(":"):
        for token in re.split(r"[-/]", part):
            if token in DATABASE_PORTS:
                return True
    return False


def _database_port_exposed(content: str, path: Path, repo: RepoContext) -> bool:
    lines = content.splitlines()
    for index, line in enumerate(lines):
        key = _PORTS_KEY.match(line)
        if key is None:
            continue
        inline = key.group("inline")
        if inline:
            specs = [item.strip().strip("\"'") for item in inline.strip("[]").split(",")]
            if any(_port_spec_hits_database(spec) for spec in specs if spec):
                return True
            continue
        indent = len(key.group("indent"))
        for follow in lines[index + 1 :]:
            if not follow.strip() or follow.lstrip().startswith("#"):
                continue
            depth = len(follow) - len(follow.lstrip())
            if depth < indent or (depth == indent and not follow.lstrip().startswith("-")):
                break
            item = _LONG_SYNTAX_PORT.match(follow) or _PORT_ITEM.match(follow)
            if item is None:
                continue
            spec = item.groupdict().get("spec") or item.groupdict().get("port") or ""
            if _port_spec_hits_database(spec):
                return True
    return False


DOCKERFILE_CHECKS: tuple[Check, ...] = (
    Check(
        id="DOCKER_NO_USER",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER SECURITY",
        detect=lacks(r"^USER\s+\S"),
        message=(
            "No USER instruction. The container runs as root by default. Add 'USER nonroot' or "
            "'USER 1000' after installing packages."
        ),
    ),
    Check(
        id="DOCKER_LATEST_TAG",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER IMAGES",
        detect=matches(r"^\s*FROM\s+(?:--\S+\s+)*\S+:latest\b", ignore_case=True),
        message=(
            "Base image uses the ':latest' tag. Pin to a specific version (e.g. node:22.12-alpine) "
            "for reproducible builds."
        ),
    ),
    Check(
        id="DOCKER_UNTAGGED_IMAGE",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER IMAGES",
        detect=_untagged_base_image,
        message="Base image has no tag at all (implies :latest). Pin to a specific version.",
    ),
    Check(
        id="DOCKER_SECRET_COPY",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER SECRETS",
        detect=matches(r"^\s*(COPY|ADD)\s+.*\.(env|pem|key|cert|p12|pfx|jks)\b", ignore_case=True),
        message=(
            "Secret or key file copied into an image layer. Use Docker secrets, BuildKit secret mounts "
            "(--mount=type=secret) or multi-stage builds."
        ),
    ),
    Check(
        id="DOCKER_ADD_URL",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER BEST PRACTICE",
        detect=matches(r"^\s*ADD\s+(?:--\S+\s+)*https?://", ignore_case=True),
        message=(
            "ADD with URL detected. Use a RUN curl/wget step followed by COPY for better caching "
            "and checksum verification."
        ),
    ),
    Check(
        id="DOCKER_NO_HEALTHCHECK",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER HEALTH",
        detect=lacks(r"^\s*HEALTHCHECK\b", ignore_case=True),
        message="No HEALTHCHECK instruction. Add HEALTHCHECK so orchestrators can monitor container health.",
    ),
    Check(
        id="DOCKER_NPM_INSTALL",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER NODE",
        detect=all_of(matches(r"\bnpm install\b"), lacks(r"\bnpm ci\b")),
        message=(
            "Uses 'npm install' instead of 'npm ci'. Use 'npm ci' in Dockerfiles for deterministic, "
            "faster installs from the lockfile."
        ),
    ),
    Check(
        id="DOCKER_NO_DOCKERIGNORE",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER BUILD",
        detect=sibling_missing(".dockerignore"),
        message=(
            "No .dockerignore file found alongside the Dockerfile. Create one to exclude .git, "
            "node_modules, .env files and other build context bloat."
        ),
    ),
    Check(
        id="DOCKER_SECRET_ARG",
        category=DOCKERFILE,
        severity="warn",
        title="DOCKER SECRETS",
        detect=matches(r"^\s*ARG\s+\w*(password|secret|token|key|credential)", ignore_case=True),
        message=(
            "Build ARG may contain secrets. ARG values are visible in image history (docker history). "
            "Use BuildKit secret mounts instead."
        ),
    ),
)

COMPOSE_CHECKS: tuple[Check, ...] = (
    Check(
        id="COMPOSE_NO_MEMORY_LIMIT",
        category=COMPOSE,
        severity="warn",
        title="COMPOSE RESOURCES",
        detect=all_of(matches(r"^\s*services:"), lacks(r"mem_limit|\bdeploy:")),
        message=(
            "No memory limits configured. Add mem_limit or deploy.resources.limits to keep containers "
            "from consuming all host memory."
        ),
    ),
    Check(
        id="COMPOSE_HARDCODED_DB_PASSWORD",
        category=COMPOSE,
        severity="warn",
        title="COMPOSE SECRETS",
        detect=matches(
            r"""(MYSQL_ROOT_PASSWORD|MYSQL_PASSWORD|POSTGRES_PASSWORD|MONGO_INITDB_ROOT_PASSWORD|REDIS_PASSWORD"""
            r"""|MARIADB_ROOT_PASSWORD)["']?\s*[:=]\s*["']?[A-Za-z0-9]""",
            ignore_case=True,
        ),
        message=(
            "Hardcoded database password in Compose file. Use variables from a .env file or Docker secrets."
        ),
    ),
    Check(
        id="COMPOSE_DB_PORT_EXPOSED",
        category=COMPOSE,
        severity="warn",
        title="COMPOSE NETWORKING",
        detect=_database_port_exposed,
        message=(
            "Database port exposed to the host. Remove the host port mapping for databases and reach "
            "them through the application network only."
        ),
    ),
    Check(
        id="COMPOSE_LATEST_TAG",
        category=COMPOSE,
        severity="warn",
        title="COMPOSE IMAGES",
        detect=matches(r"""^\s*image:\s*["']?\S+:latest["']?\s*(#.*)?$"""),
        message="Service uses the ':latest' tag. Pin to a specific version for reproducible deployments.",
    ),
)
