"""Repository context and fail-open filesystem reads.

Every read here returns ``None`` (or an empty value) on failure. A missing
or unreadable file is treated as absent, never as an error.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from iacguard.core.models import RepoContext

VCS_MARKERS = (".git", ".hg", ".svn")
SKIP_DIRS = frozenset({".git", ".hg", ".svn", ".terraform", "node_modules", ".venv", "venv", "__pycache__"})

DEFAULT_MAX_BYTES = 2 * 1024 * 1024
_BINARY_SNIFF_BYTES = 8192


def read_text(path: Path, *, max_bytes: int = DEFAULT_MAX_BYTES) -> str | None:
    """Read a text file. Returns None when missing, unreadable, binary or too large."""
    try:
        if path.stat().st_size > max_bytes:
            logger.debug("Skipping {}: larger than {} bytes", path, max_bytes)
            return None
        data = path.read_bytes()
    except OSError as e:
        logger.debug("Cannot read {}: {}", path, e)
        return None
    if b"\x00" in data[:_BINARY_SNIFF_BYTES]:
        logger.debug("Skipping {}: looks binary", path)
        return None
    return data.decode("utf-8", errors="replace")


def find_repo_root(start: Path) -> Path | None:
    """Walk upward from ``start`` until a version-control marker is found."""
    for candidate in (start, *start.parents):
        for marker in VCS_MARKERS:
            try:
                if (candidate / marker).exists():
                    return candidate
            except OSError:
                continue
    return None


def list_dir(directory: Path) -> tuple[str, ...]:
    try:
        return tuple(sorted(entry.name for entry in directory.iterdir()))
    except OSError:
        return ()


def contains_terraform(root: Path, *, max_depth: int = 3) -> bool:
    """True when a ``.tf`` file exists within ``max_depth`` levels of ``root``."""
    root_depth = len(root.parts)
    for current, dirs, files in os.walk(root, onerror=lambda e: None):
        depth = len(Path(current).parts) - root_depth
        if any(name.endswith(".tf") for name in files):
            return True
        if depth >= max_depth - 1:
            dirs[:] = []
        else:
            dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)
    return False


def build_context(file_path: Path, *, max_bytes: int = DEFAULT_MAX_BYTES, max_depth: int = 3) -> RepoContext:
    """Build a fresh read-only view of the repository around ``file_path``."""
    directory = file_path.parent
    root = find_repo_root(directory)
    root = root or directory

    siblings = list_dir(directory)
    terraform_sources = tuple(
        (name, text)
        for name in siblings
        if name.endswith(".tf")
        and (text := read_text(directory / name, max_bytes=max_bytes)) is not None
    )

    gitignore = read_text(root / ".gitignore", max_bytes=max_bytes)
    has_terraform = gitignore is not None and (
        file_path.suffix == ".tf" or contains_terraform(root, max_depth=max_depth)
    )

    return RepoContext(
        root_path=root,
        directory=directory,
        sibling_files=siblings,
        terraform_sources=terraform_sources,
        gitignore_content=gitignore,
        has_terraform=has_terraform,
    )


def file_exists(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False
