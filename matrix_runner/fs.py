"""File system helpers: isolated build directories and directory copies."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

_PREFIX = "matrix_runner_"


def _sanitize(name: str) -> str:
    return "".join(char if char.isalnum() else "_" for char in name)


def create_build_dir(
    project_root: str | os.PathLike[str], case_name: str
) -> tuple[Path, tempfile.TemporaryDirectory[str]]:
    """Create a fresh temporary build directory for a test case.

    A stale ``target/matrix_runner_<case>`` directory under the project is
    removed first. The returned handle deletes the directory on cleanup.
    """
    target_dir = Path(project_root) / "target"
    stale = target_dir / f"{_PREFIX}{_sanitize(case_name)}"
    if stale.exists():
        try:
            shutil.rmtree(stale)
        except OSError as exc:
            raise OSError(f"Failed to clean up old build directory: {stale}") from exc

    try:
        handle = tempfile.TemporaryDirectory()
    except OSError:
        try:
            handle = tempfile.TemporaryDirectory(prefix=_PREFIX, dir=target_dir)
        except OSError as exc:
            raise OSError("Failed to create temporary build directory") from exc
    return Path(handle.name), handle


def copy_dir_all(
    source: str | os.PathLike[str], destination: str | os.PathLike[str]
) -> Path:
    """Copy a directory tree, overwriting existing files.

    If ``destination`` does not exist, it receives the contents of ``source``;
    otherwise ``source`` is copied into it under its own name. Returns the
    directory that now holds the copy.
    """
    source = Path(source)
    destination = Path(destination)
    if not source.exists():
        raise FileNotFoundError(f"Source directory does not exist: {source}")
    if not source.is_dir():
        raise NotADirectoryError(f"Source is not a directory: {source}")
    target = destination / source.name if destination.exists() else destination
    shutil.copytree(source, target, dirs_exist_ok=True)
    return target


def is_directory(path: str | os.PathLike[str]) -> bool:
    """Return True if ``path`` exists and is a directory."""
    return Path(path).is_dir()


def absolute_path(path: str | os.PathLike[str]) -> Path:
    """Resolve ``path`` to an absolute path; it must exist."""
    try:
        return Path(path).resolve(strict=True)
    except OSError as exc:
        message = f"Failed to resolve path: {path}"
        if exc.errno is None:
            raise OSError(message) from exc
        raise OSError(exc.errno, message) from exc