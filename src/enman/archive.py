# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Extract zip / gzip-tar / xz-tar distributions into a flattened install tree.

Archives are unpacked into an isolated staging directory beside the
destination. The distribution root is the sole top-level directory, or the
first top-level directory (by name) when several entries exist; its children
are promoted into the destination, replacing same-named entries. Any other
top-level entries are dropped.
"""

from __future__ import annotations

import logging
import lzma
import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path
from typing import Final

from .errors import ArchiveError

LOGGER = logging.getLogger(__name__)

EXECUTABLE_MODE: Final[int] = 0o755


class ArchiveFormat(StrEnum):
    """Container formats understood by the extractor."""

    ZIP = "zip"
    TAR_GZ = "tar.gz"
    TAR_XZ = "tar.xz"

    @property
    def suffix(self) -> str:
        return f".{self.value}"


_SUFFIXES: Final[tuple[tuple[str, ArchiveFormat], ...]] = (
    (".zip", ArchiveFormat.ZIP),
    (".tar.gz", ArchiveFormat.TAR_GZ),
    (".tgz", ArchiveFormat.TAR_GZ),
    (".tar.xz", ArchiveFormat.TAR_XZ),
    (".txz", ArchiveFormat.TAR_XZ),
)


def detect_format(name: str) -> ArchiveFormat:
    """Return the archive format implied by the file name ``name``.

    Raises:
        ArchiveError: If the extension is not recognised.
    """

    lowered = name.lower()
    for suffix, archive_format in _SUFFIXES:
        if lowered.endswith(suffix):
            return archive_format
    raise ArchiveError(f"Unrecognized archive extension: {name}")


def _unpack(archive: Path, staging: Path, archive_format: ArchiveFormat) -> None:
    if archive_format is ArchiveFormat.ZIP:
        with zipfile.ZipFile(archive) as bundle:
            bundle.extractall(staging)
        return
    mode = "r:gz" if archive_format is ArchiveFormat.TAR_GZ else "r:xz"
    with tarfile.open(archive, mode) as bundle:
        bundle.extractall(staging, filter="data")


def _select_root(staging: Path) -> Path:
    entries = sorted(staging.iterdir(), key=lambda entry: entry.name)
    if not entries:
        raise ArchiveError("Archive is empty")
    directories = [entry for entry in entries if entry.is_dir() and not entry.is_symlink()]
    if not directories:
        raise ArchiveError("Archive has no top-level directory")
    root = directories[0]
    if len(entries) > 1:
        dropped = ", ".join(entry.name for entry in entries if entry != root)
        LOGGER.debug("Archive has several top-level entries; using %s, dropping %s", root.name, dropped)
    return root


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _promote(source_root: Path, dest: Path) -> None:
    for child in sorted(source_root.iterdir(), key=lambda entry: entry.name):
        target = dest / child.name
        if target.exists() or target.is_symlink():
            _remove(target)
        shutil.move(str(child), str(target))


def mark_executables(dest: Path, names: Sequence[str]) -> list[Path]:
    """Set mode 755 on each existing ``dest``-relative path in ``names`` (POSIX only)."""

    if os.name == "nt":
        return []
    marked: list[Path] = []
    for name in names:
        candidate = dest / name
        if candidate.is_file():
            candidate.chmod(EXECUTABLE_MODE)
            marked.append(candidate)
    return marked


def extract_archive(
    archive: Path,
    dest: Path,
    *,
    archive_format: ArchiveFormat | None = None,
    executables: Sequence[str] = (),
    inner_root: str | None = None,
) -> Path:
    """Extract ``archive`` and flatten its distribution root into ``dest``.

    Args:
        archive: Downloaded archive file.
        dest: Destination directory; created when missing.
        archive_format: Explicit container format; detected from the file name when ``None``.
        executables: ``dest``-relative paths to mark executable on POSIX.
        inner_root: Optional path below the distribution root to promote instead
            (e.g. ``Contents/Home`` for macOS JDK bundles).

    Returns:
        Path: The destination directory.

    Raises:
        ArchiveError: For malformed archives, unknown extensions or a missing root.
    """

    fmt = archive_format or detect_format(archive.name)
    dest.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=".extract-", dir=dest.parent))
    try:
        try:
            _unpack(archive, staging, fmt)
        except (zipfile.BadZipFile, tarfile.TarError, lzma.LZMAError, EOFError, OSError) as exc:
            raise ArchiveError(f"Failed to extract {archive.name} as {fmt}: {exc}") from exc
        root = _select_root(staging)
        if inner_root:
            nested = root.joinpath(*inner_root.split("/"))
            if nested.is_dir():
                root = nested
        _promote(root, dest)
    finally:
        shutil.rmtree(staging, ignore_errors=True)
    mark_executables(dest, executables)
    return dest


def is_executable(path: Path) -> bool:
    """Return ``True`` when ``path`` is a file the current user may execute."""

    if not path.is_file():
        return False
    if os.name == "nt":
        return True
    return bool(path.stat().st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)) and os.access(path, os.X_OK)


__all__ = [
    "ArchiveFormat",
    "EXECUTABLE_MODE",
    "detect_format",
    "extract_archive",
    "is_executable",
    "mark_executables",
]
