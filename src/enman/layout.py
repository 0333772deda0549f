# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem layout shared by every enman component.

All paths are derived from a single root (``~/.enman`` by default)::

    <root>/global/<tool>                 bare version bound globally
    <root>/installs/<tool>/<version>/    extracted distributions
    <root>/shims/<tool>[.exe]            links to the manager entry point
    <root>/staging/                      scratch areas for in-flight installs
    <root>/locks/<tool>-<version>.lock   advisory install locks
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Final

from .platform import Platform
from .tools import ToolId

GLOBAL_SUBDIR: Final[str] = "global"
INSTALLS_SUBDIR: Final[str] = "installs"
SHIMS_SUBDIR: Final[str] = "shims"
STAGING_SUBDIR: Final[str] = "staging"
LOCKS_SUBDIR: Final[str] = "locks"
BIN_SUBDIR: Final[str] = "bin"
LOCAL_MARKER_FILENAME: Final[str] = ".enman-version"
PROJECT_CONFIG_FILENAME: Final[str] = ".enmanrc"

# Tools whose primary executable lives at the install root on Windows.
_ROOT_LEVEL_ON_WINDOWS: Final[frozenset[ToolId]] = frozenset({ToolId.NODE, ToolId.PYTHON})

# Executable stem per tool when it differs from the tool name on POSIX.
_POSIX_EXECUTABLE: Final[dict[ToolId, str]] = {ToolId.PYTHON: "python3"}

# Executables inside an install tree that must carry mode 755 on POSIX.
EXECUTABLE_NAMES: Final[dict[ToolId, tuple[str, ...]]] = {
    ToolId.NODE: ("bin/node", "bin/npm", "bin/npx", "bin/corepack"),
    ToolId.JAVA: ("bin/java", "bin/javac", "bin/jar", "bin/jshell", "bin/keytool"),
    ToolId.PYTHON: ("bin/python3", "bin/pip3"),
    ToolId.MYSQL: ("bin/mysql", "bin/mysqld", "bin/mysqladmin", "bin/mysqldump", "bin/mysqlcheck"),
    ToolId.MARIADB: (
        "bin/mariadb",
        "bin/mariadbd",
        "bin/mysql",
        "bin/mysqld",
        "bin/mariadb-install-db",
        "scripts/mariadb-install-db",
        "scripts/mysql_install_db",
    ),
}


def relative_binary_path(tool: ToolId, platform: Platform) -> PurePosixPath:
    """Return the primary executable location relative to an install root."""

    if platform.is_windows:
        name = f"{tool.value}.exe"
        if tool in _ROOT_LEVEL_ON_WINDOWS:
            return PurePosixPath(name)
        return PurePosixPath(BIN_SUBDIR, name)
    return PurePosixPath(BIN_SUBDIR, _POSIX_EXECUTABLE.get(tool, tool.value))


@dataclass(frozen=True, slots=True)
class EnmanLayout:
    """Canonical paths rooted at ``root``."""

    root: Path

    @property
    def global_dir(self) -> Path:
        return self.root / GLOBAL_SUBDIR

    @property
    def installs_dir(self) -> Path:
        return self.root / INSTALLS_SUBDIR

    @property
    def shims_dir(self) -> Path:
        return self.root / SHIMS_SUBDIR

    @property
    def staging_dir(self) -> Path:
        return self.root / STAGING_SUBDIR

    @property
    def locks_dir(self) -> Path:
        return self.root / LOCKS_SUBDIR

    def directories(self) -> tuple[Path, ...]:
        """Return directories that :meth:`ensure_dirs` creates."""

        return (
            self.root,
            self.shims_dir,
            self.installs_dir,
            self.global_dir,
            self.staging_dir,
            self.locks_dir,
        )

    def ensure_dirs(self) -> None:
        """Create the layout tree; idempotent, fails only on OS errors."""

        for directory in self.directories():
            directory.mkdir(parents=True, exist_ok=True)

    def install_dir(self, tool: ToolId) -> Path:
        return self.installs_dir / tool.value

    def version_dir(self, tool: ToolId, version: str) -> Path:
        return self.install_dir(tool) / version

    def global_binding_file(self, tool: ToolId) -> Path:
        return self.global_dir / tool.value

    def canonical_binary_path(self, tool: ToolId, version: str, platform: Platform) -> Path:
        """Return the deterministic location of ``tool``'s executable for ``version``."""

        return self.version_dir(tool, version).joinpath(*relative_binary_path(tool, platform).parts)

    def is_installed(self, tool: ToolId, version: str, platform: Platform) -> bool:
        return self.canonical_binary_path(tool, version, platform).exists()

    def shim_path(self, tool: ToolId, platform: Platform) -> Path:
        return self.shims_dir / f"{tool.value}{platform.exe_suffix}"

    def lock_file(self, tool: ToolId, version: str) -> Path:
        return self.locks_dir / f"{tool.value}-{version}.lock"

    @staticmethod
    def local_marker(directory: Path) -> Path:
        return directory / LOCAL_MARKER_FILENAME

    @staticmethod
    def project_config(directory: Path) -> Path:
        return directory / PROJECT_CONFIG_FILENAME


__all__ = [
    "EXECUTABLE_NAMES",
    "EnmanLayout",
    "LOCAL_MARKER_FILENAME",
    "PROJECT_CONFIG_FILENAME",
    "relative_binary_path",
]
