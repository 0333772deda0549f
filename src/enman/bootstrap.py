# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Non-interactive post-install steps for database server distributions.

Bootstrap is best effort: every failure is returned as a
:class:`~enman.errors.PostInstallWarning` and the freshly installed binary
stays usable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import PostInstallWarning
from .platform import Platform
from .process_utils import SubprocessExecutionError, run_command
from .tools import ToolId

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT: Final[int] = 3306
DATA_SUBDIR: Final[str] = "data"
PID_FILENAME: Final[str] = "mysqld.pid"
SOCKET_FILENAME: Final[str] = "mysqld.sock"
ERROR_LOG_FILENAME: Final[str] = "mysqld.err"
INITIALIZE_TIMEOUT: Final[float] = 300.0


@dataclass(frozen=True, slots=True)
class ServerPaths:
    """Files a database server install uses at runtime."""

    install_dir: Path
    platform: Platform

    @property
    def data_dir(self) -> Path:
        return self.install_dir / DATA_SUBDIR

    @property
    def config_file(self) -> Path:
        return self.install_dir / ("my.ini" if self.platform.is_windows else "my.cnf")

    @property
    def pid_file(self) -> Path:
        return self.data_dir / PID_FILENAME

    @property
    def socket_file(self) -> Path:
        return self.install_dir / SOCKET_FILENAME

    @property
    def error_log(self) -> Path:
        return self.data_dir / ERROR_LOG_FILENAME

    @property
    def server_binary(self) -> Path:
        return self.install_dir / "bin" / f"mysqld{self.platform.exe_suffix}"


def render_server_config(paths: ServerPaths, *, port: int = DEFAULT_PORT) -> str:
    """Return the ``[mysqld]``/``[client]`` option file for ``paths``."""

    lines = [
        "[mysqld]",
        f"port = {port}",
        f"basedir = {paths.install_dir.as_posix()}",
        f"datadir = {paths.data_dir.as_posix()}",
        f"pid-file = {paths.pid_file.as_posix()}",
        f"log-error = {paths.error_log.as_posix()}",
        "bind-address = 127.0.0.1",
        "max_connections = 100",
        "innodb_buffer_pool_size = 128M",
    ]
    if not paths.platform.is_windows:
        lines.append(f"socket = {paths.socket_file.as_posix()}")
    lines += ["", "[client]", f"port = {port}"]
    if not paths.platform.is_windows:
        lines.append(f"socket = {paths.socket_file.as_posix()}")
    return "\n".join(lines) + "\n"


def write_server_config(paths: ServerPaths, *, port: int = DEFAULT_PORT) -> Path:
    paths.config_file.write_text(render_server_config(paths, port=port), encoding="utf-8")
    return paths.config_file


def read_configured_port(paths: ServerPaths) -> int:
    """Return the ``port`` from the server option file, or the default port."""

    if not paths.config_file.is_file():
        return DEFAULT_PORT
    for raw in paths.config_file.read_text(encoding="utf-8").splitlines():
        key, sep, value = raw.partition("=")
        if sep and key.strip() == "port" and value.strip().isdigit():
            return int(value.strip())
    return DEFAULT_PORT


def _mysql_initialize_command(paths: ServerPaths) -> list[str | Path]:
    return [
        paths.server_binary,
        "--initialize-insecure",
        f"--basedir={paths.install_dir}",
        f"--datadir={paths.data_dir}",
    ]


def _mariadb_initialize_command(paths: ServerPaths) -> list[str | Path]:
    suffix = paths.platform.exe_suffix
    for candidate in (
        paths.install_dir / "bin" / f"mariadb-install-db{suffix}",
        paths.install_dir / "scripts" / "mariadb-install-db",
        paths.install_dir / "scripts" / "mysql_install_db",
    ):
        if candidate.is_file():
            return [candidate, f"--basedir={paths.install_dir}", f"--datadir={paths.data_dir}"]
    return _mysql_initialize_command(paths)


InitializeCommand = Callable[[ServerPaths], list[str | Path]]

_INITIALIZERS: Final[dict[ToolId, InitializeCommand]] = {
    ToolId.MYSQL: _mysql_initialize_command,
    ToolId.MARIADB: _mariadb_initialize_command,
}


def needs_bootstrap(tool: ToolId) -> bool:
    return tool in _INITIALIZERS


def run_bootstrap(tool: ToolId, install_dir: Path, platform: Platform) -> list[PostInstallWarning]:
    """Initialise the data directory and option file for a database install.

    Args:
        tool: Installed tool; tools without a bootstrap step return immediately.
        install_dir: Published install directory.
        platform: Host platform (selects ``my.ini`` vs ``my.cnf``).

    Returns:
        list[PostInstallWarning]: One warning per failed step.
    """

    initializer = _INITIALIZERS.get(tool)
    if initializer is None:
        return []
    paths = ServerPaths(install_dir=install_dir, platform=platform)
    warnings: list[PostInstallWarning] = []

    try:
        paths.data_dir.mkdir(parents=True, exist_ok=True)
        command = initializer(paths)
        LOGGER.debug("Initialising %s data directory: %s", tool, command)
        run_command(command, cwd=install_dir, timeout=INITIALIZE_TIMEOUT)
    except (SubprocessExecutionError, OSError) as exc:
        warnings.append(PostInstallWarning(f"{tool} data directory initialisation failed: {exc}"))

    try:
        write_server_config(paths)
    except OSError as exc:
        warnings.append(PostInstallWarning(f"Could not write {paths.config_file}: {exc}"))

    for warning in warnings:
        LOGGER.debug("bootstrap warning: %s", warning)
    return warnings


__all__ = [
    "DEFAULT_PORT",
    "ServerPaths",
    "needs_bootstrap",
    "read_configured_port",
    "render_server_config",
    "run_bootstrap",
    "write_server_config",
]
