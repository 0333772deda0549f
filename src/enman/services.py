# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Start and stop the database server bound to a version."""

from __future__ import annotations

import logging
import os
import signal
import threading
from pathlib import Path

from .bootstrap import ServerPaths, needs_bootstrap, read_configured_port
from .errors import ServiceError
from .layout import EnmanLayout
from .platform import Platform
from .process_utils import start_background
from .readiness import ProbeResult, ReadinessOutcome, ServerProbe, wait_until_ready
from .tools import ToolId

LOGGER = logging.getLogger(__name__)


def supports_service(tool: ToolId) -> bool:
    """Database tools get a bootstrapped data directory and a background server."""

    return needs_bootstrap(tool)


class ServiceController:
    """Control the background server of an installed database version."""

    def __init__(
        self,
        layout: EnmanLayout,
        platform: Platform,
        *,
        timeout: float,
        interval: float,
        cancel: threading.Event | None = None,
    ) -> None:
        self._layout = layout
        self._platform = platform
        self._timeout = timeout
        self._interval = interval
        self._cancel = cancel

    def paths(self, tool: ToolId, version: str) -> ServerPaths:
        return ServerPaths(install_dir=self._layout.version_dir(tool, version), platform=self._platform)

    def _server_binary(self, tool: ToolId, paths: ServerPaths) -> Path:
        if tool is ToolId.MARIADB:
            candidate = paths.install_dir / "bin" / f"mariadbd{self._platform.exe_suffix}"
            if candidate.is_file():
                return candidate
        return paths.server_binary

    def start(self, tool: ToolId, version: str) -> ReadinessOutcome:
        """Launch the server with its option file and wait until it accepts connections.

        Raises:
            ServiceError: If the server cannot be launched or never becomes ready.
        """

        paths = self.paths(tool, version)
        if not paths.config_file.is_file():
            raise ServiceError(f"{paths.config_file} is missing; reinstall {tool}@{version}")
        command = [self._server_binary(tool, paths), f"--defaults-file={paths.config_file}"]
        try:
            process = start_background(command, cwd=paths.install_dir, log_file=paths.error_log)
        except OSError as exc:
            raise ServiceError(f"Could not start {tool}@{version}: {exc}") from exc

        probe = ServerProbe(
            pid_file=paths.pid_file,
            port=read_configured_port(paths),
            is_running=lambda: process.poll() is None,
        )
        outcome = wait_until_ready(probe, timeout=self._timeout, interval=self._interval, cancel=self._cancel)
        if outcome is not ReadinessOutcome.READY:
            raise ServiceError(f"{tool}@{version} did not become ready: {outcome}")
        LOGGER.debug("%s@%s is ready (pid %s)", tool, version, process.pid)
        return outcome

    def stop(self, tool: ToolId, version: str) -> bool:
        """Terminate the server recorded in the version's pid file.

        Returns:
            bool: ``True`` when a running server was signalled and exited.

        Raises:
            ServiceError: If the pid file is unreadable or the server does not exit in time.
        """

        paths = self.paths(tool, version)
        if not paths.pid_file.is_file():
            return False
        try:
            pid = int(paths.pid_file.read_text(encoding="utf-8").strip())
        except (OSError, ValueError) as exc:
            raise ServiceError(f"Unreadable pid file {paths.pid_file}: {exc}") from exc
        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            LOGGER.debug("Removing stale pid file %s", paths.pid_file)
            paths.pid_file.unlink(missing_ok=True)
            return False
        except OSError as exc:
            raise ServiceError(f"Could not stop {tool}@{version} (pid {pid}): {exc}") from exc

        def stopped() -> ProbeResult:
            return ProbeResult.PENDING if paths.pid_file.exists() else ProbeResult.READY

        outcome = wait_until_ready(stopped, timeout=self._timeout, interval=self._interval, cancel=self._cancel)
        if outcome is not ReadinessOutcome.READY:
            raise ServiceError(f"{tool}@{version} (pid {pid}) did not shut down: {outcome}")
        return True

    def switch(self, tool: ToolId, previous: str | None, current: str) -> list[ServiceError]:
        """Stop ``previous`` (when different) and start ``current``; failures are returned."""

        problems: list[ServiceError] = []
        if previous and previous != current and self._layout.version_dir(tool, previous).is_dir():
            try:
                self.stop(tool, previous)
            except ServiceError as exc:
                problems.append(exc)
        try:
            self.start(tool, current)
        except ServiceError as exc:
            problems.append(exc)
        return problems


__all__ = ["ServiceController", "supports_service"]
