# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Hand a shim invocation over to the resolved tool binary."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path

from .archive import is_executable
from .errors import DispatchError, UnsupportedPlatformError
from .layout import EnmanLayout
from .messages import MessageCatalog
from .platform import Platform, detect_platform
from .process_utils import run_passthrough
from .resolver import ResolvedVersion, VersionResolver
from .shims import MANAGER_NAMES
from .tools import ToolId

LOGGER = logging.getLogger(__name__)

ExecFunction = Callable[[str, Sequence[str]], object]


def tool_from_invocation(argv0: str) -> ToolId | None:
    """Return the tool a shim was invoked as, or ``None`` for the manager's own names."""

    name = Path(argv0).name.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    if not name or name in MANAGER_NAMES:
        return None
    return ToolId.lookup(name)


class ShimDispatcher:
    """Resolve a tool's version and run its binary with the caller's arguments.

    On POSIX the current process image is replaced, so the child's exit status
    becomes this process's status. Elsewhere (or with ``prefer_exec=False``)
    the child is spawned and its exit status returned.
    """

    def __init__(
        self,
        layout: EnmanLayout,
        resolver: VersionResolver,
        *,
        messages: MessageCatalog | None = None,
        platform_provider: Callable[[], Platform] = detect_platform,
        prefer_exec: bool | None = None,
        execv: ExecFunction = os.execv,
    ) -> None:
        self._layout = layout
        self._resolver = resolver
        self._messages = messages or MessageCatalog.default()
        self._platform_provider = platform_provider
        self._prefer_exec = os.name == "posix" if prefer_exec is None else prefer_exec
        self._execv = execv

    def target(self, tool: ToolId, cwd: Path) -> tuple[ResolvedVersion, Path]:
        """Return the binding and executable the shim for ``tool`` should run from ``cwd``.

        Raises:
            ConfigurationError: If no version is bound.
            DispatchError: If the resolved version is missing or not executable.
        """

        resolved = self._resolver.resolve(tool, cwd)
        try:
            platform = self._platform_provider()
        except UnsupportedPlatformError as exc:
            raise DispatchError(
                str(exc),
                tool=tool.value,
                version=resolved.version,
                remedy=exc.remedy or self._messages.render("remedy_unsupported_host"),
            ) from exc
        binary = self._layout.canonical_binary_path(tool, resolved.version, platform)
        remedy = self._messages.render("remedy_install", tool=tool, version=resolved.version)
        if not binary.exists():
            raise DispatchError(
                self._messages.render("not_installed", tool=tool, version=resolved.version, binary=binary),
                tool=tool.value,
                version=resolved.version,
                remedy=remedy,
            )
        if not is_executable(binary):
            raise DispatchError(
                self._messages.render("not_executable", binary=binary),
                tool=tool.value,
                version=resolved.version,
                remedy=remedy,
            )
        return resolved, binary

    def dispatch(self, tool: ToolId, args: Sequence[str], *, cwd: Path | None = None) -> int:
        """Run ``tool`` with ``args`` unchanged and return its exit status.

        When the process image is replaced this call does not return.
        """

        workdir = cwd or Path.cwd()
        resolved, binary = self.target(tool, workdir)
        argv = [str(binary), *args]
        LOGGER.debug("Dispatching %s -> %s", tool, binary)
        try:
            if self._prefer_exec:
                self._execv(str(binary), argv)
                return 0
            return run_passthrough(argv, cwd=workdir)
        except OSError as exc:
            raise DispatchError(
                f"Failed to execute {binary}: {exc}",
                tool=tool.value,
                version=resolved.version,
                remedy=self._messages.render("remedy_reinstall", tool=tool, version=resolved.version),
            ) from exc


__all__ = ["ShimDispatcher", "tool_from_invocation"]
