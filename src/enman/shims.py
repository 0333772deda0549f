# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Create and remove per-tool shims pointing at the enman entry point."""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path

from .errors import ConfigurationError
from .layout import EnmanLayout
from .platform import Platform
from .tools import ToolId

LOGGER = logging.getLogger(__name__)

MANAGER_NAMES = ("enman", "em")


def manager_entry_point() -> Path:
    """Return the executable that shims should launch.

    Raises:
        ConfigurationError: If no enman executable can be located.
    """

    for name in MANAGER_NAMES:
        found = shutil.which(name)
        if found:
            return Path(found).resolve()
    invoked = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    if invoked is not None and invoked.is_file():
        return invoked.resolve()
    raise ConfigurationError(
        "Unable to locate the enman executable for shim creation",
        remedy="Install enman so that 'enman' is on PATH, then rerun the command",
    )


def create_shim(layout: EnmanLayout, tool: ToolId, platform: Platform, manager: Path | None = None) -> Path:
    """Create ``<root>/shims/<tool>`` for ``tool``; returns the shim path.

    POSIX shims are symlinks to the manager; Windows shims are copies.
    Re-running is a no-op when the shim already points at ``manager``.
    """

    target = manager or manager_entry_point()
    shim = layout.shim_path(tool, platform)
    shim.parent.mkdir(parents=True, exist_ok=True)
    if platform.is_windows:
        if shim.exists():
            shim.unlink()
        shutil.copy2(target, shim)
        return shim
    if shim.is_symlink() and Path(shim.readlink()) == target:
        return shim
    if shim.exists() or shim.is_symlink():
        shim.unlink()
    shim.symlink_to(target)
    LOGGER.debug("Linked shim %s -> %s", shim, target)
    return shim


def remove_shim(layout: EnmanLayout, tool: ToolId, platform: Platform) -> bool:
    shim = layout.shim_path(tool, platform)
    if shim.exists() or shim.is_symlink():
        shim.unlink()
        return True
    return False


__all__ = ["MANAGER_NAMES", "create_shim", "manager_entry_point", "remove_shim"]
