# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Determine the effective version of a tool for a working directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from .bindings import find_project_binding, read_global, read_local
from .errors import ConfigurationError
from .layout import EnmanLayout
from .messages import MessageCatalog
from .tools import ToolId

LOGGER = logging.getLogger(__name__)


class BindingScope(StrEnum):
    """Where a resolved version came from, highest precedence first."""

    LOCAL = "local"
    PROJECT = "project"
    GLOBAL = "global"


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    tool: ToolId
    version: str
    scope: BindingScope
    source: Path


class VersionResolver:
    """Resolve versions with precedence local marker > ``.enmanrc`` > global binding."""

    def __init__(self, layout: EnmanLayout, messages: MessageCatalog | None = None) -> None:
        self._layout = layout
        self._messages = messages or MessageCatalog.default()

    def find(self, tool: ToolId, cwd: Path) -> ResolvedVersion | None:
        """Return the effective binding for ``tool`` in ``cwd`` or ``None`` when unbound."""

        marker = read_local(cwd, tool)
        if marker is not None:
            return ResolvedVersion(tool, marker.version, BindingScope.LOCAL, marker.path)

        project = find_project_binding(cwd, tool)
        if project is not None:
            path, version = project
            return ResolvedVersion(tool, version, BindingScope.PROJECT, path)

        version = read_global(self._layout, tool, messages=self._messages)
        if version is not None:
            return ResolvedVersion(tool, version, BindingScope.GLOBAL, self._layout.global_binding_file(tool))
        return None

    def resolve(self, tool: ToolId, cwd: Path) -> ResolvedVersion:
        """Return the effective binding for ``tool`` in ``cwd``.

        Raises:
            ConfigurationError: If no scope binds a version; never falls back to a default.
        """

        resolved = self.find(tool, cwd)
        if resolved is None:
            raise ConfigurationError(
                self._messages.render("no_version", tool=tool, cwd=cwd),
                remedy=self._messages.render("remedy_set_global", tool=tool),
            )
        LOGGER.debug("Resolved %s@%s from %s (%s)", tool, resolved.version, resolved.source, resolved.scope)
        return resolved


__all__ = ["BindingScope", "ResolvedVersion", "VersionResolver"]
