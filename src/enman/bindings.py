# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persistence of version bindings as plain marker files.

Three files bind versions:

* ``<root>/global/<tool>`` holds a bare version;
* ``<dir>/.enman-version`` holds a ``tool@version`` token (a bare version is
  accepted on read);
* ``<dir>/.enmanrc`` is a TOML mapping of tool names to versions, either in a
  ``[tools]`` table or at the top level. Files that are not valid TOML are read
  as legacy ``key=value`` lines.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import ConfigurationError
from .layout import EnmanLayout
from .messages import MessageCatalog
from .tools import ToolId, validate_version

LOGGER = logging.getLogger(__name__)

TOOLS_TABLE: Final[str] = "tools"

PROJECT_CONFIG_TEMPLATE: Final[str] = """\
# enman project configuration
# Map tools to the versions this project uses, for example:
# [tools]
# node = "20.10.0"
# python = "3.11.6"
"""


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    scratch = path.with_name(f".{path.name}.tmp")
    scratch.write_text(content, encoding="utf-8")
    os.replace(scratch, path)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(
            f"Unable to read {path}: {exc}",
            remedy=MessageCatalog.default().render("remedy_fix_settings", path=path),
        ) from exc


# global ---------------------------------------------------------------------


def read_global(layout: EnmanLayout, tool: ToolId, *, messages: MessageCatalog | None = None) -> str | None:
    """Return the bare version bound globally for ``tool``, or ``None``.

    Raises:
        ConfigurationError: If the file holds a compound token or an invalid version.
    """

    path = layout.global_binding_file(tool)
    if not path.is_file():
        return None
    raw = _read_text(path).strip()
    if not raw:
        return None
    catalog = messages or MessageCatalog.default()
    if "@" in raw:
        _, _, suggested = raw.rpartition("@")
        raise ConfigurationError(
            f"Global binding {path} must hold a bare version, found '{raw}'",
            remedy=catalog.render("remedy_fix_global", tool=tool, version=suggested or "<version>"),
        )
    try:
        return validate_version(raw)
    except ConfigurationError as exc:
        raise ConfigurationError(
            f"Global binding {path} holds an invalid version '{raw}'",
            remedy=catalog.render("remedy_set_global", tool=tool),
        ) from exc


def write_global(layout: EnmanLayout, tool: ToolId, version: str) -> Path:
    path = layout.global_binding_file(tool)
    _atomic_write(path, validate_version(version))
    return path


def global_bindings(layout: EnmanLayout) -> dict[ToolId, str]:
    """Return every readable global binding; invalid files are skipped with a debug record."""

    bindings: dict[ToolId, str] = {}
    for tool in ToolId:
        try:
            version = read_global(layout, tool)
        except ConfigurationError as exc:
            LOGGER.debug("Skipping global binding for %s: %s", tool, exc)
            continue
        if version is not None:
            bindings[tool] = version
    return bindings


# local marker ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LocalMarker:
    """Parsed contents of a ``.enman-version`` file."""

    path: Path
    version: str
    tool_name: str | None = None


def read_local(directory: Path, tool: ToolId) -> LocalMarker | None:
    """Return the version stored in ``directory``'s marker for ``tool``.

    A compound token naming another tool still yields its version; the
    mismatch is logged.

    Raises:
        ConfigurationError: If the marker is unreadable or its version is invalid.
    """

    path = EnmanLayout.local_marker(directory)
    if not path.is_file():
        return None
    raw = _read_text(path).strip()
    if not raw:
        return None
    tool_name, sep, version = raw.partition("@")
    if not sep:
        tool_name, version = "", raw
    try:
        version = validate_version(version)
    except ConfigurationError as exc:
        raise ConfigurationError(
            f"{path} holds an invalid binding '{raw}'",
            remedy=f"Run: enman use {tool}@<version>",
        ) from exc
    if tool_name and ToolId.lookup(tool_name) is not tool:
        LOGGER.warning("%s binds '%s' but %s was requested; using version %s", path, tool_name, tool, version)
    return LocalMarker(path=path, version=version, tool_name=tool_name or None)


def write_local(directory: Path, tool: ToolId, version: str) -> Path:
    path = EnmanLayout.local_marker(directory)
    _atomic_write(path, f"{tool.value}@{validate_version(version)}")
    return path


# project config -------------------------------------------------------------


def _parse_legacy(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip().strip("'\"")
    return values


def read_project_config(path: Path) -> dict[ToolId, str]:
    """Return the tool→version mapping stored in the ``.enmanrc`` at ``path``.

    Unknown tool names and non-string values are ignored.

    Raises:
        ConfigurationError: If the file cannot be read as UTF-8 text.
    """

    text = _read_text(path)
    try:
        document = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        LOGGER.debug("%s is not TOML; reading legacy key=value lines", path)
        raw_entries: Mapping[str, object] = _parse_legacy(text)
    else:
        table = document.get(TOOLS_TABLE)
        raw_entries = table if isinstance(table, Mapping) else document
    mapping: dict[ToolId, str] = {}
    for key, value in raw_entries.items():
        tool = ToolId.lookup(str(key))
        if tool is None or not isinstance(value, str) or not value.strip():
            continue
        mapping[tool] = value.strip()
    return mapping


def find_project_binding(start: Path, tool: ToolId) -> tuple[Path, str] | None:
    """Walk from ``start`` toward the filesystem root for an ``.enmanrc`` mapping ``tool``."""

    for directory in (start, *start.parents):
        candidate = EnmanLayout.project_config(directory)
        if not candidate.is_file():
            continue
        version = read_project_config(candidate).get(tool)
        if version is not None:
            try:
                return candidate, validate_version(version)
            except ConfigurationError as exc:
                raise ConfigurationError(
                    f"{candidate} maps {tool} to an invalid version '{version}'",
                    remedy=f"Fix {candidate}",
                ) from exc
    return None


def render_project_config(mapping: Mapping[ToolId, str]) -> str:
    if not mapping:
        return PROJECT_CONFIG_TEMPLATE
    lines = [f"[{TOOLS_TABLE}]"]
    lines += [f"{tool.value} = {json.dumps(version)}" for tool, version in sorted(mapping.items())]
    return "\n".join(lines) + "\n"


def init_project_config(directory: Path, mapping: Mapping[ToolId, str] | None = None) -> tuple[Path, bool]:
    """Create ``directory/.enmanrc`` unless it exists; return the path and whether it was created."""

    path = EnmanLayout.project_config(directory)
    if path.exists():
        return path, False
    _atomic_write(path, render_project_config(mapping or {}))
    return path, True


__all__ = [
    "LocalMarker",
    "find_project_binding",
    "global_bindings",
    "init_project_config",
    "read_global",
    "read_local",
    "read_project_config",
    "render_project_config",
    "write_global",
    "write_local",
]
