# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Managed tool identifiers and ``tool@version`` token parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .errors import ConfigurationError
from .messages import MessageCatalog


class ToolId(StrEnum):
    """Runtime tools managed by enman."""

    NODE = "node"
    JAVA = "java"
    PYTHON = "python"
    MYSQL = "mysql"
    MARIADB = "mariadb"

    @classmethod
    def parse(cls, value: str) -> ToolId:
        """Return the tool named by ``value`` (case-insensitive, aliases allowed).

        Args:
            value: Tool name as typed by the user or found in a binding file.

        Returns:
            ToolId: Matching tool identifier.

        Raises:
            ConfigurationError: If ``value`` does not name a managed tool.
        """

        normalized = value.strip().lower()
        normalized = TOOL_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            supported = ", ".join(tool.value for tool in cls)
            raise ConfigurationError(
                f"Unsupported tool '{value}'. Supported: {supported}",
                remedy=MessageCatalog.default().render("remedy_list_tools"),
            ) from exc

    @classmethod
    def lookup(cls, value: str) -> ToolId | None:
        """Return the tool named by ``value`` or ``None`` when unknown."""

        normalized = value.strip().lower()
        normalized = TOOL_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return None


TOOL_ALIASES: Final[dict[str, str]] = {"jdk": "java", "nodejs": "node"}
TOOL_DESCRIPTIONS: Final[dict[str, str]] = {
    "node": "Node.js JavaScript runtime",
    "java": "Eclipse Temurin OpenJDK (alias: jdk)",
    "python": "CPython standalone builds",
    "mysql": "MySQL database server",
    "mariadb": "MariaDB database server",
}

_INVALID_VERSION = re.compile(r"[\s@/\\]")


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A parsed ``tool@version`` request."""

    tool: ToolId
    version: str

    def __str__(self) -> str:
        return f"{self.tool}@{self.version}"


def validate_version(version: str) -> str:
    """Return ``version`` stripped, rejecting tokens unusable as a directory name."""

    candidate = version.strip()
    if not candidate or candidate in {".", ".."} or _INVALID_VERSION.search(candidate):
        raise ConfigurationError(f"Invalid version '{version}'")
    return candidate


def parse_tool_spec(value: str) -> ToolSpec:
    """Parse a ``tool@version`` token such as ``node@20.10.0``.

    Raises:
        ConfigurationError: If the token is malformed or names an unknown tool.
    """

    tool_name, sep, version = value.strip().partition("@")
    if not sep or not tool_name or not version or "@" in version:
        raise ConfigurationError(
            f"Invalid format '{value}'. Expected tool@version (e.g. node@20.10.0)",
        )
    return ToolSpec(tool=ToolId.parse(tool_name), version=validate_version(version))


__all__ = ["TOOL_ALIASES", "TOOL_DESCRIPTIONS", "ToolId", "ToolSpec", "parse_tool_spec", "validate_version"]
