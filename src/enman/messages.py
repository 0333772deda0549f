# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable catalog of user-facing message templates.

The catalog is constructed once (see :func:`enman.config.load_settings`) and
handed to the components that render remedies, so no module keeps a mutable
global translation table.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

DEFAULT_TEMPLATES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "app_description": "A unified development environment manager.",
        "remedy_set_global": "Run: enman global {tool}@<version>",
        "remedy_fix_global": "Run: enman global {tool}@{version}",
        "remedy_install": "Run: enman install {tool}@{version}",
        "remedy_switch_global": "Run: enman global {tool}@<other_version>",
        "remedy_retry_install": "Retry later or check your network, then run: enman install {tool}@{version}",
        "remedy_fix_settings": "Fix or remove {path}",
        "remedy_init": "Run: enman init",
        "remedy_reinstall": "Run: enman uninstall {tool}@{version}, then enman install {tool}@{version}",
        "remedy_lock_timeout": "Retry once the other enman process finishes, or delete {path} if none is running",
        "remedy_list_tools": "Run: enman list --available",
        "remedy_version_example": "Use a version like {example}: enman install {tool}@{example}",
        "remedy_unsupported_platform": "Install {tool} with your system package manager on {platform}",
        "remedy_unsupported_host": "Run enman on Linux, macOS or Windows with an x64 or arm64 CPU",
        "remedy_retry_remote": "Retry later or check your network, then run: enman list --remote {tool}",
        "remedy_browse_releases": "Browse {url} for published versions",
        "remote_unsupported": "Remote version listing is not available for {tool}",
        "remote_header": "Latest {tool} versions:",
        "available_header": "Tools enman can install:",
        "available_footer": "To see the versions of a tool: enman list --remote <tool>",
        "no_version": "No version of '{tool}' is configured for {cwd}",
        "not_installed": "{tool}@{version} is not installed (looked for {binary})",
        "not_executable": "{binary} is not executable",
        "installing": "Installing {tool}@{version}",
        "already_installed": "{tool}@{version} already installed",
        "installed": "Installed {tool}@{version} to {path}",
        "switching": "Switching to {tool}@{version}",
        "set_global": "Set global {tool} to version {version}",
        "set_local": "Set local {tool} to version {version} in {path}",
        "uninstalled": "Uninstalled {tool}@{version}",
        "uninstall_missing": "{tool}@{version} is not installed",
        "uninstall_active_global": "Cannot uninstall {tool}@{version}: it is the active global version",
        "removed_shim": "No versions of {tool} remain; removed the shim at {path}",
        "shims_path_hint": 'Add the shims directory to PATH: export PATH="{path}:$PATH"',
    },
)


@dataclass(frozen=True, slots=True)
class MessageCatalog:
    """Read-only mapping of message keys to ``str.format`` templates."""

    templates: Mapping[str, str] = field(default=DEFAULT_TEMPLATES)

    def __post_init__(self) -> None:
        object.__setattr__(self, "templates", MappingProxyType(dict(self.templates)))

    @classmethod
    def default(cls) -> MessageCatalog:
        return cls()

    def with_overrides(self, overrides: Mapping[str, str]) -> MessageCatalog:
        """Return a new catalog with ``overrides`` layered over these templates."""

        merged = dict(self.templates)
        merged.update({str(key): str(value) for key, value in overrides.items()})
        return MessageCatalog(templates=merged)

    def render(self, key: str, **values: object) -> str:
        """Format the template for ``key``; unknown keys render as the key itself."""

        template = self.templates.get(key, key)
        try:
            return template.format(**values)
        except (KeyError, IndexError):
            return template


__all__ = ["DEFAULT_TEMPLATES", "MessageCatalog"]
