# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Install and uninstall tool versions.

An install moves through checkpoints that fail independently:

1. return early when the canonical binary already exists;
2. detect the host platform;
3. compute candidate URLs;
4. take the per-version lock, re-check, and download into a scratch area;
5. extract into a staged tree inside the scratch area;
6. verify the staged binary and publish the tree with a single rename;
7. run the best-effort post-install bootstrap.

Nothing is written below ``installs/<tool>`` before step 6, so a failure at
any earlier point leaves existing installs untouched and no partial tree
visible.
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from .archive import extract_archive
from .bindings import read_global
from .bootstrap import run_bootstrap
from .config import Settings
from .download import SourceDownloader
from .errors import (
    AcquisitionError,
    ConfigurationError,
    PostInstallWarning,
    UnsupportedPlatformError,
    VerificationError,
)
from .layout import EXECUTABLE_NAMES, EnmanLayout, relative_binary_path
from .locking import install_lock
from .platform import Platform, detect_platform
from .shims import remove_shim
from .sources import VersionSource, resolve_sources
from .tools import ToolId, validate_version
from .versioning import sort_versions

LOGGER = logging.getLogger(__name__)

STAGED_TREE_NAME = "install"

SourceResolver = Callable[[ToolId, str, Platform], VersionSource]
Bootstrapper = Callable[[ToolId, Path, Platform], list[PostInstallWarning]]


class InstallStatus(StrEnum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already-installed"


class UninstallStatus(StrEnum):
    REMOVED = "removed"
    NOT_INSTALLED = "not-installed"


@dataclass(frozen=True, slots=True)
class InstallOutcome:
    """Result of :meth:`AcquisitionPipeline.install`."""

    tool: ToolId
    version: str
    status: InstallStatus
    binary: Path
    source_url: str | None = None
    warnings: tuple[PostInstallWarning, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class UninstallOutcome:
    """Result of :meth:`AcquisitionPipeline.uninstall`."""

    tool: ToolId
    version: str
    status: UninstallStatus
    removed_shim: Path | None = None


class AcquisitionPipeline:
    """Download, verify, extract and publish tool versions under the layout root."""

    def __init__(
        self,
        settings: Settings,
        *,
        layout: EnmanLayout | None = None,
        platform_provider: Callable[[], Platform] = detect_platform,
        source_resolver: SourceResolver = resolve_sources,
        downloader: SourceDownloader | None = None,
        bootstrapper: Bootstrapper = run_bootstrap,
    ) -> None:
        self._settings = settings
        self._layout = layout or EnmanLayout(settings.root)
        self._platform_provider = platform_provider
        self._source_resolver = source_resolver
        self._downloader = downloader
        self._bootstrapper = bootstrapper

    @property
    def layout(self) -> EnmanLayout:
        return self._layout

    def platform(self) -> Platform:
        """Return the host platform, reporting unsupported hosts as :class:`AcquisitionError`."""

        try:
            return self._platform_provider()
        except UnsupportedPlatformError as exc:
            remedy = exc.remedy or self._settings.messages.render("remedy_unsupported_host")
            raise AcquisitionError(str(exc), remedy=remedy) from exc

    def _lock(self, tool: ToolId, version: str) -> AbstractContextManager[Path]:
        return install_lock(
            self._layout.lock_file(tool, version),
            timeout=self._settings.lock_timeout,
            messages=self._settings.messages,
        )

    def _get_downloader(self) -> SourceDownloader:
        if self._downloader is None:
            self._downloader = SourceDownloader.from_settings(self._settings)
        return self._downloader

    def install(self, tool: ToolId, version: str) -> InstallOutcome:
        """Make ``tool@version`` available at its canonical binary path.

        Args:
            tool: Tool to install.
            version: Version token; used verbatim as the install directory name.

        Returns:
            InstallOutcome: ``installed`` or ``already-installed`` with the binary path.

        Raises:
            AcquisitionError: If sources are exhausted, the archive is malformed,
                verification fails or the platform has no distribution.
        """

        version = validate_version(version)
        platform = self.platform()
        binary = self._layout.canonical_binary_path(tool, version, platform)
        if binary.exists():
            LOGGER.debug("%s@%s already installed at %s", tool, version, binary)
            return InstallOutcome(tool, version, InstallStatus.ALREADY_INSTALLED, binary)

        try:
            source = self._source_resolver(tool, version, platform)
        except UnsupportedPlatformError as exc:
            remedy = exc.remedy or self._settings.messages.render(
                "remedy_unsupported_platform", tool=tool, platform=platform
            )
            raise AcquisitionError(str(exc), remedy=remedy) from exc

        self._layout.ensure_dirs()
        with self._lock(tool, version):
            if binary.exists():
                LOGGER.debug("%s@%s was published by another process", tool, version)
                return InstallOutcome(tool, version, InstallStatus.ALREADY_INSTALLED, binary)
            url = self._stage_and_publish(tool, version, platform, source)
            version_dir = self._layout.version_dir(tool, version)
            warnings = self._bootstrapper(tool, version_dir, platform)
        return InstallOutcome(tool, version, InstallStatus.INSTALLED, binary, url, tuple(warnings))

    def _stage_and_publish(self, tool: ToolId, version: str, platform: Platform, source: VersionSource) -> str:
        scratch = self._layout.staging_dir / f"{tool.value}-{version}-{uuid.uuid4().hex[:12]}"
        scratch.mkdir(parents=True)
        published = False
        try:
            archive = scratch / source.archive_name
            url = self._get_downloader().fetch(source.urls, archive)
            LOGGER.debug("Downloaded %s@%s from %s", tool, version, url)

            staged = scratch / STAGED_TREE_NAME
            extract_archive(
                archive,
                staged,
                archive_format=source.archive_format,
                executables=EXECUTABLE_NAMES.get(tool, ()),
                inner_root=source.inner_root,
            )
            relative = relative_binary_path(tool, platform)
            if not staged.joinpath(*relative.parts).is_file():
                raise VerificationError(
                    f"{tool}@{version} archive from {url} does not contain {relative}",
                    remedy=self._settings.messages.render("remedy_retry_install", tool=tool, version=version),
                )
            self._publish(tool, version, staged)
            published = True
            return url
        except AcquisitionError as exc:
            if exc.remedy is None:
                exc.remedy = self._settings.messages.render("remedy_retry_install", tool=tool, version=version)
            raise
        except OSError as exc:
            raise AcquisitionError(
                f"Installing {tool}@{version} failed: {exc}",
                remedy=self._settings.messages.render("remedy_retry_install", tool=tool, version=version),
            ) from exc
        finally:
            if published or not self._settings.keep_failed_staging:
                shutil.rmtree(scratch, ignore_errors=True)
            else:
                LOGGER.debug("Keeping failed staging area %s", scratch)

    def _publish(self, tool: ToolId, version: str, staged: Path) -> None:
        tool_dir = self._layout.install_dir(tool)
        target = self._layout.version_dir(tool, version)
        created_tool_dir = not tool_dir.exists()
        tool_dir.mkdir(parents=True, exist_ok=True)
        try:
            if target.exists():
                # Leftover without a canonical binary; replaced wholesale.
                shutil.rmtree(target)
            os.replace(staged, target)
        except OSError:
            if created_tool_dir and not any(tool_dir.iterdir()):
                tool_dir.rmdir()
            raise

    def uninstall(self, tool: ToolId, version: str) -> UninstallOutcome:
        """Remove ``tool@version`` unless it is the active global binding.

        The tool's shim is deleted once no installed version remains.

        Raises:
            ConfigurationError: If ``version`` is the tool's global binding.
        """

        version = validate_version(version)
        messages = self._settings.messages
        if read_global(self._layout, tool, messages=messages) == version:
            raise ConfigurationError(
                messages.render("uninstall_active_global", tool=tool, version=version),
                remedy=messages.render("remedy_switch_global", tool=tool),
            )
        version_dir = self._layout.version_dir(tool, version)
        if not version_dir.exists():
            return UninstallOutcome(tool, version, UninstallStatus.NOT_INSTALLED)

        self._layout.ensure_dirs()
        with self._lock(tool, version):
            if version_dir.exists():
                shutil.rmtree(version_dir)
        tool_dir = self._layout.install_dir(tool)
        if tool_dir.is_dir() and not any(tool_dir.iterdir()):
            tool_dir.rmdir()

        removed_shim: Path | None = None
        platform = self.platform()
        if not self.installed_versions(tool) and remove_shim(self._layout, tool, platform):
            removed_shim = self._layout.shim_path(tool, platform)
            LOGGER.debug("Removed orphaned shim %s", removed_shim)
        return UninstallOutcome(tool, version, UninstallStatus.REMOVED, removed_shim)

    def installed_versions(self, tool: ToolId) -> list[str]:
        """Return versions of ``tool`` whose canonical binary exists, oldest first."""

        tool_dir = self._layout.install_dir(tool)
        if not tool_dir.is_dir():
            return []
        platform = self.platform()
        versions = [
            entry.name
            for entry in tool_dir.iterdir()
            if entry.is_dir() and self._layout.is_installed(tool, entry.name, platform)
        ]
        return sort_versions(versions)


__all__ = [
    "AcquisitionPipeline",
    "InstallOutcome",
    "InstallStatus",
    "UninstallOutcome",
    "UninstallStatus",
]
