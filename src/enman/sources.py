# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Candidate download URLs per (tool, version, platform).

Each tool registers a pure strategy function returning a :class:`VersionSource`:
an ordered list of URLs (primary first, then mirrors) that serve byte-identical
archives, together with the archive format those URLs deliver. Adding a tool or
mirror is a matter of registering another strategy.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Final
from urllib.parse import quote

from .archive import ArchiveFormat
from .errors import ConfigurationError, UnsupportedPlatformError
from .messages import MessageCatalog
from .platform import Arch, OsName, Platform
from .tools import ToolId


@dataclass(frozen=True, slots=True)
class VersionSource:
    """Ordered candidate URLs for one distribution archive."""

    tool: ToolId
    version: str
    platform: Platform
    urls: tuple[str, ...]
    archive_format: ArchiveFormat
    inner_root: str | None = None

    @property
    def archive_name(self) -> str:
        """Return the local file name the downloaded archive is stored under."""

        return f"{self.tool.value}-{self.version}{self.archive_format.suffix}"


SourceStrategy = Callable[[str, Platform], VersionSource]

_STRATEGIES: dict[ToolId, SourceStrategy] = {}


def register_strategy(tool: ToolId) -> Callable[[SourceStrategy], SourceStrategy]:
    """Return a decorator registering ``func`` as the URL strategy for ``tool``."""

    def decorator(func: SourceStrategy) -> SourceStrategy:
        _STRATEGIES[tool] = func
        return func

    return decorator


def resolve_sources(tool: ToolId, version: str, platform: Platform) -> VersionSource:
    """Return the candidate URLs for ``tool`` at ``version`` on ``platform``.

    Raises:
        UnsupportedPlatformError: If no distribution is published for ``platform``.
        ConfigurationError: If ``version`` cannot be mapped onto a download.
    """

    strategy = _STRATEGIES.get(tool)
    if strategy is None:
        raise UnsupportedPlatformError(f"No download strategy registered for {tool}")
    return strategy(version, platform)


def _unsupported(tool: ToolId, platform: Platform) -> UnsupportedPlatformError:
    return UnsupportedPlatformError(f"No {tool} distribution is published for {platform}")


def _example_remedy(tool: ToolId, example: str) -> str:
    return MessageCatalog.default().render("remedy_version_example", tool=tool, example=example)


def _strip_v(version: str) -> str:
    return version[1:] if version[:1] in {"v", "V"} else version


# node -----------------------------------------------------------------------

NODE_MIRRORS: Final[tuple[str, ...]] = (
    "https://nodejs.org/dist",
    "https://npmmirror.com/mirrors/node",
)
_NODE_OS: Final[dict[OsName, str]] = {OsName.WINDOWS: "win", OsName.MACOS: "darwin", OsName.LINUX: "linux"}
_NODE_FORMAT: Final[dict[OsName, ArchiveFormat]] = {
    OsName.WINDOWS: ArchiveFormat.ZIP,
    OsName.MACOS: ArchiveFormat.TAR_GZ,
    OsName.LINUX: ArchiveFormat.TAR_XZ,
}


@register_strategy(ToolId.NODE)
def node_sources(version: str, platform: Platform) -> VersionSource:
    number = _strip_v(version)
    fmt = _NODE_FORMAT[platform.os]
    filename = f"node-v{number}-{_NODE_OS[platform.os]}-{platform.arch.value}{fmt.suffix}"
    urls = tuple(f"{base}/v{number}/{filename}" for base in NODE_MIRRORS)
    return VersionSource(ToolId.NODE, version, platform, urls, fmt)


# java -----------------------------------------------------------------------

ADOPTIUM_API: Final[str] = "https://api.adoptium.net/v3/binary"
ADOPTIUM_RELEASES: Final[str] = "https://github.com/adoptium/temurin{feature}-binaries/releases/download"
_JAVA_OS: Final[dict[OsName, str]] = {OsName.WINDOWS: "windows", OsName.MACOS: "mac", OsName.LINUX: "linux"}
_JAVA_ARCH: Final[dict[Arch, str]] = {Arch.X64: "x64", Arch.ARM64: "aarch64"}


@register_strategy(ToolId.JAVA)
def java_sources(version: str, platform: Platform) -> VersionSource:
    """Temurin JDK builds.

    A bare feature release (``17``) maps to the latest GA build of that
    feature; a full release name (``17.0.9+9``) pins the exact build and adds
    the GitHub release asset as a fallback.
    """

    release = version.removeprefix("jdk-")
    feature = release.split(".", 1)[0].split("+", 1)[0]
    if not feature.isdigit():
        raise ConfigurationError(
            f"Java version '{version}' must start with a feature release number",
            remedy=_example_remedy(ToolId.JAVA, "17"),
        )
    os_token = _JAVA_OS[platform.os]
    arch_token = _JAVA_ARCH[platform.arch]
    fmt = ArchiveFormat.ZIP if platform.is_windows else ArchiveFormat.TAR_GZ
    tail = f"{os_token}/{arch_token}/jdk/hotspot/normal/eclipse"
    if "+" in release:
        tag = f"jdk-{release}"
        urls = (
            f"{ADOPTIUM_API}/version/{quote(tag, safe='')}/{tail}",
            f"{ADOPTIUM_RELEASES.format(feature=feature)}/{quote(tag, safe='')}/"
            f"OpenJDK{feature}U-jdk_{arch_token}_{os_token}_hotspot_{release.replace('+', '_')}{fmt.suffix}",
        )
    else:
        urls = (f"{ADOPTIUM_API}/latest/{feature}/ga/{tail}",)
    inner_root = "Contents/Home" if platform.os is OsName.MACOS else None
    return VersionSource(ToolId.JAVA, version, platform, urls, fmt, inner_root)


# python ---------------------------------------------------------------------

PYTHON_BUILD_TAG: Final[str] = "20231002"
PYTHON_MIRRORS: Final[tuple[str, ...]] = (
    "https://github.com/indygreg/python-build-standalone/releases/download",
    "https://mirror.nju.edu.cn/github-release/indygreg/python-build-standalone",
)
_PYTHON_TRIPLES: Final[dict[tuple[OsName, Arch], str]] = {
    (OsName.LINUX, Arch.X64): "x86_64-unknown-linux-gnu",
    (OsName.LINUX, Arch.ARM64): "aarch64-unknown-linux-gnu",
    (OsName.MACOS, Arch.X64): "x86_64-apple-darwin",
    (OsName.MACOS, Arch.ARM64): "aarch64-apple-darwin",
    (OsName.WINDOWS, Arch.X64): "x86_64-pc-windows-msvc-shared",
}


@register_strategy(ToolId.PYTHON)
def python_sources(version: str, platform: Platform) -> VersionSource:
    triple = _PYTHON_TRIPLES.get((platform.os, platform.arch))
    if triple is None:
        raise _unsupported(ToolId.PYTHON, platform)
    number = _strip_v(version)
    filename = f"cpython-{number}+{PYTHON_BUILD_TAG}-{triple}-install_only.tar.gz"
    urls = tuple(f"{base}/{PYTHON_BUILD_TAG}/{quote(filename)}" for base in PYTHON_MIRRORS)
    return VersionSource(ToolId.PYTHON, version, platform, urls, ArchiveFormat.TAR_GZ)


# mysql ----------------------------------------------------------------------

MYSQL_MIRRORS: Final[tuple[str, ...]] = (
    "https://cdn.mysql.com/Downloads",
    "https://dev.mysql.com/get/Downloads",
    "https://mirrors.aliyun.com/mysql",
)


def _mysql_series(version: str) -> str:
    parts = version.split(".")
    if len(parts) < 2 or not all(part.isdigit() for part in parts[:2]):
        raise ConfigurationError(
            f"MySQL version '{version}' must look like <major>.<minor>.<patch>",
            remedy=_example_remedy(ToolId.MYSQL, "8.0.35"),
        )
    return f"{parts[0]}.{parts[1]}"


@register_strategy(ToolId.MYSQL)
def mysql_sources(version: str, platform: Platform) -> VersionSource:
    series = _mysql_series(version)
    if platform.os is OsName.LINUX:
        machine = "aarch64" if platform.arch is Arch.ARM64 else "x86_64"
        fmt = ArchiveFormat.TAR_XZ
        filename = f"mysql-{version}-linux-glibc2.28-{machine}{fmt.suffix}"
    elif platform.os is OsName.MACOS:
        machine = "arm64" if platform.arch is Arch.ARM64 else "x86_64"
        fmt = ArchiveFormat.TAR_GZ
        filename = f"mysql-{version}-macos14-{machine}{fmt.suffix}"
    elif platform.arch is Arch.X64:
        fmt = ArchiveFormat.ZIP
        filename = f"mysql-{version}-winx64{fmt.suffix}"
    else:
        raise _unsupported(ToolId.MYSQL, platform)
    urls = tuple(f"{base}/MySQL-{series}/{filename}" for base in MYSQL_MIRRORS)
    return VersionSource(ToolId.MYSQL, version, platform, urls, fmt)


# mariadb --------------------------------------------------------------------

MARIADB_MIRRORS: Final[tuple[str, ...]] = (
    "https://archive.mariadb.org",
    "https://mirrors.tuna.tsinghua.edu.cn/mariadb",
    "https://ftp.nluug.nl/db/mariadb",
)


@register_strategy(ToolId.MARIADB)
def mariadb_sources(version: str, platform: Platform) -> VersionSource:
    if platform.arch is not Arch.X64 or platform.os is OsName.MACOS:
        raise _unsupported(ToolId.MARIADB, platform)
    if platform.is_windows:
        path = f"mariadb-{version}/winx64-packages/mariadb-{version}-winx64.zip"
        fmt = ArchiveFormat.ZIP
    else:
        path = f"mariadb-{version}/bintar-linux-systemd-x86_64/mariadb-{version}-linux-systemd-x86_64.tar.gz"
        fmt = ArchiveFormat.TAR_GZ
    urls = tuple(f"{base}/{path}" for base in MARIADB_MIRRORS)
    return VersionSource(ToolId.MARIADB, version, platform, urls, fmt)


def registered_tools() -> tuple[ToolId, ...]:
    return tuple(_STRATEGIES)


__all__ = [
    "SourceStrategy",
    "VersionSource",
    "register_strategy",
    "registered_tools",
    "resolve_sources",
]
