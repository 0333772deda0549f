# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Host platform detection."""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass
from enum import StrEnum
from functools import cache
from typing import Final

from .errors import UnsupportedPlatformError


class OsName(StrEnum):
    """Operating systems with published tool distributions."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"


class Arch(StrEnum):
    """CPU architectures with published tool distributions."""

    X64 = "x64"
    ARM64 = "arm64"


ARCH_ALIASES: Final[dict[str, Arch]] = {
    "amd64": Arch.X64,
    "x86_64": Arch.X64,
    "x64": Arch.X64,
    "arm64": Arch.ARM64,
    "aarch64": Arch.ARM64,
}


@dataclass(frozen=True, slots=True)
class Platform:
    """Immutable (OS, architecture) pair."""

    os: OsName
    arch: Arch

    @property
    def is_windows(self) -> bool:
        return self.os is OsName.WINDOWS

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


def _detect_os(system: str) -> OsName:
    lowered = system.lower()
    if lowered.startswith("win"):
        return OsName.WINDOWS
    if lowered == "darwin":
        return OsName.MACOS
    if lowered == "linux":
        return OsName.LINUX
    raise UnsupportedPlatformError(f"Unsupported operating system: {system}")


def _detect_arch(machine: str) -> Arch:
    arch = ARCH_ALIASES.get(machine.lower())
    if arch is None:
        raise UnsupportedPlatformError(
            f"Unsupported architecture '{machine}'. Supported: x64, arm64",
        )
    return arch


def platform_from(system: str, machine: str) -> Platform:
    """Build a :class:`Platform` from ``platform.system()``/``machine()`` style values."""

    return Platform(os=_detect_os(system), arch=_detect_arch(machine))


@cache
def detect_platform() -> Platform:
    """Return the host platform, detected once per process.

    Raises:
        UnsupportedPlatformError: If the OS or architecture is not supported.
    """

    system = "windows" if sys.platform == "win32" else _platform.system()
    return platform_from(system, _platform.machine())


__all__ = ["ARCH_ALIASES", "Arch", "OsName", "Platform", "detect_platform", "platform_from"]
