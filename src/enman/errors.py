# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception taxonomy shared by the resolver, acquisition pipeline and dispatcher.

Only :class:`ConfigurationError`, :class:`AcquisitionError` and
:class:`DispatchError` cross the core boundary. Every terminal error carries an
optional ``remedy`` line naming the next command the user should run.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


class EnmanError(RuntimeError):
    """Base class for failures surfaced to the command-line boundary."""

    exit_code: int = 1

    def __init__(self, message: str, *, remedy: str | None = None) -> None:
        super().__init__(message)
        self.remedy = remedy


class ConfigurationError(EnmanError):
    """Raised when no version resolves or a binding/setting is invalid."""


class AcquisitionError(EnmanError):
    """Raised when installing a (tool, version) cannot complete."""


class DispatchError(EnmanError):
    """Raised when a shim cannot hand execution over to the resolved binary."""

    def __init__(
        self,
        message: str,
        *,
        tool: str,
        version: str | None,
        remedy: str | None = None,
    ) -> None:
        super().__init__(message, remedy=remedy)
        self.tool = tool
        self.version = version


class UnsupportedPlatformError(EnmanError):
    """Raised when the host OS/architecture has no known distribution."""


class ArchiveError(AcquisitionError):
    """Raised for malformed archives, unknown formats or missing roots."""


class VerificationError(AcquisitionError):
    """Raised when the canonical binary is absent after extraction."""


class TransientNetworkError(RuntimeError):
    """A recoverable download failure; absorbed by retry and fallback."""

    def __init__(self, url: str, reason: str, *, status: int | None = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class PermanentSourceError(TransientNetworkError):
    """A candidate failure that retrying the same URL cannot fix (e.g. 404)."""


@dataclass(frozen=True, slots=True)
class SourceFailure:
    """Final failure recorded for one candidate URL."""

    url: str
    attempts: int
    error: TransientNetworkError


class SourcesExhaustedError(AcquisitionError):
    """Raised when every candidate URL failed after its retries."""

    def __init__(
        self,
        message: str,
        *,
        failures: Sequence[SourceFailure],
        remedy: str | None = None,
    ) -> None:
        super().__init__(message, remedy=remedy)
        self.failures = tuple(failures)

    @property
    def last_error(self) -> TransientNetworkError | None:
        """Return the last observed failure, useful for diagnostics."""

        return self.failures[-1].error if self.failures else None


class PostInstallWarning(UserWarning):
    """Best-effort bootstrap failure; the installed binary remains usable."""


class ServiceError(RuntimeError):
    """Raised when a background database service cannot be started or stopped."""


__all__ = [
    "AcquisitionError",
    "ArchiveError",
    "ConfigurationError",
    "DispatchError",
    "EnmanError",
    "PermanentSourceError",
    "PostInstallWarning",
    "ServiceError",
    "SourceFailure",
    "SourcesExhaustedError",
    "TransientNetworkError",
    "UnsupportedPlatformError",
    "VerificationError",
]
