# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for ordering opaque version tokens."""

from __future__ import annotations

from collections.abc import Iterable

from packaging.version import InvalidVersion, Version


def parse_version(raw: str) -> Version | None:
    """Return a :class:`Version` for ``raw`` or ``None`` when it is not parseable."""

    candidate = raw.strip()
    if candidate[:1] in {"v", "V"}:
        candidate = candidate[1:]
    try:
        return Version(candidate)
    except InvalidVersion:
        return None


def version_key(raw: str) -> tuple[int, Version | str]:
    """Sort key: parseable versions first by release order, others lexicographically."""

    parsed = parse_version(raw)
    if parsed is None:
        return (1, raw)
    return (0, parsed)


def sort_versions(versions: Iterable[str], *, newest_first: bool = False) -> list[str]:
    return sorted(versions, key=version_key, reverse=newest_first)


__all__ = ["parse_version", "sort_versions", "version_key"]
