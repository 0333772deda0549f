# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Query upstream release indexes for the versions a tool can be installed at.

Each tool with a machine-readable index registers a parser through
:func:`register_catalog`. Parsers receive the decoded JSON document and return
:class:`RemoteVersion` entries; :class:`RemoteCatalog` owns the HTTP session,
timeouts and ordering.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Final

import requests

from .config import Settings
from .errors import AcquisitionError, ConfigurationError
from .messages import MessageCatalog
from .sources import PYTHON_BUILD_TAG
from .tools import ToolId
from .versioning import parse_version, sort_versions

LOGGER = logging.getLogger(__name__)

DEFAULT_LIMIT: Final[int] = 10

NODE_INDEX_URL: Final[str] = "https://nodejs.org/dist/index.json"
ADOPTIUM_RELEASES_URL: Final[str] = "https://api.adoptium.net/v3/info/available_releases"
PYTHON_RELEASE_URL: Final[str] = (
    f"https://api.github.com/repos/indygreg/python-build-standalone/releases/tags/{PYTHON_BUILD_TAG}"
)
BROWSE_URLS: Final[Mapping[ToolId, str]] = {
    ToolId.MYSQL: "https://downloads.mysql.com/archives/community/",
    ToolId.MARIADB: "https://archive.mariadb.org/",
}

_PYTHON_ASSET: Final[re.Pattern[str]] = re.compile(
    rf"^cpython-(?P<version>\d+\.\d+\.\d+)\+{PYTHON_BUILD_TAG}-.+-install_only\.tar\.gz$",
)


@dataclass(frozen=True, slots=True)
class RemoteVersion:
    """One installable version as published upstream."""

    version: str
    label: str | None = None

    def __str__(self) -> str:
        return self.version if self.label is None else f"{self.version} ({self.label})"


class CatalogFormatError(ValueError):
    """Raised by parsers when an index document does not have the expected shape."""


IndexParser = Callable[[object], list[RemoteVersion]]

_PARSERS: dict[ToolId, tuple[str, IndexParser]] = {}


def register_catalog(tool: ToolId, url: str) -> Callable[[IndexParser], IndexParser]:
    """Register ``parser`` as the reader of ``tool``'s release index at ``url``."""

    def decorator(parser: IndexParser) -> IndexParser:
        _PARSERS[tool] = (url, parser)
        return parser

    return decorator


def catalog_tools() -> tuple[ToolId, ...]:
    return tuple(_PARSERS)


@register_catalog(ToolId.NODE, NODE_INDEX_URL)
def parse_node_index(document: object) -> list[RemoteVersion]:
    """Read ``dist/index.json``; LTS releases carry their codename."""

    if not isinstance(document, list):
        raise CatalogFormatError("expected a list of releases")
    versions: list[RemoteVersion] = []
    for entry in document:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("version"), str):
            continue
        lts = entry.get("lts")
        label = f"LTS: {lts}" if isinstance(lts, str) and lts else None
        versions.append(RemoteVersion(entry["version"].removeprefix("v"), label))
    return versions


@register_catalog(ToolId.JAVA, ADOPTIUM_RELEASES_URL)
def parse_adoptium_releases(document: object) -> list[RemoteVersion]:
    if not isinstance(document, Mapping):
        raise CatalogFormatError("expected an object")
    releases = document.get("available_releases")
    if not isinstance(releases, list):
        raise CatalogFormatError("missing 'available_releases'")
    lts = document.get("available_lts_releases")
    lts_releases = set(lts) if isinstance(lts, list) else set()
    return [
        RemoteVersion(str(release), "LTS" if release in lts_releases else None)
        for release in releases
        if isinstance(release, int)
    ]


@register_catalog(ToolId.PYTHON, PYTHON_RELEASE_URL)
def parse_python_release(document: object) -> list[RemoteVersion]:
    """Collect the interpreter versions published in the pinned standalone build release."""

    if not isinstance(document, Mapping) or not isinstance(document.get("assets"), list):
        raise CatalogFormatError("missing 'assets'")
    found: set[str] = set()
    for asset in document["assets"]:
        name = asset.get("name") if isinstance(asset, Mapping) else None
        match = _PYTHON_ASSET.match(name) if isinstance(name, str) else None
        if match:
            found.add(match.group("version"))
    return [RemoteVersion(version) for version in found]


class RemoteCatalog:
    """Fetch and order the remote versions of a tool."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        connect_timeout: float = 30.0,
        total_timeout: float = 300.0,
        user_agent: str | None = None,
        messages: MessageCatalog | None = None,
    ) -> None:
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers["User-Agent"] = user_agent
        self._connect_timeout = connect_timeout
        self._total_timeout = total_timeout
        self._messages = messages or MessageCatalog.default()

    @classmethod
    def from_settings(cls, settings: Settings, *, session: requests.Session | None = None) -> RemoteCatalog:
        return cls(
            session,
            connect_timeout=settings.connect_timeout,
            total_timeout=settings.total_timeout,
            user_agent=settings.user_agent,
            messages=settings.messages,
        )

    def versions(self, tool: ToolId, *, limit: int | None = DEFAULT_LIMIT) -> list[RemoteVersion]:
        """Return up to ``limit`` versions of ``tool``, newest first.

        Raises:
            ConfigurationError: If ``tool`` publishes no machine-readable index.
            AcquisitionError: If the index cannot be fetched or parsed.
        """

        registered = _PARSERS.get(tool)
        if registered is None:
            raise ConfigurationError(
                self._messages.render("remote_unsupported", tool=tool),
                remedy=self._messages.render("remedy_browse_releases", url=BROWSE_URLS.get(tool, "")),
            )
        url, parser = registered
        remedy = self._messages.render("remedy_retry_remote", tool=tool)
        try:
            with self._session.get(url, timeout=(self._connect_timeout, self._total_timeout)) as response:
                response.raise_for_status()
                document = response.json()
        except requests.exceptions.RequestException as exc:
            raise AcquisitionError(f"Fetching {tool} versions from {url} failed: {exc}", remedy=remedy) from exc
        except ValueError as exc:
            raise AcquisitionError(f"{url} did not return JSON: {exc}", remedy=remedy) from exc
        try:
            entries = parser(document)
        except CatalogFormatError as exc:
            raise AcquisitionError(f"Unexpected {tool} release index from {url}: {exc}", remedy=remedy) from exc

        LOGGER.debug("%s lists %d %s version(s)", url, len(entries), tool)
        by_version = {entry.version: entry for entry in entries if parse_version(entry.version) is not None}
        ordered = [by_version[version] for version in sort_versions(by_version, newest_first=True)]
        return ordered if limit is None else ordered[:limit]


__all__ = [
    "CatalogFormatError",
    "RemoteCatalog",
    "RemoteVersion",
    "catalog_tools",
    "parse_adoptium_releases",
    "parse_node_index",
    "parse_python_release",
    "register_catalog",
]
