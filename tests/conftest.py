# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import io
import json
import tarfile
import zipfile
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import requests
import urllib3

from enman.config import Settings
from enman.console import get_console_manager
from enman.layout import EnmanLayout
from enman.platform import Arch, OsName, Platform

LINUX_X64 = Platform(os=OsName.LINUX, arch=Arch.X64)


@pytest.fixture(autouse=True)
def _fresh_consoles() -> None:
    get_console_manager().reset()


@pytest.fixture
def enman_root(tmp_path: Path) -> Path:
    return tmp_path / "enman-root"


@pytest.fixture
def settings(enman_root: Path) -> Settings:
    return Settings(root=enman_root, retry_backoff=0.0)


@pytest.fixture
def layout(settings: Settings) -> EnmanLayout:
    return EnmanLayout(settings.root)


@pytest.fixture
def linux_x64() -> Platform:
    return LINUX_X64


ArchiveBuilder = Callable[[Path, Mapping[str, bytes]], Path]


def _build_tar(path: Path, members: Mapping[str, bytes], mode: str) -> Path:
    with tarfile.open(path, mode) as bundle:
        for name, payload in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            info.mode = 0o644
            bundle.addfile(info, io.BytesIO(payload))
    return path


@pytest.fixture
def make_tar_gz() -> ArchiveBuilder:
    """Return a builder writing ``members`` (name -> bytes) into a gzip tarball."""

    return lambda path, members: _build_tar(path, members, "w:gz")


@pytest.fixture
def make_tar_xz() -> ArchiveBuilder:
    return lambda path, members: _build_tar(path, members, "w:xz")


@pytest.fixture
def make_zip() -> ArchiveBuilder:
    def build(path: Path, members: Mapping[str, bytes]) -> Path:
        with zipfile.ZipFile(path, "w") as bundle:
            for name, payload in members.items():
                bundle.writestr(name, payload)
        return path

    return build


@dataclass
class FakeRaw:
    """Stand-in for the urllib3 response behind ``Response.raw``."""

    owner: FakeResponse = field(repr=False, compare=False)
    decode_flags: list[bool | None] = field(default_factory=list)

    def stream(self, amt: int = 1, decode_content: bool | None = None) -> Iterable[bytes]:
        self.decode_flags.append(decode_content)
        body = self.owner.body
        if self.owner.fail_after is not None:
            body = body[: self.owner.fail_after]
        for offset in range(0, len(body), amt):
            yield body[offset : offset + amt]
        if self.owner.fail_after is not None:
            raise urllib3.exceptions.ProtocolError("connection reset")


@dataclass
class FakeResponse:
    """Streaming response double; ``fail_after`` raises mid-body."""

    status_code: int = 200
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    fail_after: int | None = None
    raw: FakeRaw = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.raw = FakeRaw(self)

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")

    def json(self) -> object:
        return json.loads(self.body)


@dataclass
class FakeSession:
    """Session double replaying scripted responses (or exceptions) per URL."""

    routes: dict[str, list[FakeResponse | Exception]] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    options: list[dict[str, object]] = field(default_factory=list)

    def get(self, url: str, **kwargs: object) -> FakeResponse:
        self.calls.append(url)
        self.options.append(kwargs)
        script = self.routes.get(url)
        if not script:
            return FakeResponse(status_code=404)
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


def ok_response(body: bytes) -> FakeResponse:
    return FakeResponse(status_code=200, body=body, headers={"Content-Length": str(len(body))})


@pytest.fixture
def ok() -> Callable[[bytes], FakeResponse]:
    return ok_response


@pytest.fixture
def response() -> type[FakeResponse]:
    return FakeResponse
