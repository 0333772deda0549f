# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for shim creation and removal."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from enman.errors import ConfigurationError
from enman.layout import EnmanLayout
from enman.platform import Arch, OsName, Platform
from enman.shims import create_shim, manager_entry_point, remove_shim
from enman.tools import ToolId


@pytest.fixture
def manager(tmp_path: Path) -> Path:
    entry = tmp_path / "bin" / "enman"
    entry.parent.mkdir()
    entry.write_text("#!/bin/sh\n")
    return entry


@pytest.mark.skipif(os.name == "nt", reason="symlink shims are POSIX only")
def test_posix_shim_is_an_idempotent_symlink(layout: EnmanLayout, linux_x64: Platform, manager: Path) -> None:
    shim = create_shim(layout, ToolId.NODE, linux_x64, manager)

    assert shim == layout.shims_dir / "node"
    assert shim.is_symlink()
    assert Path(os.readlink(shim)) == manager
    assert create_shim(layout, ToolId.NODE, linux_x64, manager) == shim


def test_windows_shim_is_a_copy(layout: EnmanLayout, manager: Path) -> None:
    shim = create_shim(layout, ToolId.JAVA, Platform(OsName.WINDOWS, Arch.X64), manager)

    assert shim.name == "java.exe"
    assert not shim.is_symlink()
    assert shim.read_text() == manager.read_text()


def test_remove_shim(layout: EnmanLayout, linux_x64: Platform, manager: Path) -> None:
    create_shim(layout, ToolId.PYTHON, linux_x64, manager)

    assert remove_shim(layout, ToolId.PYTHON, linux_x64) is True
    assert remove_shim(layout, ToolId.PYTHON, linux_x64) is False


def test_entry_point_not_found(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr("enman.shims.shutil.which", lambda name: None)
    monkeypatch.setattr("enman.shims.sys.argv", [str(tmp_path / "missing")])

    with pytest.raises(ConfigurationError, match="Unable to locate"):
        manager_entry_point()
