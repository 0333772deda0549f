# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for readiness polling and the database service controller."""

from __future__ import annotations

import itertools
import socket
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from enman.bootstrap import ServerPaths, write_server_config
from enman.errors import ServiceError
from enman.layout import EnmanLayout
from enman.platform import Platform
from enman.readiness import ProbeResult, ReadinessOutcome, ServerProbe, port_accepts_connections, wait_until_ready
from enman.services import ServiceController, supports_service
from enman.tools import ToolId


def _sequence(*results: ProbeResult):
    remaining = iter(results)
    return lambda: next(remaining)


def test_ready_after_pending_polls() -> None:
    probe = _sequence(ProbeResult.PENDING, ProbeResult.PENDING, ProbeResult.READY)

    assert wait_until_ready(probe, timeout=5, interval=0.001) is ReadinessOutcome.READY


def test_process_exit_stops_polling() -> None:
    probe = _sequence(ProbeResult.PENDING, ProbeResult.EXITED)

    assert wait_until_ready(probe, timeout=5, interval=0.001) is ReadinessOutcome.EXITED


def test_timeout_is_bounded_by_clock() -> None:
    ticks = itertools.count()
    polls: list[int] = []

    def probe() -> ProbeResult:
        polls.append(1)
        return ProbeResult.PENDING

    outcome = wait_until_ready(probe, timeout=2.5, interval=0.001, clock=lambda: float(next(ticks)))

    assert outcome is ReadinessOutcome.TIMED_OUT
    assert len(polls) == 3


def test_preset_cancel_skips_probe() -> None:
    cancel = threading.Event()
    cancel.set()

    def probe() -> ProbeResult:
        raise AssertionError("probe must not run once cancelled")

    assert wait_until_ready(probe, timeout=5, interval=0.001, cancel=cancel) is ReadinessOutcome.CANCELLED


def test_cancel_during_wait_aborts_promptly() -> None:
    cancel = threading.Event()

    def probe() -> ProbeResult:
        cancel.set()
        return ProbeResult.PENDING

    assert wait_until_ready(probe, timeout=60, interval=30, cancel=cancel) is ReadinessOutcome.CANCELLED


@pytest.fixture
def listening_port() -> Iterator[int]:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        yield server.getsockname()[1]


def test_server_probe_requires_pid_file_and_port(tmp_path: Path, listening_port: int) -> None:
    pid_file = tmp_path / "mysqld.pid"
    probe = ServerProbe(pid_file=pid_file, port=listening_port, is_running=lambda: True)

    assert port_accepts_connections("127.0.0.1", listening_port)
    assert probe() is ProbeResult.PENDING
    pid_file.write_text("1234")
    assert probe() is ProbeResult.READY
    assert ServerProbe(pid_file=pid_file, port=listening_port, is_running=lambda: False)() is ProbeResult.EXITED


def _controller(layout: EnmanLayout, platform: Platform) -> ServiceController:
    return ServiceController(layout, platform, timeout=0.05, interval=0.001)


def test_only_databases_have_services() -> None:
    assert supports_service(ToolId.MYSQL)
    assert supports_service(ToolId.MARIADB)
    assert not supports_service(ToolId.NODE)


def test_start_requires_option_file(layout: EnmanLayout, linux_x64: Platform) -> None:
    layout.version_dir(ToolId.MYSQL, "8.0.35").mkdir(parents=True)

    with pytest.raises(ServiceError, match="my.cnf is missing"):
        _controller(layout, linux_x64).start(ToolId.MYSQL, "8.0.35")


def test_start_reports_missing_server_binary(layout: EnmanLayout, linux_x64: Platform) -> None:
    install_dir = layout.version_dir(ToolId.MYSQL, "8.0.35")
    install_dir.mkdir(parents=True)
    write_server_config(ServerPaths(install_dir, linux_x64))

    with pytest.raises(ServiceError, match="Could not start"):
        _controller(layout, linux_x64).start(ToolId.MYSQL, "8.0.35")


def test_stop_without_pid_file_is_a_no_op(layout: EnmanLayout, linux_x64: Platform) -> None:
    assert _controller(layout, linux_x64).stop(ToolId.MYSQL, "8.0.35") is False


def test_stop_removes_stale_pid_file(
    layout: EnmanLayout, linux_x64: Platform, monkeypatch: pytest.MonkeyPatch
) -> None:
    paths = ServerPaths(layout.version_dir(ToolId.MYSQL, "8.0.35"), linux_x64)
    paths.data_dir.mkdir(parents=True)
    paths.pid_file.write_text("424242\n")

    def gone(pid: int, sig: int) -> None:
        raise ProcessLookupError(pid)

    monkeypatch.setattr("enman.services.os.kill", gone)

    assert _controller(layout, linux_x64).stop(ToolId.MYSQL, "8.0.35") is False
    assert not paths.pid_file.exists()


def test_stop_waits_for_pid_file_removal(
    layout: EnmanLayout, linux_x64: Platform, monkeypatch: pytest.MonkeyPatch
) -> None:
    paths = ServerPaths(layout.version_dir(ToolId.MARIADB, "11.2.2"), linux_x64)
    paths.data_dir.mkdir(parents=True)
    paths.pid_file.write_text("4242")
    signalled: list[tuple[int, int]] = []

    def terminate(pid: int, sig: int) -> None:
        signalled.append((pid, sig))
        paths.pid_file.unlink()

    monkeypatch.setattr("enman.services.os.kill", terminate)

    assert _controller(layout, linux_x64).stop(ToolId.MARIADB, "11.2.2") is True
    assert signalled[0][0] == 4242


def test_switch_collects_failures(layout: EnmanLayout, linux_x64: Platform) -> None:
    paths = ServerPaths(layout.version_dir(ToolId.MYSQL, "8.0.35"), linux_x64)
    paths.data_dir.mkdir(parents=True)
    paths.pid_file.write_text("not-a-pid")
    layout.version_dir(ToolId.MYSQL, "8.2.0").mkdir(parents=True)

    problems = _controller(layout, linux_x64).switch(ToolId.MYSQL, "8.0.35", "8.2.0")

    assert [type(problem) for problem in problems] == [ServiceError, ServiceError]
    assert "Unreadable pid file" in str(problems[0])
