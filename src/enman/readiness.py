# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Bounded readiness polling for background services."""

from __future__ import annotations

import socket
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class ProbeResult(StrEnum):
    """Single observation of a starting service."""

    READY = "ready"
    PENDING = "pending"
    EXITED = "exited"


Probe = Callable[[], ProbeResult]


class ReadinessOutcome(StrEnum):
    READY = "ready"
    TIMED_OUT = "timed-out"
    EXITED = "exited"
    CANCELLED = "cancelled"


def wait_until_ready(
    probe: Probe,
    *,
    timeout: float,
    interval: float,
    cancel: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> ReadinessOutcome:
    """Poll ``probe`` until it reports ready, the process exits, or time runs out.

    The wait between polls uses ``cancel.wait`` so setting the event aborts
    immediately.
    """

    event = cancel or threading.Event()
    deadline = clock() + timeout
    while True:
        if event.is_set():
            return ReadinessOutcome.CANCELLED
        result = probe()
        if result is ProbeResult.READY:
            return ReadinessOutcome.READY
        if result is ProbeResult.EXITED:
            return ReadinessOutcome.EXITED
        remaining = deadline - clock()
        if remaining <= 0:
            return ReadinessOutcome.TIMED_OUT
        if event.wait(min(interval, remaining)):
            return ReadinessOutcome.CANCELLED


def port_accepts_connections(host: str, port: int, *, timeout: float = 0.5) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


@dataclass(frozen=True, slots=True)
class ServerProbe:
    """Ready once the pid file exists and the TCP port accepts connections."""

    pid_file: Path
    port: int
    is_running: Callable[[], bool]
    host: str = "127.0.0.1"

    def __call__(self) -> ProbeResult:
        if not self.is_running():
            return ProbeResult.EXITED
        if self.pid_file.is_file() and port_accepts_connections(self.host, self.port):
            return ProbeResult.READY
        return ProbeResult.PENDING


__all__ = [
    "Probe",
    "ProbeResult",
    "ReadinessOutcome",
    "ServerProbe",
    "port_accepts_connections",
    "wait_until_ready",
]
