# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` for bootstrap, services and dispatch."""

from __future__ import annotations

# Bandit: subprocess usage is intentional; commands are argument lists built
# from installed tool paths and never go through a shell.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from subprocess import CompletedProcess as _CompletedProcess  # nosec B404

TIMEOUT_EXIT_CODE: Final[int] = 124
SIGNAL_EXIT_BASE: Final[int] = 128


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        super().__init__(
            f"Command '{Path(command[0]).name}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def _normalize_args(args: Sequence[str | Path]) -> list[str]:
    if not args:
        raise ValueError("subprocess command requires at least one argument")
    head, *rest = args
    executable = Path(head)
    if not executable.is_file():
        raise FileNotFoundError(f"Executable '{executable}' does not exist")
    return [str(executable), *(str(item) for item in rest)]


def exit_status(returncode: int) -> int:
    """Map a ``Popen`` return code to a shell-style exit status.

    Negative codes denote termination by signal and become ``128 + signal``.
    """

    if returncode < 0:
        return SIGNAL_EXIT_BASE - returncode
    return returncode


def run_command(
    args: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> _CompletedProcess[str]:
    """Run an installed executable non-interactively and capture its output.

    Args:
        args: Absolute path to the executable followed by its arguments.
        cwd: Optional working directory.
        env: Optional replacement environment.
        check: Raise :class:`SubprocessExecutionError` on a non-zero exit.
        timeout: Seconds before the command is abandoned with exit status 124.

    Returns:
        CompletedProcess[str]: Completed process with captured text output.
    """

    normalized = _normalize_args(args)
    try:
        completed: _CompletedProcess[str] = subprocess.run(  # nosec B603
            normalized,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        stdout = exc.stdout.decode(errors="ignore") if isinstance(exc.stdout, bytes) else exc.stdout or ""
        completed = subprocess.CompletedProcess(
            args=normalized,
            returncode=TIMEOUT_EXIT_CODE,
            stdout=stdout,
            stderr=f"Command timed out after {timeout:.1f}s",
        )

    if check and completed.returncode != 0:
        raise SubprocessExecutionError(normalized, completed.returncode, completed.stdout, completed.stderr)
    return completed


def run_passthrough(args: Sequence[str | Path], *, cwd: Path | None = None) -> int:
    """Run ``args`` with inherited standard streams and return its shell-style exit status."""

    normalized = _normalize_args(args)
    completed = subprocess.run(  # nosec B603
        normalized,
        cwd=str(cwd) if cwd is not None else None,
        check=False,
    )
    return exit_status(completed.returncode)


def start_background(
    args: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    log_file: Path | None = None,
) -> subprocess.Popen[bytes]:
    """Start ``args`` detached from the terminal, sending output to ``log_file``."""

    normalized = _normalize_args(args)
    if log_file is None:
        return subprocess.Popen(  # nosec B603
            normalized,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with log_file.open("ab") as sink:
        return subprocess.Popen(  # nosec B603
            normalized,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=sink,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )


__all__ = [
    "SIGNAL_EXIT_BASE",
    "SubprocessExecutionError",
    "TIMEOUT_EXIT_CODE",
    "exit_status",
    "run_command",
    "run_passthrough",
    "start_background",
]
