# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Path-scoped advisory locks guarding install and uninstall of one version."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from .errors import AcquisitionError
from .messages import MessageCatalog

LOGGER = logging.getLogger(__name__)


@contextmanager
def install_lock(
    lock_path: Path,
    *,
    timeout: float | None = None,
    messages: MessageCatalog | None = None,
) -> Iterator[Path]:
    """Hold an exclusive OS-level lock on ``lock_path`` for the ``with`` body.

    Other processes block until the holder exits; the operating system drops
    the lock if the holder crashes.

    Args:
        lock_path: Lock file location (created when missing).
        timeout: Seconds to wait before giving up; ``None`` waits indefinitely.
        messages: Catalog rendering the timeout remedy.

    Yields:
        Path: The lock file path.

    Raises:
        AcquisitionError: If the lock cannot be obtained within ``timeout``.
    """

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path), timeout=-1 if timeout is None else timeout)
    LOGGER.debug("Waiting for lock %s", lock_path)
    try:
        lock.acquire()
    except Timeout as exc:
        raise AcquisitionError(
            f"Timed out after {timeout}s waiting for another enman process holding {lock_path}",
            remedy=(messages or MessageCatalog.default()).render("remedy_lock_timeout", path=lock_path),
        ) from exc
    try:
        yield lock_path
    finally:
        lock.release()


__all__ = ["install_lock"]
