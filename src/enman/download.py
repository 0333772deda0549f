# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Download an archive from the first working URL of an ordered candidate list."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Final

import requests
import urllib3

from .config import Settings
from .errors import PermanentSourceError, SourceFailure, SourcesExhaustedError, TransientNetworkError

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE: Final[int] = 64 * 1024
PARTIAL_SUFFIX: Final[str] = ".part"
RETRYABLE_CLIENT_STATUSES: Final[frozenset[int]] = frozenset({408, 429})

ProgressCallback = Callable[[str, int, int | None], None]


def _is_retryable_status(status: int) -> bool:
    return status >= 500 or status in RETRYABLE_CLIENT_STATUSES


def _content_length(response: requests.Response) -> int | None:
    raw = response.headers.get("Content-Length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class SourceDownloader:
    """Stream bytes for one artifact, falling back across mirrors.

    Each candidate gets up to ``retry_limit`` attempts for transient failures
    (connection errors, timeouts, truncated bodies, 5xx, 408, 429) separated by
    a fixed ``retry_backoff``. Other HTTP errors move straight to the next
    candidate. Only when every candidate failed is
    :class:`SourcesExhaustedError` raised.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        connect_timeout: float = 30.0,
        total_timeout: float = 300.0,
        retry_limit: int = 3,
        retry_backoff: float = 2.0,
        user_agent: str | None = None,
        on_progress: ProgressCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers["User-Agent"] = user_agent
        self._connect_timeout = connect_timeout
        self._total_timeout = total_timeout
        self._retry_limit = max(1, retry_limit)
        self._retry_backoff = retry_backoff
        self._on_progress = on_progress
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        session: requests.Session | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> SourceDownloader:
        return cls(
            session,
            connect_timeout=settings.connect_timeout,
            total_timeout=settings.total_timeout,
            retry_limit=settings.retry_limit,
            retry_backoff=settings.retry_backoff,
            user_agent=settings.user_agent,
            on_progress=on_progress,
        )

    def fetch(self, urls: Sequence[str], dest: Path) -> str:
        """Download the first candidate that succeeds into ``dest``.

        Args:
            urls: Candidate URLs in priority order.
            dest: Final location of the downloaded file.

        Returns:
            str: URL the persisted bytes came from.

        Raises:
            SourcesExhaustedError: If every candidate failed.
        """

        dest.parent.mkdir(parents=True, exist_ok=True)
        failures: list[SourceFailure] = []
        for url in urls:
            failure = self._try_candidate(url, dest)
            if failure is None:
                return url
            failures.append(failure)
            LOGGER.debug("Giving up on %s after %d attempt(s): %s", url, failure.attempts, failure.error)
        last = failures[-1].error.reason if failures else "no candidate URLs"
        raise SourcesExhaustedError(
            f"All {len(failures)} download source(s) failed; last error: {last}",
            failures=failures,
        )

    def _try_candidate(self, url: str, dest: Path) -> SourceFailure | None:
        attempt = 1
        while True:
            try:
                self._download_once(url, dest)
            except PermanentSourceError as exc:
                return SourceFailure(url=url, attempts=attempt, error=exc)
            except TransientNetworkError as exc:
                LOGGER.debug("Attempt %d/%d for %s failed: %s", attempt, self._retry_limit, url, exc.reason)
                if attempt >= self._retry_limit:
                    return SourceFailure(url=url, attempts=attempt, error=exc)
                if self._retry_backoff > 0:
                    self._sleep(self._retry_backoff)
                attempt += 1
                continue
            return None

    def _download_once(self, url: str, dest: Path) -> None:
        partial = dest.with_name(dest.name + PARTIAL_SUFFIX)
        deadline = self._clock() + self._total_timeout
        try:
            with self._session.get(
                url,
                stream=True,
                timeout=(self._connect_timeout, self._total_timeout),
                allow_redirects=True,
            ) as response:
                status = response.status_code
                if not 200 <= status < 300:
                    if _is_retryable_status(status):
                        raise TransientNetworkError(url, f"HTTP {status}", status=status)
                    raise PermanentSourceError(url, f"HTTP {status}", status=status)
                # Content-Length counts the encoded body, so persist it undecoded.
                expected = _content_length(response)
                received = 0
                with partial.open("wb") as handle:
                    for chunk in response.raw.stream(CHUNK_SIZE, decode_content=False):
                        if not chunk:
                            continue
                        handle.write(chunk)
                        received += len(chunk)
                        if self._on_progress is not None:
                            self._on_progress(url, received, expected)
                        if self._clock() > deadline:
                            raise TransientNetworkError(
                                url,
                                f"transfer exceeded {self._total_timeout:.0f}s",
                            )
                if expected is not None and received != expected:
                    raise TransientNetworkError(url, f"truncated body: {received} of {expected} bytes")
        except requests.exceptions.Timeout as exc:
            partial.unlink(missing_ok=True)
            raise TransientNetworkError(url, f"timed out: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            partial.unlink(missing_ok=True)
            raise TransientNetworkError(url, f"request failed: {exc}") from exc
        except urllib3.exceptions.HTTPError as exc:
            partial.unlink(missing_ok=True)
            raise TransientNetworkError(url, f"stream interrupted: {exc}") from exc
        except TransientNetworkError:
            partial.unlink(missing_ok=True)
            raise
        partial.replace(dest)


__all__ = ["ProgressCallback", "SourceDownloader"]
