# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers with optional colour and emoji support."""

from __future__ import annotations

import logging
import sys

from rich.text import Text

from .console import detect_tty, get_console_manager

PACKAGE_LOGGER = "enman"


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
    stderr: bool = False,
) -> None:
    color_enabled = detect_tty(sys.stderr if stderr else sys.stdout) if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji, stderr=stderr)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    prefix = emoji("ℹ️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message."""

    prefix = emoji("✅ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message to standard error."""

    prefix = emoji("⚠️ ", use_emoji)
    _print_line(
        f"{prefix}{msg}",
        style="yellow",
        use_emoji=use_emoji,
        use_color=use_color,
        stderr=True,
    )


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message to standard error."""

    prefix = emoji("❌ ", use_emoji)
    _print_line(
        f"{prefix}{msg}",
        style="red",
        use_emoji=use_emoji,
        use_color=use_color,
        stderr=True,
    )


def hint(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a follow-up suggestion (e.g. the command that fixes an error) to standard error."""

    prefix = emoji("💡 ", use_emoji)
    _print_line(
        f"{prefix}{msg}",
        style="bold",
        use_emoji=use_emoji,
        use_color=use_color,
        stderr=True,
    )


def configure_verbose_logging(enabled: bool) -> None:
    """Stream ``enman`` debug records to stderr when ``enabled``."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    if not enabled:
        logger.setLevel(logging.WARNING)
        return
    if not getattr(logger, "_enman_verbose_configured", False):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
        logger.addHandler(handler)
        setattr(logger, "_enman_verbose_configured", True)
    logger.setLevel(logging.DEBUG)


__all__ = ["configure_verbose_logging", "emoji", "fail", "hint", "info", "ok", "warn"]
