# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command registry."""

from __future__ import annotations

from ..typer_ext import SortedTyper
from . import config_cmd, global_cmd, init, install, list_cmd, uninstall, use

__all__ = ["register_commands"]


def register_commands(app: SortedTyper) -> None:
    """Register every built-in command on ``app``."""

    init.register(app)
    install.register(app)
    use.register(app)
    global_cmd.register(app)
    uninstall.register(app)
    list_cmd.register(app)
    config_cmd.register(app)
