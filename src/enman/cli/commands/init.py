# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``enman init`` command."""

from __future__ import annotations

import typer

from ..shared import get_context, shims_on_path
from ..typer_ext import SortedTyper


def init_command(ctx: typer.Context) -> None:
    """Create the enman directory tree and print the PATH setup line."""

    context = get_context(ctx)
    layout = context.layout
    try:
        layout.ensure_dirs()
    except OSError as exc:
        context.logger.fail(f"Unable to create {layout.root}: {exc}")
        raise typer.Exit(code=1) from exc
    context.logger.ok(f"Initialized enman in {layout.root}")
    if not shims_on_path(layout):
        context.logger.hint(context.messages.render("shims_path_hint", path=layout.shims_dir))


def register(app: SortedTyper) -> None:
    app.command("init")(init_command)


__all__ = ["init_command", "register"]
