# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``enman install`` command."""

from __future__ import annotations

import typer

from ...acquisition import InstallStatus
from ..shared import TOOL_SPEC_ARGUMENT, get_context, install_with_feedback, parse_spec, shims_on_path
from ..typer_ext import SortedTyper


def install_command(ctx: typer.Context, tool_version: TOOL_SPEC_ARGUMENT) -> None:
    """Download and install a tool version."""

    context = get_context(ctx)
    spec = parse_spec(context, tool_version)
    outcome = install_with_feedback(context, spec)
    if outcome.status is InstallStatus.ALREADY_INSTALLED:
        context.logger.ok(context.messages.render("already_installed", tool=spec.tool, version=spec.version))
    if not shims_on_path(context.layout):
        context.logger.hint(context.messages.render("shims_path_hint", path=context.layout.shims_dir))


def register(app: SortedTyper) -> None:
    app.command("install")(install_command)


__all__ = ["install_command", "register"]
