# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``enman uninstall`` command."""

from __future__ import annotations

import typer

from ...acquisition import AcquisitionPipeline, UninstallStatus
from ..shared import TOOL_SPEC_ARGUMENT, get_context, handle_errors, parse_spec
from ..typer_ext import SortedTyper


def uninstall_command(ctx: typer.Context, tool_version: TOOL_SPEC_ARGUMENT) -> None:
    """Remove an installed version (refused for the active global version)."""

    context = get_context(ctx)
    spec = parse_spec(context, tool_version)
    messages = context.messages
    with handle_errors(context.logger):
        outcome = AcquisitionPipeline(context.settings).uninstall(spec.tool, spec.version)

    if outcome.status is UninstallStatus.NOT_INSTALLED:
        context.logger.warn(messages.render("uninstall_missing", tool=spec.tool, version=spec.version))
        return
    context.logger.ok(messages.render("uninstalled", tool=spec.tool, version=spec.version))
    if outcome.removed_shim is not None:
        context.logger.info(messages.render("removed_shim", tool=spec.tool, path=outcome.removed_shim))


def register(app: SortedTyper) -> None:
    app.command("uninstall")(uninstall_command)


__all__ = ["register", "uninstall_command"]
