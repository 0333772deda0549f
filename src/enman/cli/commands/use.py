# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``enman use`` command (per-directory binding)."""

from __future__ import annotations

from pathlib import Path

import typer

from ...bindings import read_local, write_local
from ...errors import ConfigurationError
from ..shared import (
    SERVICE_OPTION,
    TOOL_SPEC_ARGUMENT,
    get_context,
    handle_errors,
    install_with_feedback,
    parse_spec,
    switch_service,
)
from ..typer_ext import SortedTyper


def use_command(ctx: typer.Context, tool_version: TOOL_SPEC_ARGUMENT, service: SERVICE_OPTION = False) -> None:
    """Install if needed and bind the version to the current directory."""

    context = get_context(ctx)
    spec = parse_spec(context, tool_version)
    cwd = Path.cwd()

    try:
        marker = read_local(cwd, spec.tool)
    except ConfigurationError:
        marker = None
    previous = marker.version if marker is not None and marker.tool_name == spec.tool.value else None

    outcome = install_with_feedback(context, spec)
    if outcome.source_url is None:
        context.logger.info(context.messages.render("switching", tool=spec.tool, version=spec.version))
    if service:
        switch_service(context, spec.tool, previous, spec.version)

    with handle_errors(context.logger):
        write_local(cwd, spec.tool, spec.version)
    context.logger.ok(context.messages.render("set_local", tool=spec.tool, version=spec.version, path=cwd))


def register(app: SortedTyper) -> None:
    app.command("use")(use_command)


__all__ = ["register", "use_command"]
