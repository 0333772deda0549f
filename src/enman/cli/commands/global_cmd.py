# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``enman global`` command."""

from __future__ import annotations

import typer

from ...bindings import read_global, write_global
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


def global_command(ctx: typer.Context, tool_version: TOOL_SPEC_ARGUMENT, service: SERVICE_OPTION = False) -> None:
    """Install if needed and bind the version globally."""

    context = get_context(ctx)
    spec = parse_spec(context, tool_version)

    try:
        previous = read_global(context.layout, spec.tool)
    except ConfigurationError:
        # A malformed binding is about to be overwritten.
        previous = None

    outcome = install_with_feedback(context, spec)
    if outcome.source_url is None:
        context.logger.info(context.messages.render("switching", tool=spec.tool, version=spec.version))
    if service:
        switch_service(context, spec.tool, previous, spec.version)

    with handle_errors(context.logger):
        write_global(context.layout, spec.tool, spec.version)
    context.logger.ok(context.messages.render("set_global", tool=spec.tool, version=spec.version))


def register(app: SortedTyper) -> None:
    app.command("global")(global_command)


__all__ = ["global_command", "register"]
