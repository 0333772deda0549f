# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``enman list`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ...acquisition import AcquisitionPipeline
from ...bindings import global_bindings
from ...catalog import DEFAULT_LIMIT, RemoteCatalog, catalog_tools
from ...errors import ConfigurationError
from ...resolver import VersionResolver
from ...sources import registered_tools
from ...tools import TOOL_DESCRIPTIONS, ToolId
from ..shared import CLIContext, get_context, handle_errors
from ..typer_ext import SortedTyper

TOOL_ARGUMENT = Annotated[
    str | None,
    typer.Argument(metavar="TOOL", help="Tool whose installed (or, with --remote, published) versions are listed."),
]
REMOTE_OPTION = Annotated[
    bool,
    typer.Option("--remote", "-r", help="List versions published upstream instead of installed ones."),
]
AVAILABLE_OPTION = Annotated[
    bool,
    typer.Option("--available", "-a", help="List the tools enman can install."),
]
LIMIT_OPTION = Annotated[
    int,
    typer.Option("--limit", min=1, help="Maximum number of remote versions to show."),
]


def _list_available(context: CLIContext) -> None:
    messages = context.messages
    remote_capable = set(catalog_tools())
    context.logger.echo(messages.render("available_header"))
    for tool_id in registered_tools():
        description = TOOL_DESCRIPTIONS.get(tool_id.value, "")
        suffix = "" if tool_id in remote_capable else " [no remote listing]"
        context.logger.echo(f"  {tool_id.value:<8} {description}{suffix}")
    context.logger.echo("")
    context.logger.echo(messages.render("available_footer"))


def _list_remote(context: CLIContext, tool: str, limit: int) -> None:
    with handle_errors(context.logger):
        tool_id = ToolId.parse(tool)
        versions = RemoteCatalog.from_settings(context.settings).versions(tool_id, limit=limit)
    context.logger.echo(context.messages.render("remote_header", tool=tool_id))
    for entry in versions:
        context.logger.echo(f"  {entry}")


def list_command(
    ctx: typer.Context,
    tool: TOOL_ARGUMENT = None,
    remote: REMOTE_OPTION = False,
    available: AVAILABLE_OPTION = False,
    limit: LIMIT_OPTION = DEFAULT_LIMIT,
) -> None:
    """Show installed versions of TOOL, or the global version of every tool.

    With --remote, list the versions of TOOL published upstream; with
    --available, list the tools enman can install.
    """

    context = get_context(ctx)
    if available:
        if tool is not None or remote:
            raise typer.BadParameter("--available takes no TOOL and cannot be combined with --remote")
        _list_available(context)
        return
    if remote:
        if tool is None:
            raise typer.BadParameter("--remote needs a TOOL", param_hint="TOOL")
        _list_remote(context, tool, limit)
        return

    layout = context.layout
    with handle_errors(context.logger):
        if tool is None:
            bindings = global_bindings(layout)
            if not bindings:
                context.logger.info(f"No global versions set in {layout.global_dir}")
                return
            for bound_tool, version in sorted(bindings.items()):
                context.logger.echo(f"{bound_tool}@{version}")
            return

        tool_id = ToolId.parse(tool)
        versions = AcquisitionPipeline(context.settings).installed_versions(tool_id)
        if not versions:
            context.logger.info(f"No versions of {tool_id} installed")
            return
        try:
            active = VersionResolver(layout, context.messages).find(tool_id, Path.cwd())
        except ConfigurationError:
            active = None

    for version in versions:
        marker = "*" if active is not None and active.version == version else " "
        suffix = f" ({active.scope})" if marker == "*" and active is not None else ""
        context.logger.echo(f"{marker} {version}{suffix}")


def register(app: SortedTyper) -> None:
    app.command("list")(list_command)


__all__ = ["list_command", "register"]
