# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of ``enman config`` subcommands for the project ``.enmanrc``."""

from __future__ import annotations

from pathlib import Path

import typer

from ...bindings import init_project_config, read_project_config
from ...layout import EnmanLayout
from ...tools import ToolSpec
from ..shared import get_context, handle_errors, install_with_feedback
from ..typer_ext import SortedTyper, create_typer

config_app = create_typer(help="Inspect or create the project .enmanrc file.", no_args_is_help=True)


@config_app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Print the tools configured in ./.enmanrc."""

    context = get_context(ctx)
    path = EnmanLayout.project_config(Path.cwd())
    if not path.is_file():
        context.logger.info(f"Config file not found: {path}")
        return
    with handle_errors(context.logger):
        mapping = read_project_config(path)
    if not mapping:
        context.logger.info(f"No tools configured in {path}")
        return
    context.logger.echo(f"Tools configured in {path}:")
    for tool, version in sorted(mapping.items()):
        context.logger.echo(f"  {tool}: {version}")


@config_app.command("init")
def init_command(ctx: typer.Context) -> None:
    """Create a commented ./.enmanrc template."""

    context = get_context(ctx)
    with handle_errors(context.logger):
        path, created = init_project_config(Path.cwd())
    if created:
        context.logger.ok(f"Created new config file: {path}")
    else:
        context.logger.info(f"Config file already exists: {path}")


@config_app.command("apply")
def apply_command(ctx: typer.Context) -> None:
    """Install every tool version listed in ./.enmanrc."""

    context = get_context(ctx)
    path = EnmanLayout.project_config(Path.cwd())
    if not path.is_file():
        context.logger.info(f"Config file not found: {path}")
        return
    with handle_errors(context.logger):
        mapping = read_project_config(path)
    for tool, version in sorted(mapping.items()):
        install_with_feedback(context, ToolSpec(tool=tool, version=version))
    context.logger.ok(f"Applied {len(mapping)} tool version(s) from {path}")


def register(app: SortedTyper) -> None:
    app.add_typer(config_app, name="config")


__all__ = ["config_app", "register"]
