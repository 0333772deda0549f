# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared options."""

from __future__ import annotations

from typing import Annotated

import typer

from .. import __version__
from ..logging import configure_verbose_logging
from ..messages import DEFAULT_TEMPLATES
from .commands import register_commands
from .shared import build_context
from .typer_ext import create_typer

EMOJI_OPTION = Annotated[
    bool | None,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji in CLI output."),
]
VERBOSE_OPTION = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Print diagnostic logging to stderr."),
]


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"enman {__version__}")
        raise typer.Exit()


VERSION_OPTION = Annotated[
    bool,
    typer.Option("--version", callback=_print_version, is_eager=True, help="Show the version and exit."),
]

app = create_typer(help=DEFAULT_TEMPLATES["app_description"], no_args_is_help=True)


@app.callback()
def main_callback(
    ctx: typer.Context,
    emoji: EMOJI_OPTION = None,
    verbose: VERBOSE_OPTION = False,
    version: VERSION_OPTION = False,
) -> None:
    """Install, switch and run versions of node, java, python, mysql and mariadb."""

    del version
    configure_verbose_logging(verbose)
    ctx.obj = build_context(emoji=emoji, verbose=verbose)


register_commands(app)

__all__ = ["app"]
