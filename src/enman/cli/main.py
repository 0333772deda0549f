# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console entry point: run the CLI, or dispatch when invoked through a shim."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from ..config import load_settings
from ..dispatch import ShimDispatcher, tool_from_invocation
from ..errors import EnmanError
from ..layout import EnmanLayout
from ..resolver import VersionResolver
from ..tools import ToolId
from .app import app
from .shared import CLILogger


def run_shim(tool: ToolId, args: Sequence[str]) -> int:
    """Dispatch ``tool`` with ``args``; errors are reported and mapped to exit status 1."""

    logger = CLILogger(use_emoji=True)
    try:
        settings = load_settings()
        logger = CLILogger(use_emoji=settings.use_emoji)
        layout = EnmanLayout(settings.root)
        dispatcher = ShimDispatcher(
            layout,
            VersionResolver(layout, settings.messages),
            messages=settings.messages,
        )
        return dispatcher.dispatch(tool, args)
    except EnmanError as exc:
        logger.fail(str(exc))
        if exc.remedy:
            logger.hint(exc.remedy)
        return exc.exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """Run enman; when started as ``node``/``java``/... behave as that tool."""

    arguments = list(sys.argv if argv is None else argv)
    tool = tool_from_invocation(arguments[0]) if arguments else None
    if tool is not None:
        raise SystemExit(run_shim(tool, arguments[1:]))
    app(args=arguments[1:], prog_name="enman")


__all__ = ["main", "run_shim"]
