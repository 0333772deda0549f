# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (context, output, error handling, installs)."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated
from urllib.parse import urlparse

import typer
from rich.progress import BarColumn, DownloadColumn, Progress, TaskID, TextColumn, TransferSpeedColumn

from ..acquisition import AcquisitionPipeline, InstallOutcome, InstallStatus
from ..config import Settings, load_settings
from ..console import detect_tty, get_console_manager
from ..download import ProgressCallback, SourceDownloader
from ..errors import ConfigurationError, EnmanError
from ..layout import EnmanLayout
from ..logging import fail, hint, info, ok, warn
from ..messages import MessageCatalog
from ..platform import detect_platform
from ..services import ServiceController, supports_service
from ..shims import create_shim, manager_entry_point
from ..tools import ToolId, ToolSpec, parse_tool_spec

TOOL_SPEC_ARGUMENT = Annotated[
    str,
    typer.Argument(metavar="TOOL@VERSION", help="Tool and version, e.g. node@20.10.0."),
]
SERVICE_OPTION = Annotated[
    bool,
    typer.Option(
        "--service/--no-service",
        help="Stop the previous database server and start this version's server.",
    ),
]


@dataclass(slots=True)
class CLILogger:
    """Adapter around :mod:`enman.logging` honouring the emoji preference."""

    use_emoji: bool

    def info(self, message: str) -> None:
        info(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        ok(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        warn(message, use_emoji=self.use_emoji)

    def fail(self, message: str) -> None:
        fail(message, use_emoji=self.use_emoji)

    def hint(self, message: str) -> None:
        hint(message, use_emoji=self.use_emoji)

    def echo(self, message: str) -> None:
        typer.echo(message)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Per-invocation state shared by every command."""

    settings: Settings
    logger: CLILogger
    verbose: bool = False

    @property
    def layout(self) -> EnmanLayout:
        return EnmanLayout(self.settings.root)

    @property
    def messages(self) -> MessageCatalog:
        return self.settings.messages


@contextmanager
def handle_errors(logger: CLILogger) -> Iterator[None]:
    """Report :class:`EnmanError` with its remedy and exit with the error's code."""

    try:
        yield
    except EnmanError as exc:
        logger.fail(str(exc))
        if exc.remedy:
            logger.hint(exc.remedy)
        raise typer.Exit(code=exc.exit_code) from exc


def build_context(*, emoji: bool | None, verbose: bool) -> CLIContext:
    """Load settings and return the command context; settings errors exit with status 1."""

    overrides = {} if emoji is None else {"use_emoji": emoji}
    with handle_errors(CLILogger(use_emoji=emoji if emoji is not None else True)):
        settings = load_settings(overrides=overrides)
    return CLIContext(settings=settings, logger=CLILogger(use_emoji=settings.use_emoji), verbose=verbose)


def get_context(ctx: typer.Context) -> CLIContext:
    root = ctx.find_root()
    if not isinstance(root.obj, CLIContext):
        root.obj = build_context(emoji=None, verbose=False)
    return root.obj


def parse_spec(context: CLIContext, value: str) -> ToolSpec:
    with handle_errors(context.logger):
        return parse_tool_spec(value)


@contextmanager
def download_progress(use_emoji: bool) -> Iterator[ProgressCallback]:
    """Yield a downloader progress callback rendering a Rich progress bar on stderr."""

    interactive = detect_tty(sys.stderr)
    console = get_console_manager().get(color=interactive, emoji=use_emoji, stderr=True)
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
        transient=True,
        disable=not interactive,
    ) as progress:
        tasks: dict[str, TaskID] = {}

        def on_progress(url: str, downloaded: int, total: int | None) -> None:
            task = tasks.get(url)
            if task is None:
                label = Path(urlparse(url).path).name or url
                task = progress.add_task(label, total=total)
                tasks[url] = task
            progress.update(task, completed=downloaded, total=total)

        yield on_progress


def install_with_feedback(context: CLIContext, spec: ToolSpec) -> InstallOutcome:
    """Install ``spec`` if needed, report progress and warnings, and ensure its shim."""

    logger = context.logger
    messages = context.messages
    with handle_errors(logger), download_progress(context.settings.use_emoji) as on_progress:
        downloader = SourceDownloader.from_settings(context.settings, on_progress=on_progress)
        pipeline = AcquisitionPipeline(context.settings, downloader=downloader)
        if not pipeline.layout.is_installed(spec.tool, spec.version, pipeline.platform()):
            logger.info(messages.render("installing", tool=spec.tool, version=spec.version))
        outcome = pipeline.install(spec.tool, spec.version)

    if outcome.status is InstallStatus.INSTALLED:
        logger.ok(
            messages.render(
                "installed",
                tool=spec.tool,
                version=spec.version,
                path=context.layout.version_dir(spec.tool, spec.version),
            ),
        )
    for warning in outcome.warnings:
        logger.warn(str(warning))
    ensure_shim(context, spec.tool)
    return outcome


def ensure_shim(context: CLIContext, tool: ToolId) -> Path | None:
    """Create the shim for ``tool``; a missing entry point is reported as a warning."""

    try:
        return create_shim(context.layout, tool, detect_platform(), manager_entry_point())
    except (ConfigurationError, OSError) as exc:
        context.logger.warn(f"Could not create the {tool} shim: {exc}")
        return None


def switch_service(context: CLIContext, tool: ToolId, previous: str | None, current: str) -> None:
    """Restart the database server for ``current``; every failure is reported as a warning."""

    if not supports_service(tool):
        context.logger.warn(f"{tool} has no background service; ignoring --service")
        return
    controller = ServiceController(
        context.layout,
        detect_platform(),
        timeout=context.settings.readiness_timeout,
        interval=context.settings.readiness_interval,
    )
    problems = controller.switch(tool, previous, current)
    for problem in problems:
        context.logger.warn(str(problem))
    if not problems:
        context.logger.ok(f"{tool}@{current} server is ready")


def shims_on_path(layout: EnmanLayout) -> bool:
    entries = os.environ.get("PATH", "").split(os.pathsep)
    return any(Path(entry).expanduser() == layout.shims_dir for entry in entries if entry)


__all__ = [
    "CLIContext",
    "CLILogger",
    "SERVICE_OPTION",
    "TOOL_SPEC_ARGUMENT",
    "build_context",
    "download_progress",
    "ensure_shim",
    "get_context",
    "handle_errors",
    "install_with_feedback",
    "parse_spec",
    "shims_on_path",
    "switch_service",
]
