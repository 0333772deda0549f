# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer helpers producing sorted, consistent help output."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Final, TypeVar

import typer
from click.core import Context, Parameter
from click.formatting import HelpFormatter
from typer.core import TyperCommand, TyperGroup

ARGUMENT_PARAM_TYPE: Final[str] = "argument"


class SortedTyperCommand(TyperCommand):
    """Typer command that lists options alphabetically in ``--help``."""

    def format_options(self, ctx: Context, formatter: HelpFormatter) -> None:
        argument_records: list[tuple[str, str]] = []
        option_entries: list[tuple[tuple[str, int], tuple[str, str]]] = []

        for index, param in enumerate(self.get_params(ctx)):
            record = param.get_help_record(ctx)
            if record is None:
                continue
            if getattr(param, "param_type_name", "") == ARGUMENT_PARAM_TYPE:
                argument_records.append(record)
                continue
            option_entries.append(((_primary_option_name(param), index), record))

        if argument_records:
            with formatter.section("Arguments"):
                formatter.write_dl(argument_records)
        if option_entries:
            with formatter.section("Options"):
                formatter.write_dl([record for _, record in sorted(option_entries, key=lambda item: item[0])])


class SortedTyperGroup(TyperGroup):
    """Typer group whose commands default to :class:`SortedTyperCommand`."""

    command_class = SortedTyperCommand

    def list_commands(self, ctx: Context) -> list[str]:
        return sorted(super().list_commands(ctx))


CommandCallback = TypeVar("CommandCallback", bound=Callable[..., Any])


class SortedTyper(typer.Typer):
    """Typer application emitting sorted command and option listings."""

    def __init__(self, *args: Any, cls: type[TyperGroup] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, cls=cls or SortedTyperGroup, **kwargs)

    def command(
        self,
        name: str | None = None,
        *,
        cls: type[TyperCommand] | None = None,
        **kwargs: Any,
    ) -> Callable[[CommandCallback], CommandCallback]:
        """Register a command that renders its options in sorted order."""

        return super().command(name, cls=cls or SortedTyperCommand, **kwargs)


def create_typer(*, cls: type[TyperGroup] | None = None, **kwargs: Any) -> SortedTyper:
    """Return a :class:`SortedTyper` configured with ``kwargs``."""

    return SortedTyper(cls=cls, **kwargs)


def _primary_option_name(param: Parameter) -> str:
    option_names: Iterable[str] = tuple(getattr(param, "opts", ())) + tuple(getattr(param, "secondary_opts", ()))
    long_names = [name for name in option_names if name.startswith("--")]
    candidate = long_names[0] if long_names else (next(iter(option_names), "") or param.name or "")
    return candidate.lstrip("-").lower()


__all__ = ["SortedTyper", "SortedTyperCommand", "SortedTyperGroup", "create_typer"]
