# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Settings model with layered defaults, ``config.toml`` and environment overrides."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import __version__
from .errors import ConfigurationError
from .messages import MessageCatalog

ROOT_ENV: Final[str] = "ENMAN_ROOT"
DEFAULT_ROOT_NAME: Final[str] = ".enman"
SETTINGS_FILENAME: Final[str] = "config.toml"
SETTINGS_SECTION: Final[str] = "settings"
MESSAGES_SECTION: Final[str] = "messages"

ENV_OVERRIDES: Final[dict[str, str]] = {
    "ENMAN_CONNECT_TIMEOUT": "connect_timeout",
    "ENMAN_TOTAL_TIMEOUT": "total_timeout",
    "ENMAN_RETRY_LIMIT": "retry_limit",
    "ENMAN_RETRY_BACKOFF": "retry_backoff",
    "ENMAN_LOCK_TIMEOUT": "lock_timeout",
    "ENMAN_KEEP_STAGING": "keep_failed_staging",
}


def default_root() -> Path:
    return Path.home() / DEFAULT_ROOT_NAME


class Settings(BaseModel):
    """Immutable runtime configuration injected into every component."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    root: Path = Field(default_factory=default_root)
    connect_timeout: float = Field(default=30.0, gt=0)
    total_timeout: float = Field(default=300.0, gt=0)
    retry_limit: int = Field(default=3, ge=1)
    retry_backoff: float = Field(default=2.0, ge=0)
    user_agent: str = f"enman/{__version__}"
    lock_timeout: float | None = None
    readiness_timeout: float = Field(default=60.0, gt=0)
    readiness_interval: float = Field(default=0.5, gt=0)
    keep_failed_staging: bool = False
    use_emoji: bool = True
    messages: MessageCatalog = Field(default_factory=MessageCatalog.default)


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(
            f"Unable to read settings from {path}: {exc}",
            remedy=MessageCatalog.default().render("remedy_fix_settings", path=path),
        ) from exc
    return data


def _env_values(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for variable, field_name in ENV_OVERRIDES.items():
        raw = env.get(variable)
        if raw is None or raw == "":
            continue
        values[field_name] = raw
    return values


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Build :class:`Settings` from defaults, ``<root>/config.toml`` and ``ENMAN_*`` variables.

    Args:
        env: Environment mapping; defaults to :data:`os.environ`.
        overrides: Explicit values (e.g. CLI flags) applied last.

    Returns:
        Settings: Frozen settings object.

    Raises:
        ConfigurationError: If any layer supplies an invalid value.
    """

    environment = os.environ if env is None else env
    root_value = environment.get(ROOT_ENV)
    root = Path(root_value).expanduser() if root_value else default_root()
    settings_path = root / SETTINGS_FILENAME

    document = _read_settings_file(settings_path)
    file_values = document.get(SETTINGS_SECTION, {})
    message_overrides = document.get(MESSAGES_SECTION, {})
    if not isinstance(file_values, Mapping) or not isinstance(message_overrides, Mapping):
        raise ConfigurationError(
            f"[{SETTINGS_SECTION}] and [{MESSAGES_SECTION}] in {settings_path} must be tables",
            remedy=MessageCatalog.default().render("remedy_fix_settings", path=settings_path),
        )

    values: dict[str, Any] = {**file_values, **_env_values(environment), **dict(overrides or {})}
    values["root"] = root
    values["messages"] = MessageCatalog.default().with_overrides(message_overrides)
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid enman settings: {exc}",
            remedy=MessageCatalog.default().render("remedy_fix_settings", path=settings_path),
        ) from exc


__all__ = ["ENV_OVERRIDES", "ROOT_ENV", "SETTINGS_FILENAME", "Settings", "default_root", "load_settings"]
