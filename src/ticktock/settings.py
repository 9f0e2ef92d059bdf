"""
Centralized settings for ticktock.

All fields can be set through ``TICKTOCK_*`` environment variables (e.g.
``TICKTOCK_INTERVAL_SECONDS=0.5``) or a ``.env`` file in the working
directory. Unknown variables are ignored so a shared ``.env`` does not
break startup.

Examples:
    >>> from ticktock.settings import get_settings
    >>> settings = get_settings()
    >>> settings.policy
    <ErrorHandlingPolicy.IGNORE: 'ignore'>
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .enums import ErrorHandlingPolicy


class TickTockSettings(BaseSettings):
    """ticktock configuration.

    Fields
    ──────
    interval_seconds         : Seconds between ticks (strictly positive)
    policy                   : Response to a failing tick callback
    name                     : Scheduler name, used for the thread and logs
    dispose_timeout_seconds  : Bound on how long dispose() waits for an
                               in-flight tick (None waits indefinitely)
    log_level                : structlog log level
    log_format               : console | json
    """

    model_config = SettingsConfigDict(
        env_prefix="TICKTOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Scheduling ───────────────────────────────────────────────
    interval_seconds: float = Field(default=1.0, gt=0)
    policy: ErrorHandlingPolicy = Field(default=ErrorHandlingPolicy.IGNORE)
    name: str = Field(default="ticktock", min_length=1)
    dispose_timeout_seconds: float | None = Field(default=None, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")


_settings_cache: dict[str, TickTockSettings] = {}


def get_settings(*, _force_reload: bool = False) -> TickTockSettings:
    """Load, validate, and cache the process-wide settings.

    Args:
        _force_reload: Bypass cache and re-read the environment.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = TickTockSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["TickTockSettings", "get_settings", "clear_settings_cache"]
