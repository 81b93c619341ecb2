"""Configuration management using pydantic-settings."""

from .settings import (
    LoggingSettings,
    TracingSettings,
    TypedHttpSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "LoggingSettings",
    "TracingSettings",
    "TypedHttpSettings",
    "clear_settings_cache",
    "get_settings",
]
