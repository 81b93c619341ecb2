"""Settings read from `TYPEDHTTP_*` environment variables and `.env`.

They only steer logging and tracing. The request executor and the service
client take all of their behaviour as arguments and never consult the
environment.

    TYPEDHTTP_DEBUG=true                  force TRACE logging
    TYPEDHTTP_LOG_LEVEL=TRACE             TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL
    TYPEDHTTP_LOG_FORMAT=json             text, json or none
    TYPEDHTTP_TRACING_ENABLED=true
    TYPEDHTTP_TRACING_SERVICE_NAME=billing
    TYPEDHTTP_TRACING_EXPORTER=json       console, json, memory or noop
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelName = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "text", "none"]
SpanExporterName = Literal["console", "json", "memory", "noop"]


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: LogLevelName
    format: LogFormat


class TracingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool
    service_name: str
    exporter: SpanExporterName


class TypedHttpSettings(BaseSettings):
    """Flat environment view, grouped into `logging` and `tracing` sections."""

    model_config = SettingsConfigDict(env_prefix="TYPEDHTTP_", env_file=".env", extra="ignore")

    debug: bool = False
    log_level: LogLevelName = "INFO"
    log_format: LogFormat = "text"
    tracing_enabled: bool = False
    tracing_service_name: str = "typedhttp"
    tracing_exporter: SpanExporterName = "console"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings(level=self.log_level, format=self.log_format)

    @property
    def tracing(self) -> TracingSettings:
        return TracingSettings(
            enabled=self.tracing_enabled, service_name=self.tracing_service_name, exporter=self.tracing_exporter,
        )

    @property
    def effective_log_level(self) -> LogLevelName:
        """TRACE under debug, else the configured level."""
        return "TRACE" if self.debug else self.log_level


@lru_cache(maxsize=1)
def get_settings() -> TypedHttpSettings:
    return TypedHttpSettings()


def clear_settings_cache() -> None:
    """Make the next get_settings() re-read the environment."""
    get_settings.cache_clear()
