"""Apply settings to the logging and tracing globals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typedhttp.foundation.config import get_settings

from .logging import LogRenderer, configure_logging
from .tracing import Tracer, configure_tracing

if TYPE_CHECKING:
    from typedhttp.foundation.config import TypedHttpSettings

_LOG_FORMATS = {"text": "console", "json": "json", "none": "none"}


def configure_observability(settings: TypedHttpSettings | None = None) -> tuple[LogRenderer, Tracer | None]:
    """Configure logging and, when enabled, tracing from settings.

    Request functions never look up the global tracer: pass `get_tracer()` (or
    the returned tracer) as their `tracer` option to have requests traced.

    Example:
        >>> # TYPEDHTTP_LOG_FORMAT=json TYPEDHTTP_TRACING_ENABLED=true
        >>> renderer, tracer = configure_observability()
        >>> fetch = create_request_function(base_url="http://users.internal", tracer=tracer)

    Returns:
        The installed log renderer, and the global tracer or None when tracing is disabled
    """
    s = settings or get_settings()
    renderer = configure_logging(format=_LOG_FORMATS[s.logging.format], level=s.effective_log_level)
    tracer = configure_tracing(s.tracing.service_name, s.tracing.exporter) if s.tracing.enabled else None
    return renderer, tracer
