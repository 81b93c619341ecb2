"""Monotonic elapsed-time measurement for request breadcrumbs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class Timer:
    """Started on construction.

    Attributes:
        started_at: Wall-clock start (epoch seconds), used in request ids
    """

    started_at: float = field(default_factory=time.time)
    _start: float = field(default_factory=time.perf_counter, repr=False)

    @property
    def started_ms(self) -> int:
        return int(self.started_at * 1000)

    def elapsed_ms(self) -> float:
        """Milliseconds since start, to microsecond precision."""
        return round((time.perf_counter() - self._start) * 1000, 3)
