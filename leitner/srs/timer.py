"""Countdown timers for the USTM and STM waiting periods.

Timers are polled rather than calling back: the session reads ``finished``
when it evaluates the phase table, so expiry is always observed on the
session's own thread of control.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class PhaseTimer(Protocol):
    """What the session needs from a timer."""

    @property
    def finished(self) -> bool: ...

    @property
    def paused(self) -> bool: ...

    @property
    def remaining(self) -> float: ...

    def start(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...


class Countdown:
    """A pausable countdown.

    ``finished`` is True whenever the countdown is not running: before the
    first start, after ``stop()``, and once the duration has elapsed.
    """

    def __init__(
        self,
        duration_seconds: float,
        name: str = "timer",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
        self.duration = float(duration_seconds)
        self.name = name
        self._clock = clock
        self._running = False
        self._started_at = 0.0
        self._paused_at: float | None = None
        self._paused_total = 0.0

    def __repr__(self) -> str:
        return f"Countdown({self.name!r}, remaining={self.remaining:.1f}s, finished={self.finished})"

    @property
    def elapsed(self) -> float:
        if not self._running:
            return 0.0
        end = self._paused_at if self._paused_at is not None else self._clock()
        return max(0.0, end - self._started_at - self._paused_total)

    @property
    def remaining(self) -> float:
        if not self._running:
            return 0.0
        return max(0.0, self.duration - self.elapsed)

    @property
    def paused(self) -> bool:
        return self._running and self._paused_at is not None

    @property
    def finished(self) -> bool:
        if self._running and self.remaining <= 0:
            self._running = False
            self._paused_at = None
            logger.debug("%s elapsed", self.name)
        return not self._running

    def start(self) -> None:
        """Start counting down; a running countdown keeps going."""
        if not self.finished:
            return
        self._running = True
        self._started_at = self._clock()
        self._paused_at = None
        self._paused_total = 0.0
        logger.debug("%s started for %.0fs", self.name, self.duration)

    def pause(self) -> None:
        if self._running and self._paused_at is None:
            self._paused_at = self._clock()

    def resume(self) -> None:
        if self._paused_at is not None:
            self._paused_total += self._clock() - self._paused_at
            self._paused_at = None

    def stop(self) -> None:
        if self._running:
            logger.debug("%s stopped with %.0fs left", self.name, self.remaining)
        self._running = False
        self._paused_at = None
