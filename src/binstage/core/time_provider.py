"""Time operations abstraction for testing.

Provisioning sleeps between fetch attempts; injecting a :class:`Clock`
lets tests run the retry loop without actually waiting.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Abstract time operations for dependency injection."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Sleep for the given number of seconds."""

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic timestamp in seconds."""


class RealClock(Clock):
    """Production implementation backed by the ``time`` module."""

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()
