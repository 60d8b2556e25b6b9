"""Capabilities the ledger consumes from its host.

The host authenticates callers, decides who is privileged, supplies a
timestamp per call, and accepts diagnostic lines. These are passed into
the ledger explicitly rather than read from global state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

diagnostics_logger = logging.getLogger("tpledger.diagnostics")


@dataclass(frozen=True)
class AuthorizationContext:
    """Authenticated caller of one ledger invocation."""

    caller_id: str
    privileged: bool = False

    @classmethod
    def for_caller(cls, caller_id: str, controller_id: str) -> "AuthorizationContext":
        """Build a context whose privilege is derived from the controlling identity."""
        return cls(caller_id=caller_id, privileged=caller_id == controller_id)


class Clock(Protocol):
    def __call__(self) -> str: ...


DiagnosticSink = Callable[[str], None]


class BlockClock:
    """Nanosecond wall clock rendered as a decimal string.

    Strictly increasing across calls on one instance, even if the system
    clock stalls or steps backwards.
    """

    def __init__(self, time_ns: Callable[[], int] = time.time_ns):
        self._time_ns = time_ns
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            now = self._time_ns()
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return str(now)


@dataclass
class FixedClock:
    """Clock that always returns the same timestamp."""

    value: str = "0"

    def __call__(self) -> str:
        return self.value


class LoggingSink:
    """Diagnostic sink writing each line to the diagnostics logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or diagnostics_logger

    def __call__(self, line: str) -> None:
        self.logger.info(line)


@dataclass
class MemorySink:
    """Diagnostic sink that keeps every line in memory."""

    lines: list[str] = field(default_factory=list)

    def __call__(self, line: str) -> None:
        self.lines.append(line)
