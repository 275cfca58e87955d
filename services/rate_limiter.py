"""
Per-client fixed-window rate limiter.

State is a dict keyed by client identifier (usually the remote address),
guarded by a lock. It is advisory: a restart forgets every counter. Idle
entries are evicted by sweep(), which the scheduler runs periodically.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class _Visitor:
    tokens: int
    last_reset: float


class RateLimiter:
    def __init__(self, rate: int = 100, window: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.rate = rate
        self.window = window
        self.clock = clock
        self._visitors: Dict[str, _Visitor] = {}
        self._lock = threading.Lock()

    def allow(self, client: str) -> bool:
        now = self.clock()
        with self._lock:
            visitor = self._visitors.get(client)
            if visitor is None:
                visitor = self._visitors[client] = _Visitor(tokens=self.rate, last_reset=now)
            elif now - visitor.last_reset > self.window:
                visitor.tokens = self.rate
                visitor.last_reset = now

            if visitor.tokens > 0:
                visitor.tokens -= 1
                return True
            return False

    def sweep(self) -> int:
        """Drop clients idle for more than two windows. Returns how many."""
        now = self.clock()
        with self._lock:
            stale = [c for c, v in self._visitors.items() if now - v.last_reset > self.window * 2]
            for client in stale:
                del self._visitors[client]
        return len(stale)

    def __len__(self):
        with self._lock:
            return len(self._visitors)
