"""In-memory registry of per-session dashboard services.

Nothing outlives the process: each browser session gets its own
:class:`DashboardService`, and the least recently used sessions are evicted
once the registry is full.
"""
from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Callable

from carbondash.core.services.dashboard import DashboardService


class DashboardRegistry:
    """Hands out one dashboard service per session id."""

    def __init__(self, factory: Callable[[], DashboardService], max_sessions: int = 1000) -> None:
        if max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        self._factory = factory
        self._max_sessions = max_sessions
        self._services: "OrderedDict[str, DashboardService]" = OrderedDict()
        self._lock = Lock()

    def get(self, session_id: str) -> DashboardService:
        if not session_id:
            raise ValueError("session_id must be provided")
        with self._lock:
            service = self._services.get(session_id)
            if service is None:
                service = self._factory()
                self._services[session_id] = service
                while len(self._services) > self._max_sessions:
                    self._services.popitem(last=False)
            else:
                self._services.move_to_end(session_id)
            return service

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)


__all__ = ["DashboardRegistry"]
