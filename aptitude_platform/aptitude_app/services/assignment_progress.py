"""Best-effort, per-instance progress entries for daily assignment runs."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

from cachetools import TTLCache
from flask import current_app

logger = logging.getLogger(__name__)

PHASE_PENDING = "pending"
PHASE_ASSIGNING = "assigning"
PHASE_COMPLETE = "complete"
PHASE_NOT_READY = "not_ready"
PHASE_FAILED = "failed"


class AssignmentProgress:
    """Latest progress entry per user; entries expire after ``ttl`` seconds.

    Nothing here raises to callers. A broken tracker only means a client
    polls a stale or missing entry.
    """

    def __init__(
        self,
        ttl: float = 300,
        maxsize: int = 10000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    def update(self, user_id: int, phase: str, done: int = 0, total: int = 0, message: str = "") -> None:
        entry = {"phase": phase, "done": int(done), "total": int(total), "message": message}
        try:
            with self._lock:
                self._entries[user_id] = entry
        except Exception:  # pragma: no cover - tracker failures never surface
            logger.exception("Failed to record assignment progress for user %s", user_id)

    def get(self, user_id: int) -> Optional[Dict]:
        try:
            with self._lock:
                entry = self._entries.get(user_id)
        except Exception:  # pragma: no cover
            logger.exception("Failed to read assignment progress for user %s", user_id)
            return None
        return dict(entry) if entry else None


def get_progress_tracker() -> AssignmentProgress:
    app = current_app
    tracker = app.extensions.get("assignment_progress")
    if tracker is None:
        tracker = AssignmentProgress(
            ttl=app.config.get("PROGRESS_TTL_SEC", 300),
            maxsize=app.config.get("PROGRESS_MAX_ENTRIES", 10000),
        )
        app.extensions["assignment_progress"] = tracker
    return tracker
