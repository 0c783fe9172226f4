from __future__ import annotations

import threading
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pagelens.exceptions import AlreadyActiveError, CapacityExceededError

from .models import ActiveCrawl


class ActiveCrawlRegistry:
    """Thread-safe set of crawl job ids currently executing.

    Membership is the admission gate: an id is registered at most once and
    the number of registered ids never exceeds `max_active`. Every read and
    write happens under a single lock.
    """

    def __init__(self, *, max_active: int):
        if max_active <= 0:
            raise ValueError("max_active must be > 0")
        self._lock = threading.Lock()
        self._max_active = max_active
        self._active: Dict[str, ActiveCrawl] = {}

    @property
    def max_active(self) -> int:
        return self._max_active

    def register(self, job_id: str) -> ActiveCrawl:
        """Register `job_id` or raise AlreadyActiveError / CapacityExceededError."""
        with self._lock:
            if job_id in self._active:
                raise AlreadyActiveError(job_id)
            if len(self._active) >= self._max_active:
                raise CapacityExceededError(job_id, self._max_active)
            rec = ActiveCrawl(job_id=job_id, admitted_at=datetime.now(timezone.utc))
            self._active[job_id] = rec
            return rec

    def release(self, job_id: str, admission: Optional[ActiveCrawl] = None) -> bool:
        """Remove `job_id`. Returns False if it was not registered.

        When `admission` is given the id is only removed if it still belongs to
        that admission, so a task whose job was cancelled and re-admitted does
        not free the newer task's slot.
        """
        with self._lock:
            current = self._active.get(job_id)
            if current is None:
                return False
            if admission is not None and current is not admission:
                return False
            del self._active[job_id]
            return True

    def is_active(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._active

    def size(self) -> int:
        with self._lock:
            return len(self._active)

    def list_active(self) -> List[Dict]:
        with self._lock:
            return [asdict(r) for r in self._active.values()]
