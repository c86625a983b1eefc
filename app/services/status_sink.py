"""
Where notification status transitions are recorded, keyed by correlation id
"""
import logging
import threading
import time
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Optional

from app.models import NotificationLog, NotificationStatus

logger = logging.getLogger(__name__)


class StatusSink:
    def update(self, correlation_id: str, status: NotificationStatus, detail: Optional[str] = None) -> None:
        raise NotImplementedError

    def get(self, correlation_id: str) -> Optional[dict]:
        raise NotImplementedError


class InMemoryStatusSink(StatusSink):
    """
    Process-local; enough for a single API process with the thread backend.

    Entries in a final status (SENT, FAILED) are kept for `retention_seconds`
    after they finish. The map never holds more than `max_entries`; past that
    the oldest entries are dropped whatever their status.
    """

    FINAL_STATUSES = (NotificationStatus.SENT, NotificationStatus.FAILED)

    def __init__(self, retention_seconds: float = 3600, max_entries: int = 10000,
                 clock: Callable[[], float] = time.time):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.retention_seconds = retention_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, dict]" = OrderedDict()
        # correlation id -> finish time, oldest first
        self._finished: "OrderedDict[str, float]" = OrderedDict()

    def update(self, correlation_id, status, detail=None):
        status = NotificationStatus(status)
        now = datetime.utcnow()
        with self._lock:
            entry = self._entries.setdefault(correlation_id, {
                "correlation_id": correlation_id,
                "created_at": now,
            })
            entry["status"] = status.value
            entry["detail"] = detail
            entry["updated_at"] = now
            if status in self.FINAL_STATUSES:
                self._finished[correlation_id] = self._clock()
                self._finished.move_to_end(correlation_id)
            else:
                self._finished.pop(correlation_id, None)
            self._evict()
        logger.debug(f"Notification {correlation_id} -> {status.value}")

    def get(self, correlation_id):
        with self._lock:
            self._evict()
            entry = self._entries.get(correlation_id)
            return dict(entry) if entry else None

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def _evict(self) -> None:
        """Caller holds the lock"""
        cutoff = self._clock() - self.retention_seconds
        while self._finished:
            correlation_id, finished_at = next(iter(self._finished.items()))
            if finished_at > cutoff:
                break
            self._finished.popitem(last=False)
            self._entries.pop(correlation_id, None)

        while len(self._entries) > self.max_entries:
            correlation_id, _ = self._entries.popitem(last=False)
            self._finished.pop(correlation_id, None)


class DatabaseStatusSink(StatusSink):
    """Rows in `notification_logs`, shared between API and Celery workers"""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def update(self, correlation_id, status, detail=None):
        db = self._session_factory()
        try:
            row = db.get(NotificationLog, correlation_id)
            if row is None:
                row = NotificationLog(correlation_id=correlation_id)
                db.add(row)
            row.status = NotificationStatus(status).value
            row.detail = detail[:500] if detail else None
            row.updated_at = datetime.utcnow()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        logger.debug(f"Notification {correlation_id} -> {NotificationStatus(status).value}")

    def get(self, correlation_id):
        db = self._session_factory()
        try:
            row = db.get(NotificationLog, correlation_id)
            if row is None:
                return None
            return {
                "correlation_id": row.correlation_id,
                "status": row.status,
                "detail": row.detail,
                "created_at": row.created_at,
                "updated_at": row.updated_at,
            }
        finally:
            db.close()
