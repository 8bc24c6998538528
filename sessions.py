"""Server-side session records.

The browser only ever holds an opaque token (inside the signed session
cookie); the record here is what makes it valid. Records expire a fixed
`max_age` seconds after login and are dropped on logout, on the first lookup
after expiry, or by the background sweeper.
"""
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from pydantic import BaseModel

import settings

logger = settings.get_logger(__name__)


class SessionRecord(BaseModel):
    token: str
    account_id: int
    created_at: datetime
    expires_at: datetime


class SessionStore:
    """Token -> SessionRecord mapping, empty at start and discarded at shutdown."""

    def __init__(self, max_age: int = settings.SESSION_MAX_AGE):
        self.max_age = max_age
        self._records: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def create(self, account_id: int) -> str:
        now = datetime.now(timezone.utc)
        token = secrets.token_urlsafe(32)
        record = SessionRecord(
            token=token,
            account_id=account_id,
            created_at=now,
            expires_at=now + timedelta(seconds=self.max_age),
        )
        with self._lock:
            self._records[token] = record
        return token

    def get(self, token: Optional[str], now: Optional[datetime] = None) -> Optional[SessionRecord]:
        if not token:
            return None
        now = now or datetime.now(timezone.utc)
        with self._lock:
            record = self._records.get(token)
            if record is None:
                return None
            if now >= record.expires_at:
                # session expired
                del self._records[token]
                return None
            return record

    def destroy(self, token: Optional[str]) -> bool:
        """Forget a session. Unknown or empty tokens are a no-op."""
        if not token:
            return False
        with self._lock:
            return self._records.pop(token, None) is not None

    def prune_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            expired = [t for t, r in self._records.items() if now >= r.expires_at]
            for token in expired:
                del self._records[token]
        return len(expired)


# Sweeper control
_prune_thread = None
_prune_stop_event = threading.Event()


def _prune_loop(store: SessionStore, poll_interval: int):
    while not _prune_stop_event.is_set():
        try:
            removed = store.prune_expired()
            if removed:
                logger.info("Pruned %d expired sessions", removed)
        except Exception:
            logger.exception("Session sweeper encountered an error during run.")
        _prune_stop_event.wait(poll_interval)


def start_pruning(store: SessionStore, poll_interval: int = settings.SESSION_PRUNE_INTERVAL) -> bool:
    """Start the background sweeper unless disabled (interval <= 0) or already running."""
    global _prune_thread
    if poll_interval <= 0:
        return False
    if _prune_thread and _prune_thread.is_alive():
        return False
    _prune_stop_event.clear()
    _prune_thread = threading.Thread(target=_prune_loop, args=(store, poll_interval), daemon=True)
    _prune_thread.start()
    return True


def stop_pruning():
    _prune_stop_event.set()
    if _prune_thread and _prune_thread.is_alive():
        _prune_thread.join(timeout=2)
