"""
Work sessions: per-user billing/planning state held in process memory.

Each session owns exactly one Cart and one CalculationHistory. Sessions do
not share state; the registry lock only guards the session map itself and
the per-session lock serializes mutations coming from concurrent requests
for the same session.
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..time_utils import utcnow, to_utc_z
from .cart_service import Cart
from .production_service import CalculationHistory


class SessionNotFound(Exception):
    """Unknown or expired work session token."""


@dataclass
class WorkSession:
    token: str
    cart: Cart
    history: CalculationHistory
    created_at: datetime = field(default_factory=utcnow)
    last_seen_at: datetime = field(default_factory=utcnow)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def touch(self) -> None:
        self.last_seen_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "session_id": self.token,
            "created_at": to_utc_z(self.created_at),
            "last_seen_at": to_utc_z(self.last_seen_at),
            "cart_items": len(self.cart),
            "calculations": len(self.history),
        }


class SessionRegistry:
    """Thread-safe map of token -> WorkSession."""

    def __init__(self, history_limit: int = 5, idle_timeout: timedelta | None = None):
        self.history_limit = history_limit
        self.idle_timeout = idle_timeout
        self._sessions: dict[str, WorkSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self) -> WorkSession:
        session = WorkSession(
            token=secrets.token_urlsafe(24),
            cart=Cart(),
            history=CalculationHistory(limit=self.history_limit),
        )
        with self._lock:
            self._sessions[session.token] = session
        return session

    def get(self, token: str | None) -> WorkSession:
        if not token:
            raise SessionNotFound("Work session required")
        with self._lock:
            session = self._sessions.get(token)
            if session is not None and self._is_expired(session):
                del self._sessions[token]
                session = None
        if session is None:
            raise SessionNotFound("Unknown or expired work session")
        session.touch()
        return session

    def close(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def purge_expired(self) -> int:
        with self._lock:
            expired = [t for t, s in self._sessions.items() if self._is_expired(s)]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def _is_expired(self, session: WorkSession) -> bool:
        if self.idle_timeout is None:
            return False
        return utcnow() - session.last_seen_at > self.idle_timeout
