"""
Server-side admin sessions.

The cookie only carries a random session id signed with the application
secret; the user binding and expiry live in this manager, so logout and
expiry take effect immediately regardless of what the client still holds.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer

SESSION_COOKIE_NAME = "noviq_session"
DEFAULT_SESSION_TTL_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class Session:
    session_id: str
    user_id: int
    expires_at: datetime


class SessionManager:
    def __init__(
        self,
        *,
        secret: str,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not secret:
            raise ValueError("SESSION_SECRET_REQUIRED")
        if ttl_seconds <= 0:
            raise ValueError("SESSION_TTL_SECONDS_INVALID")
        self._serializer = URLSafeTimedSerializer(secret, salt="noviq-session")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = Lock()
        self._sessions: dict[str, Session] = {}

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def open_session(self, *, user_id: int) -> str:
        """Create a session for ``user_id`` and return the signed cookie value."""
        session = Session(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            expires_at=self._clock() + self._ttl,
        )
        with self._lock:
            self._purge_expired()
            self._sessions[session.session_id] = session
        return self._serializer.dumps(session.session_id)

    def resolve(self, token: Optional[str]) -> Optional[int]:
        session_id = self._unsign(token)
        if session_id is None:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.expires_at <= self._clock():
                del self._sessions[session_id]
                return None
            return session.user_id

    def close_session(self, token: Optional[str]) -> None:
        session_id = self._unsign(token)
        if session_id is None:
            return
        with self._lock:
            self._sessions.pop(session_id, None)

    def _unsign(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            # SignatureExpired subclasses BadSignature.
            value = self._serializer.loads(token, max_age=self.ttl_seconds)
        except BadSignature:
            return None
        if not isinstance(value, str):
            return None
        return value

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, session in self._sessions.items() if session.expires_at <= now]
        for key in expired:
            del self._sessions[key]
