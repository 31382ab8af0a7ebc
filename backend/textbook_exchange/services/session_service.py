# Overview: Token-based session lookup; maps opaque bearer tokens to identities.

"""
Session Token Management

Sessions are held in a process-local map with a fixed time-to-live. The rest
of the application only ever sees the `resolve(token)` capability, so the map
can be swapped for an external cache without touching the services that
depend on an authenticated identity.

- Cryptographically secure random tokens (32 bytes)
- Absolute timeout (SESSION_TTL_HOURS, default 24h)
- Expired tokens are evicted lazily on lookup and on every new login
- Revocable on logout
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..time_utils import utcnow


USER_TYPE_CUSTOMER = "Customer"
USER_TYPE_ADMIN = "Admin"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as seen by routes and services."""
    user_id: int
    username: str
    user_type: str

    @property
    def is_admin(self) -> bool:
        return self.user_type == USER_TYPE_ADMIN

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "user_type": self.user_type,
        }


def generate_token() -> str:
    """Return a 64-character hex token (32 bytes of entropy)."""
    return secrets.token_hex(32)


class InMemorySessionStore:
    """Thread-safe token -> Identity map with absolute expiry."""

    def __init__(self, ttl: timedelta = timedelta(hours=24)):
        self.ttl = ttl
        self._lock = threading.Lock()
        self._sessions: dict[str, tuple[Identity, datetime]] = {}

    def init_app(self, app) -> None:
        self.ttl = timedelta(hours=app.config.get("SESSION_TTL_HOURS", 24))
        with self._lock:
            self._sessions.clear()
        app.extensions["session_store"] = self

    def create(self, identity: Identity) -> str:
        token = generate_token()
        expires_at = utcnow() + self.ttl
        with self._lock:
            self._sessions[token] = (identity, expires_at)
        self.purge_expired()
        return token

    def resolve(self, token: str | None) -> Identity | None:
        """Return the identity for a live token, or None."""
        if not token:
            return None
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            identity, expires_at = entry
            if utcnow() > expires_at:
                del self._sessions[token]
                return None
            return identity

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def purge_expired(self) -> int:
        now = utcnow()
        with self._lock:
            expired = [t for t, (_, exp) in self._sessions.items() if now > exp]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
