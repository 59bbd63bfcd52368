"""
In-memory stores for OAuth sessions and Polar access credentials.

Nothing here survives a restart. Sessions expire after a fixed window and
credentials are dropped once the lifetime Polar declared for them has passed,
so abandoned entries do not pile up.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    state: str
    user_id: str
    created_at: datetime


@dataclass(frozen=True)
class Credential:
    user_id: str
    access_token: str
    token_type: str
    expires_in: Optional[int]
    acquired_at: datetime

    @property
    def expires_at(self) -> Optional[datetime]:
        if not self.expires_in:
            return None
        return self.acquired_at + timedelta(seconds=self.expires_in)

    def is_expired(self, now: datetime) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and now >= expires_at

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"


class SessionStore:
    """Pending authorizations keyed by their state nonce."""

    def __init__(self, ttl: timedelta = timedelta(minutes=10), clock: Clock = utcnow):
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, Session] = {}

    def create(self, state: str, user_id: str) -> Session:
        session = Session(state=state, user_id=user_id, created_at=self._clock())
        with self._lock:
            self._items[state] = session
        return session

    def get(self, state: Optional[str]) -> Optional[Session]:
        if not state:
            return None
        with self._lock:
            session = self._items.get(state)
            if session is None:
                return None
            if self._clock() - session.created_at > self._ttl:
                self._items.pop(state, None)
                logger.info(f"Discarded expired OAuth session for user {session.user_id}")
                return None
            return session

    def pop(self, state: Optional[str]) -> Optional[Session]:
        """Remove and return a live session. Only one caller can win a given state."""
        if not state:
            return None
        with self._lock:
            session = self._items.pop(state, None)
        if session is None:
            return None
        if self._clock() - session.created_at > self._ttl:
            logger.info(f"Discarded expired OAuth session for user {session.user_id}")
            return None
        return session

    def restore(self, session: Session) -> None:
        """Put back a popped session, keeping its original creation time."""
        with self._lock:
            self._items.setdefault(session.state, session)

    def cleanup(self) -> int:
        """Drop every expired session, returning how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, s in self._items.items() if now - s.created_at > self._ttl]
            for k in expired:
                self._items.pop(k, None)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class TokenStore:
    """Latest Polar credential per user id."""

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, Credential] = {}

    def now(self) -> datetime:
        return self._clock()

    def put(self, credential: Credential) -> None:
        with self._lock:
            self._items[credential.user_id] = credential

    def get(self, user_id: str) -> Optional[Credential]:
        with self._lock:
            credential = self._items.get(user_id)
            if credential is None:
                return None
            if credential.is_expired(self._clock()):
                self._items.pop(user_id, None)
                logger.info(f"Access token for user {user_id} expired, user must re-authorize")
                return None
            return credential

    def __contains__(self, user_id: str) -> bool:
        return self.get(user_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
