"""
NoteKeeper — Session Store
==========================

What:  In-memory registry of signed-in browser sessions, each owning the
       tokens from sign-in and one NotesView.
Why:   The notes list is page-session state. It lives exactly as long as the
       session and is never persisted; a new session starts with an empty
       list and fetches on its first page load.
How:   session_id → UserSession dict. The cookie carries
       "<session_id>.<hex hmac-sha256(session_id)>", so a forged or edited
       cookie never reaches the dict lookup.

Expiry:
    A session expires SESSION_TTL_SECONDS after it was last used. Expired
    sessions are dropped when looked up and pruned whenever a session is created.
    At most SESSION_MAX_SESSIONS live at once; creating one more evicts the
    least recently seen. Cookieless clients (crawlers, monitors) with
    AUTH_ENABLED=false get a session per request, so the cap bounds memory.

Scope:
    Single process only. Running several workers needs sticky sessions.
"""

import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from notekeeper.config import settings
from notekeeper.services.auth_service import CognitoTokens, cognito_auth
from notekeeper.services.notes_api import notes_api
from notekeeper.services.notes_view import NotesView
from notekeeper.services.storage import object_storage

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"


@dataclass
class UserSession:
    """One signed-in browser."""
    session_id: str
    username: str
    view: Optional[NotesView] = None
    tokens: Optional[CognitoTokens] = None
    created_at: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)


class SessionStore:
    """In-memory session registry with signed cookie values."""

    def __init__(
        self,
        secret: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        max_sessions: Optional[int] = None,
    ):
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._max_sessions = max_sessions
        self._sessions: Dict[str, UserSession] = {}

    @property
    def secret(self) -> str:
        return self._secret or settings.session_secret

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds or settings.session_ttl_seconds

    @property
    def max_sessions(self) -> int:
        return self._max_sessions or settings.session_max_sessions

    def __len__(self) -> int:
        return len(self._sessions)

    # ── Cookie signing ────────────────────────────────────────────────────

    def _signature(self, session_id: str) -> str:
        return hmac.new(self.secret.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, session_id: str) -> str:
        """Cookie value for a session id."""
        return f"{session_id}.{self._signature(session_id)}"

    def unsign(self, cookie_value: str) -> Optional[str]:
        """Session id from a cookie value, or None if the signature does not match."""
        if not cookie_value:
            return None
        try:
            session_id, provided = cookie_value.rsplit(".", 1)
        except ValueError:
            return None
        if not session_id or not hmac.compare_digest(provided, self._signature(session_id)):
            return None
        return session_id

    # ── Session lifecycle ─────────────────────────────────────────────────

    def create(self, username: str, tokens: Optional[CognitoTokens] = None) -> UserSession:
        """
        Start a session with a fresh NotesView.

        The view's token provider reads this session's tokens, so a refresh
        performed for one request is seen by the next.
        """
        self._prune(time.time())
        self._evict_to(self.max_sessions - 1)
        session = UserSession(
            session_id=secrets.token_urlsafe(32),
            username=username,
            tokens=tokens,
        )
        session.view = NotesView(
            api=notes_api,
            storage=object_storage,
            token_provider=lambda: cognito_auth.access_token_for(session),
        )
        self._sessions[session.session_id] = session
        logger.info("Session started for %s (%d active)", username, len(self._sessions))
        return session

    def get(self, session_id: str) -> Optional[UserSession]:
        """Live session by id; touches it so its expiry moves forward."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = time.time()
        if now - session.last_seen > self.ttl_seconds:
            self.discard(session_id)
            logger.info("Session for %s expired", session.username)
            return None
        session.last_seen = now
        return session

    def from_cookie(self, cookie_value: str) -> Optional[UserSession]:
        session_id = self.unsign(cookie_value)
        if session_id is None:
            return None
        return self.get(session_id)

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def _prune(self, now: float) -> None:
        expired = [
            sid for sid, session in self._sessions.items()
            if now - session.last_seen > self.ttl_seconds
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Pruned %d expired sessions", len(expired))

    def _evict_to(self, limit: int) -> None:
        """Drop the least recently seen sessions until at most `limit` remain."""
        excess = len(self._sessions) - limit
        if excess <= 0:
            return
        oldest = sorted(self._sessions.values(), key=lambda s: s.last_seen)[:excess]
        for session in oldest:
            del self._sessions[session.session_id]
        logger.info("Evicted %d least recently seen sessions (limit %d)", excess, self.max_sessions)


# ── Singleton Instance ────────────────────────────────────────────────────
session_store = SessionStore()
