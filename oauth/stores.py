"""In-memory stores for the HubSpot install flow.

Nothing here is persisted: a restart forgets pending installs and the
access token (unless HUBSPOT_ACCESS_TOKEN is configured).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

INSTALL_SESSION_TTL_SECONDS = 600  # 10 minutes


class TokenStore:
    """Holds the current HubSpot bearer token for the whole process.

    set() and clear() are the only writers. Readers get whatever token is
    current when they build their API client.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        if not token:
            raise ValueError("token must be a non-empty string")
        replaced = self._token is not None
        self._token = token
        logger.info(f"[OAUTH] Access token {'replaced' if replaced else 'stored'}")

    def clear(self) -> None:
        self._token = None

    @property
    def is_authorized(self) -> bool:
        return self._token is not None


@dataclass(frozen=True)
class InstallSession:
    code_verifier: str
    code_challenge: str
    created_at: float
    expires_at: float


class InstallSessionStore:
    """PKCE verifiers of pending installs, keyed by browser session id."""

    def __init__(self, ttl: float = INSTALL_SESSION_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, InstallSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def put(self, session_id: str, code_verifier: str, code_challenge: str) -> InstallSession:
        self.purge_expired()
        now = self._clock()
        entry = InstallSession(
            code_verifier=code_verifier,
            code_challenge=code_challenge,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self._sessions[session_id] = entry
        return entry

    def pop(self, session_id: Optional[str]) -> Optional[InstallSession]:
        """Remove and return a live entry. Expired entries are dropped and yield None."""
        if not session_id:
            return None
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            logger.info("[OAUTH] Install session expired")
            return None
        return entry

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._sessions.items() if now > entry.expires_at]
        for key in expired:
            del self._sessions[key]
        return len(expired)
