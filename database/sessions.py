"""SPOC session tokens.

Routes only talk to the `SessionStore` interface. The in-memory store lives for
the lifetime of the process; running more than one instance needs a shared
implementation (e.g. a Mongo or Redis backed store) behind the same interface.
"""

import asyncio
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import config
from logging_config import logger

# Timer-based eviction fires this long after the expiry instant
EVICTION_MARGIN_SECONDS = 5


@dataclass(frozen=True)
class SessionRecord:
    token: str
    expires_at: float
    spoc_id: Optional[str] = None

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class SessionStore:
    """Interface for issuing and checking session tokens."""

    def generate(self, ttl_seconds: Optional[int] = None, spoc_id: Optional[str] = None) -> SessionRecord:
        raise NotImplementedError

    def get(self, token: Optional[str]) -> Optional[SessionRecord]:
        """Return the record for a valid, unexpired token, otherwise None."""
        raise NotImplementedError

    def revoke(self, token: str) -> None:
        raise NotImplementedError

    def purge_expired(self) -> int:
        raise NotImplementedError

    def is_valid(self, token: Optional[str]) -> bool:
        return self.get(token) is not None


class InMemorySessionStore(SessionStore):
    def __init__(self, default_ttl_seconds: int = None, clock: Callable[[], float] = time.time) -> None:
        self.default_ttl_seconds = default_ttl_seconds or config.SPOC_TOKEN_TTL_SECONDS
        self._clock = clock
        self._records: Dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def generate(self, ttl_seconds: Optional[int] = None, spoc_id: Optional[str] = None) -> SessionRecord:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        token = secrets.token_hex(20)
        record = SessionRecord(token=token, expires_at=self._clock() + ttl, spoc_id=spoc_id)
        self._records[token] = record
        self._schedule_eviction(token, ttl + EVICTION_MARGIN_SECONDS)
        logger.debug(f"Issued SPOC session {token[:8]}... (spoc_id={spoc_id}, ttl={ttl}s)")
        return record

    def get(self, token: Optional[str]) -> Optional[SessionRecord]:
        if not token:
            return None
        record = self._records.get(token)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            self._records.pop(token, None)
            return None
        return record

    def revoke(self, token: str) -> None:
        self._records.pop(token, None)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [token for token, record in self._records.items() if record.is_expired(now)]
        for token in expired:
            del self._records[token]
        return len(expired)

    def _schedule_eviction(self, token: str, delay: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop outside request handling; lazy eviction in get() still applies
            return
        loop.call_later(delay, self.revoke, token)


# Store shared by the API
session_store: SessionStore = InMemorySessionStore()


def get_session_store() -> SessionStore:
    return session_store
