"""Storage for pending authorization grants."""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthorizationGrant:
    """Pending single-use authorization issued by the authorize endpoint."""
    code: str
    code_challenge: str
    code_challenge_method: str
    redirect_uri: str
    client_id: str
    scope: str
    expires_at: datetime
    state: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class GrantStore(ABC):
    """Keyed store of authorization grants with take-once semantics.

    Implementations must make `take` atomic: of any number of concurrent
    calls for the same code, at most one returns the grant.
    """

    @abstractmethod
    def put(self, code: str, grant: AuthorizationGrant) -> None:
        """Store a grant under its code."""

    @abstractmethod
    def take(self, code: str) -> Optional[AuthorizationGrant]:
        """Remove and return a live grant.

        Returns:
            The grant, or None if the code was never issued, was already
            taken, or has expired. The three cases are indistinguishable.
        """


class InMemoryGrantStore(GrantStore):
    """Thread-safe in-process grant store.

    Contents are lost on restart.
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._grants: Dict[str, AuthorizationGrant] = {}
        self._lock = threading.Lock()

    def put(self, code: str, grant: AuthorizationGrant) -> None:
        with self._lock:
            self._purge_expired_locked()
            self._grants[code] = grant

    def take(self, code: str) -> Optional[AuthorizationGrant]:
        with self._lock:
            grant = self._grants.pop(code, None)
        if grant is None or grant.is_expired(self._clock()):
            return None
        return grant

    def purge_expired(self) -> int:
        """Drop expired grants.

        Returns:
            Number of grants removed
        """
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [code for code, grant in self._grants.items() if grant.is_expired(now)]
        for code in expired:
            del self._grants[code]
        return len(expired)

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._grants

    def __len__(self) -> int:
        with self._lock:
            return len(self._grants)
