"""
Vaultmux Sessions — authenticated capability handles.

A session is created by ``Backend.authenticate()`` and passed explicitly to
every backend operation; backends never keep one as internal state.

Lifecycle::

    AUTHENTICATED --(clock passes expires_at)--> EXPIRED
    AUTHENTICATED --(validate_session fails)---> INVALIDATED
    EXPIRED/INVALIDATED --(refresh, if supported)--> AUTHENTICATED

Expiry is evaluated lazily on every check; there is no background timer.

Security Note:
    The token is never included in ``repr()`` or log records.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from datetime import datetime, timedelta, timezone

from .exceptions import SessionExpiredError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, Enum):
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    INVALIDATED = "invalidated"


class Session(ABC):
    """Authenticated handle to a backend."""

    def __init__(self, backend: str):
        self._backend = backend
        self._invalidated: bool = False

    @property
    def backend(self) -> str:
        """Identifier of the backend that issued this session."""
        return self._backend

    @property
    @abstractmethod
    def token(self) -> str:
        """Opaque session token (may be empty for stateless backends)."""

    @property
    @abstractmethod
    def expires_at(self) -> Optional[datetime]:
        """Expiry time in UTC, or None for non-expiring sessions."""

    @abstractmethod
    async def refresh(self) -> None:
        """Renew the session.

        Raises:
            SessionExpiredError: If the session cannot be refreshed and the
                caller must authenticate again.
        """

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        expires = self.expires_at
        if expires is None:
            return False
        return (now or utcnow()) >= expires

    @property
    def state(self) -> SessionState:
        if self._invalidated:
            return SessionState.INVALIDATED
        if self.is_expired():
            return SessionState.EXPIRED
        return SessionState.AUTHENTICATED

    async def is_valid(self) -> bool:
        """Passive liveness check (clock and invalidation flag only)."""
        return self.state is SessionState.AUTHENTICATED

    def invalidate(self) -> None:
        """Mark the session as revoked even though it has not expired."""
        self._invalidated = True

    def __repr__(self) -> str:
        expires = self.expires_at.isoformat() if self.expires_at else None
        return (
            f"<{type(self).__name__} backend={self.backend} "
            f"state={self.state.value} expires={expires} token=***>"
        )


class TokenSession(Session):
    """Token session with an optional expiry.

    Args:
        token: Session token.
        backend: Identifier of the issuing backend.
        expires_at: Absolute expiry (UTC). None means never expires.
        ttl: Lifetime in seconds; when given the session is refreshable and
            ``refresh()`` pushes the expiry to ``now + ttl``.
    """

    def __init__(
        self,
        token: str,
        backend: str,
        expires_at: Optional[datetime] = None,
        ttl: Optional[int] = None,
    ):
        super().__init__(backend)
        self._token = token
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        self._expires_at = expires_at
        self._ttl = ttl

    @classmethod
    def with_ttl(
        cls,
        token: str,
        backend: str,
        ttl: int,
        refreshable: bool = False
    ) -> "TokenSession":
        """Create a session expiring ``ttl`` seconds from now."""
        return cls(
            token,
            backend,
            expires_at=utcnow() + timedelta(seconds=ttl),
            ttl=ttl if refreshable else None,
        )

    @property
    def token(self) -> str:
        return self._token

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._expires_at

    @property
    def refreshable(self) -> bool:
        return self._ttl is not None

    async def refresh(self) -> None:
        if self._ttl is None:
            raise SessionExpiredError(
                f"{self.backend} sessions cannot be refreshed, authenticate again"
            )
        self._expires_at = utcnow() + timedelta(seconds=self._ttl)
        self._invalidated = False
