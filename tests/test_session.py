"""
Tests for the session model.

Tests cover:
- Expiry evaluated lazily against the clock
- Invalidation independent of expiry
- Refresh of refreshable and non-refreshable sessions
- Token masking
"""
from datetime import datetime, timedelta, timezone

import pytest

from vaultmux.exceptions import SessionExpiredError
from vaultmux.session import SessionState, TokenSession, utcnow


class TestTokenSession:
    """Tests for TokenSession state."""

    @pytest.mark.asyncio
    async def test_fresh_session_is_valid(self):
        session = TokenSession.with_ttl('tok', 'mock', 3600)
        assert session.token == 'tok'
        assert session.backend == 'mock'
        assert session.state is SessionState.AUTHENTICATED
        assert await session.is_valid() is True
        assert session.is_expired() is False

    @pytest.mark.asyncio
    async def test_non_expiring(self):
        """Test that sessions without expiry never expire."""
        session = TokenSession('tok', 'pass')
        assert session.expires_at is None
        assert session.is_expired(utcnow() + timedelta(days=3650)) is False
        assert await session.is_valid() is True

    @pytest.mark.asyncio
    async def test_expired_by_clock(self):
        """Test lazy, clock-based expiry."""
        session = TokenSession(
            'tok', 'mock', expires_at=utcnow() - timedelta(seconds=1)
        )
        assert session.is_expired() is True
        assert session.state is SessionState.EXPIRED
        assert await session.is_valid() is False

    def test_expiry_at_given_time(self):
        expires = utcnow() + timedelta(minutes=10)
        session = TokenSession('tok', 'mock', expires_at=expires)
        assert session.is_expired(expires - timedelta(seconds=1)) is False
        assert session.is_expired(expires) is True

    def test_naive_expiry_is_utc(self):
        session = TokenSession('tok', 'mock', expires_at=datetime(2000, 1, 1))
        assert session.expires_at.tzinfo is timezone.utc
        assert session.is_expired() is True

    @pytest.mark.asyncio
    async def test_invalidate(self):
        """Test invalidation before the clock elapses."""
        session = TokenSession.with_ttl('tok', 'mock', 3600)
        session.invalidate()
        assert session.is_expired() is False
        assert session.state is SessionState.INVALIDATED
        assert await session.is_valid() is False


class TestRefresh:
    """Tests for the single mutating operation."""

    @pytest.mark.asyncio
    async def test_refresh_extends_expiry(self):
        session = TokenSession(
            'tok', 'mock', expires_at=utcnow() - timedelta(seconds=5), ttl=60
        )
        assert session.state is SessionState.EXPIRED
        await session.refresh()
        assert session.state is SessionState.AUTHENTICATED
        assert session.expires_at > utcnow()

    @pytest.mark.asyncio
    async def test_refresh_clears_invalidation(self):
        session = TokenSession.with_ttl('tok', 'mock', 60, refreshable=True)
        session.invalidate()
        await session.refresh()
        assert session.state is SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_refresh_not_supported(self):
        """Test that non-refreshable sessions require re-authentication."""
        session = TokenSession.with_ttl('tok', 'bitwarden', 60)
        assert session.refreshable is False
        with pytest.raises(SessionExpiredError):
            await session.refresh()


class TestRepr:
    def test_token_masked(self):
        session = TokenSession.with_ttl('super-secret-token', 'mock', 60)
        text = repr(session)
        assert 'super-secret-token' not in text
        assert 'token=***' in text
        assert 'backend=mock' in text
