"""
Session Cache — durable, owner-only persistence of session tokens.

The cache file is a JSON document::

    {"token": "...", "created": "<iso8601>", "expires": "<iso8601>",
     "backend": "bitwarden"}

Security Note:
    The file is created with mode 0600. Its parent directory gets 0700 when
    vaultmux creates it or when it lives under the vaultmux cache dir.
    Never log the token; only log the backend name and the file path.
"""
import os
import stat
import asyncio
import logging
from pathlib import Path
from typing import Optional, Union
from datetime import datetime, timedelta, timezone

import orjson
from pydantic import BaseModel, ValidationError, field_validator

from . import conf
from .session import utcnow

logger = logging.getLogger("vaultmux.cache")

DIR_MODE = stat.S_IRWXU  # 0700
FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0600


class CachedSession(BaseModel):
    """Session record stored on disk."""

    token: str
    created: datetime
    expires: datetime
    backend: str

    @field_validator("created", "expires")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def __repr__(self) -> str:
        return (
            f"CachedSession(backend={self.backend!r}, "
            f"created={self.created.isoformat()}, "
            f"expires={self.expires.isoformat()}, token=***)"
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires

    def dumps(self) -> bytes:
        return orjson.dumps(
            self.model_dump(mode="json"),
            option=orjson.OPT_INDENT_2
        )

    @classmethod
    def loads(cls, data: Union[bytes, str]) -> "CachedSession":
        return cls.model_validate(orjson.loads(data))


class SessionCache:
    """Persist one session token at ``path``.

    Args:
        path: Cache file location.
        ttl: Lifetime (seconds) given to every saved record.
    """

    def __init__(self, path: Union[str, Path], ttl: int = 1800):
        self.path = Path(path).expanduser()
        self.ttl = int(ttl)

    def __repr__(self) -> str:
        return f"<SessionCache path={self.path} ttl={self.ttl}>"

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _ensure_dir(self) -> None:
        parent = self.path.parent
        created = not parent.is_dir()
        parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        # only tighten directories we own, never a shared one like /tmp
        if created or parent.is_relative_to(conf.CACHE_DIR):
            os.chmod(parent, DIR_MODE)

    def _read(self) -> Optional[bytes]:
        try:
            with open(self.path, "rb") as fp:
                return fp.read()
        except FileNotFoundError:
            return None

    def _write(self, data: bytes) -> None:
        self._ensure_dir()
        fd = os.open(
            self.path,
            os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
            FILE_MODE
        )
        # an existing file keeps its old mode through O_CREAT
        os.fchmod(fd, FILE_MODE)
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
            fp.flush()

    def _remove(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self) -> Optional[CachedSession]:
        """Return the cached session, or None.

        Missing, corrupt and expired files all read as "no cached session";
        corrupt and expired files are removed.
        """
        data = await asyncio.to_thread(self._read)
        if data is None:
            return None
        try:
            cached = CachedSession.loads(data)
        except (orjson.JSONDecodeError, ValidationError, TypeError, ValueError):
            logger.warning(
                "Discarding corrupt session cache file %s", self.path
            )
            await asyncio.to_thread(self._remove)
            return None
        if cached.is_expired():
            logger.debug(
                "Cached session for backend=%s expired at %s",
                cached.backend, cached.expires.isoformat()
            )
            await asyncio.to_thread(self._remove)
            return None
        return cached

    async def save(self, token: str, backend: str) -> CachedSession:
        """Write ``token`` with ``now + ttl`` as expiry.

        Returns:
            The record that was written.
        """
        now = utcnow()
        cached = CachedSession(
            token=token,
            created=now,
            expires=now + timedelta(seconds=self.ttl),
            backend=backend,
        )
        await self.store(cached)
        return cached

    async def store(self, cached: CachedSession) -> None:
        """Write an existing record as-is."""
        await asyncio.to_thread(self._write, cached.dumps())
        logger.debug(
            "Saved session cache for backend=%s to %s", cached.backend, self.path
        )

    async def clear(self) -> None:
        """Remove the cache file; missing files are not an error."""
        await asyncio.to_thread(self._remove)
        logger.debug("Cleared session cache %s", self.path)
