"""
Backend Contract — the capability surface every vault backend implements.

:class:`Backend` carries the behaviour shared by all variants:

- names are validated once, before any backend code sees them;
- the session passed to each call is checked for liveness before dispatch;
- the configured prefix is prepended on write and stripped on read;
- failures outside the error taxonomy are wrapped in
  :class:`~vaultmux.exceptions.BackendOperationError`;
- ``authenticate()`` reuses the session cache when it is enabled.

Concrete backends implement the protected ``_hooks``, which always receive
fully prefixed names::

    class MyBackend(Backend):
        @property
        def name(self) -> str:
            return "mine"

        async def _authenticate(self) -> Session:
            ...

        async def _get_item(self, name: str, session: Session) -> Item:
            ...

Sessions are never stored on the backend; one instance serves any number of
concurrent callers, each with its own session.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Optional
from collections.abc import Iterator

from .cache import CachedSession, SessionCache
from .config import Config
from .exceptions import (
    AlreadyExistsError,
    BackendError,
    BackendOperationError,
    NotAuthenticatedError,
    NotFoundError,
    NotSupportedError,
    SessionExpiredError,
    VaultmuxError,
)
from .models import Item
from .session import Session, SessionState, TokenSession
from .utils.process import StatusCache
from .validation import validate_item_name, validate_location_name

logger = logging.getLogger("vaultmux.backend")


class Backend(ABC):
    """Base class for secret storage backends.

    Args:
        config: Backend configuration (prefix, options, cache settings).

    Attributes:
        delete_missing_ok: Per-backend policy for ``delete_item`` on an absent
            name. When True the core reports success, otherwise the
            ``NotFoundError`` raised by the backend reaches the caller.
    """

    delete_missing_ok: bool = False

    def __init__(self, config: Config):
        self.config = config
        self.prefix: str = config.prefix
        self._initialized: bool = False
        self._status = StatusCache()
        self._session_cache: Optional[SessionCache] = None
        if config.cache_enabled:
            self._session_cache = SessionCache(
                config.session_path, config.session_ttl
            )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} name={self.name} prefix={self.prefix!r} "
            f"initialized={self._initialized}>"
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable lowercase identifier (e.g. ``"bitwarden"``)."""

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def session_cache(self) -> Optional[SessionCache]:
        return self._session_cache

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Prepare the backend; must run before any other operation.

        Raises:
            BackendNotInstalledError: A required CLI tool or SDK is missing.
            BackendError: Any other setup failure.
        """
        if self._initialized:
            return
        try:
            await self._init()
        except VaultmuxError:
            raise
        except Exception as err:
            raise BackendError(
                f"{self.name}: initialization failed: {err}"
            ) from err
        self._initialized = True
        logger.info("Backend %s initialized", self.name)

    async def close(self) -> None:
        """Release backend resources. Calling it twice is harmless."""
        if not self._initialized:
            return
        try:
            await self._close()
        finally:
            self._initialized = False
            self._status.invalidate()
        logger.debug("Backend %s closed", self.name)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def is_authenticated(self) -> bool:
        """Cheap probe of the backend's authentication state; never raises."""
        if not self._initialized:
            return False
        cached = self._status.get()
        if cached is not None:
            return cached
        try:
            status = await self._check_authenticated()
        except Exception as err:
            logger.debug("%s: authentication probe failed: %s", self.name, err)
            status = False
        self._status.set(status)
        return status

    async def authenticate(self) -> Session:
        """Return a live session, reusing the session cache when enabled.

        Raises:
            NotAuthenticatedError: Credentials were rejected.
            BackendLockedError: The vault is locked and cannot be unlocked.
            BackendNotInstalledError: The backend tool disappeared.
            BackendOperationError: The backend failed outside the taxonomy
                (SDK or network error).
        """
        self._require_init()
        cached = await self._load_cached_session()
        if cached is not None:
            logger.debug("Reusing cached session for backend=%s", self.name)
            return self._restore_session(cached)
        with self._operation("authenticate", "*"):
            session = await self._authenticate()
        if not isinstance(session, Session):
            raise BackendError(f"{self.name}: authenticate() did not return a Session")
        await self._save_session(session)
        self._status.set(True)
        logger.info("Authenticated with backend=%s", self.name)
        return session

    async def clear_session_cache(self) -> None:
        """Forget any persisted session for this backend."""
        if self._session_cache is not None:
            await self._session_cache.clear()
        self._status.invalidate()

    async def get_session_token(self, session: Session) -> str:
        """Raw token of a live session."""
        await self._require_session(session)
        return session.token

    async def validate_session(self, session: Session) -> bool:
        """Actively re-check a session against the backend.

        A session that fails the check while its expiry has not elapsed is
        moved to ``SessionState.INVALIDATED``.

        Raises:
            BackendOperationError: The check itself failed (SDK or network
                error); the session is left untouched.
        """
        self._require_init()
        if session.backend != self.name:
            return False
        if session.state is not SessionState.AUTHENTICATED:
            return False
        try:
            valid = await self._validate_session(session)
        except VaultmuxError as err:
            logger.debug("%s: session validation failed: %s", self.name, err)
            valid = False
        except Exception as err:
            logger.error(
                "%s: session validation failed: %s", self.name, err
            )
            raise BackendOperationError(
                self.name, "validate_session", "*", err
            ) from err
        if not valid:
            session.invalidate()
            self._status.invalidate()
            logger.info("Session for backend=%s was invalidated", self.name)
        return valid

    async def sync(self, session: Session) -> None:
        """Synchronize with the remote store (no-op for most backends)."""
        self._require_init()
        await self._require_session(session)
        with self._operation("sync", "*"):
            await self._sync(session)

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------

    async def get_item(self, name: str, session: Session) -> Item:
        """Full item, including notes.

        Raises:
            NotFoundError: The item does not exist.
        """
        full_name = await self._prepare(name, session)
        with self._operation("get", name, full_name):
            item = await self._get_item(full_name, session)
        return self._strip(item)

    async def get_notes(self, name: str, session: Session) -> str:
        """Only the secret payload of an item."""
        full_name = await self._prepare(name, session)
        with self._operation("get_notes", name, full_name):
            return await self._get_notes(full_name, session)

    async def item_exists(self, name: str, session: Session) -> bool:
        full_name = await self._prepare(name, session)
        with self._operation("exists", name, full_name):
            return await self._item_exists(full_name, session)

    async def list_items(self, session: Session) -> list[Item]:
        """Every item under the prefix, prefix stripped and without notes.

        Use :meth:`get_notes` to fetch the payload of a listed item.
        """
        self._require_init()
        await self._require_session(session)
        with self._operation("list", "*"):
            items = await self._list_items(session)
        return [
            self._strip(item).without_notes()
            for item in items if self._owns(item.name)
        ]

    async def create_item(self, name: str, value: str, session: Session) -> None:
        """Store a new secret.

        Raises:
            InvalidItemNameError: The name failed validation.
            SessionExpiredError: The session is no longer live.
            AlreadyExistsError: An item with this name exists.
        """
        full_name = await self._prepare(name, session)
        with self._operation("create", name, full_name):
            await self._create_item(full_name, value, session)
        logger.debug("%s: created item %s", self.name, name)

    async def update_item(self, name: str, value: str, session: Session) -> None:
        full_name = await self._prepare(name, session)
        with self._operation("update", name, full_name):
            await self._update_item(full_name, value, session)
        logger.debug("%s: updated item %s", self.name, name)

    async def delete_item(self, name: str, session: Session) -> None:
        """Remove an item; see ``delete_missing_ok`` for absent names."""
        full_name = await self._prepare(name, session)
        with self._operation("delete", name, full_name):
            try:
                await self._delete_item(full_name, session)
            except NotFoundError:
                if not self.delete_missing_ok:
                    raise
                logger.debug("%s: delete of absent item %s ignored", self.name, name)
                return
        logger.debug("%s: deleted item %s", self.name, name)

    # ------------------------------------------------------------------
    # Locations (optional capability)
    # ------------------------------------------------------------------

    async def list_locations(self, session: Session) -> list[str]:
        """Folder/vault names.

        Raises:
            NotSupportedError: The backend has no notion of locations.
        """
        self._require_init()
        await self._require_session(session)
        with self._operation("list_locations", "*"):
            return await self._list_locations(session)

    async def location_exists(self, name: str, session: Session) -> bool:
        await self._prepare_location(name, session)
        with self._operation("location_exists", name):
            return await self._location_exists(name, session)

    async def create_location(self, name: str, session: Session) -> None:
        await self._prepare_location(name, session)
        with self._operation("create_location", name):
            await self._create_location(name, session)
        logger.debug("%s: created location %s", self.name, name)

    async def list_items_in_location(
        self,
        location_type: str,
        location: str,
        session: Session
    ) -> list[Item]:
        """Items under the prefix stored in ``location``, without notes.

        Args:
            location_type: Backend flavour of location ("folder", "vault",
                "directory").
            location: Location name.
        """
        await self._prepare_location(location, session)
        with self._operation("list_location", location):
            items = await self._list_items_in_location(
                location_type, location, session
            )
        return [
            self._strip(item).without_notes()
            for item in items if self._owns(item.name)
        ]

    # ------------------------------------------------------------------
    # Hooks for concrete backends
    # ------------------------------------------------------------------

    async def _init(self) -> None:
        """Check tools/SDK clients. Default: nothing to prepare."""

    async def _close(self) -> None:
        pass

    async def _check_authenticated(self) -> bool:
        return True

    @abstractmethod
    async def _authenticate(self) -> Session:
        """Perform a full authentication and return a new session."""

    def _restore_session(self, cached: CachedSession) -> Session:
        """Wrap a cached record into a session."""
        return TokenSession(cached.token, self.name, expires_at=cached.expires)

    async def _validate_session(self, session: Session) -> bool:
        return await session.is_valid()

    async def _sync(self, session: Session) -> None:
        pass

    @abstractmethod
    async def _get_item(self, name: str, session: Session) -> Item:
        ...

    async def _get_notes(self, name: str, session: Session) -> str:
        item = await self._get_item(name, session)
        if item.notes is None:
            raise NotFoundError(name)
        return item.notes

    async def _item_exists(self, name: str, session: Session) -> bool:
        try:
            await self._get_item(name, session)
        except NotFoundError:
            return False
        return True

    @abstractmethod
    async def _list_items(self, session: Session) -> list[Item]:
        ...

    @abstractmethod
    async def _create_item(self, name: str, value: str, session: Session) -> None:
        ...

    @abstractmethod
    async def _update_item(self, name: str, value: str, session: Session) -> None:
        ...

    @abstractmethod
    async def _delete_item(self, name: str, session: Session) -> None:
        ...

    async def _list_locations(self, session: Session) -> list[str]:
        raise NotSupportedError(f"{self.name}: list_locations")

    async def _location_exists(self, name: str, session: Session) -> bool:
        raise NotSupportedError(f"{self.name}: location_exists")

    async def _create_location(self, name: str, session: Session) -> None:
        raise NotSupportedError(f"{self.name}: create_location")

    async def _list_items_in_location(
        self,
        location_type: str,
        location: str,
        session: Session
    ) -> list[Item]:
        raise NotSupportedError(f"{self.name}: list_items_in_location")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_init(self) -> None:
        if not self._initialized:
            raise BackendError(
                f"{self.name}: backend not initialized, call init() first"
            )

    async def _require_session(self, session: Session) -> None:
        if not isinstance(session, Session):
            raise NotAuthenticatedError("a session from authenticate() is required")
        if session.backend != self.name:
            raise NotAuthenticatedError(
                f"session was issued by {session.backend}, not {self.name}"
            )
        if not await session.is_valid():
            if session.state is SessionState.INVALIDATED:
                raise SessionExpiredError(f"{self.name} session was invalidated")
            raise SessionExpiredError(f"{self.name} session expired")

    async def _prepare(self, name: str, session: Session) -> str:
        validate_item_name(name)
        self._require_init()
        await self._require_session(session)
        return self._prefixed(name)

    async def _prepare_location(self, name: str, session: Session) -> None:
        validate_location_name(name)
        self._require_init()
        await self._require_session(session)

    def _prefixed(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def _owns(self, full_name: str) -> bool:
        return full_name.startswith(self.prefix)

    def _strip(self, item: Item) -> Item:
        if self.prefix and item.name.startswith(self.prefix):
            return item.renamed(item.name[len(self.prefix):])
        return item

    async def _load_cached_session(self) -> Optional[CachedSession]:
        cache = self._session_cache
        if cache is None:
            return None
        try:
            cached = await cache.load()
        except OSError as err:
            logger.warning(
                "Cannot read session cache for backend=%s: %s", self.name, err
            )
            return None
        if cached is not None and cached.backend != self.name:
            logger.debug(
                "Ignoring cached session issued by backend=%s", cached.backend
            )
            return None
        return cached

    async def _save_session(self, session: Session) -> None:
        cache = self._session_cache
        if cache is None or not session.token:
            return
        try:
            await cache.save(session.token, self.name)
        except OSError as err:
            logger.warning(
                "Cannot write session cache for backend=%s: %s", self.name, err
            )

    @contextmanager
    def _operation(
        self,
        operation: str,
        name: str,
        full_name: Optional[str] = None
    ) -> Iterator[None]:
        """Translate failures raised by a hook.

        Taxonomy errors pass through, with prefixed names rewritten back to
        the caller's name; anything else becomes a BackendOperationError.
        """
        full_name = full_name or name
        try:
            yield
        except (NotFoundError, AlreadyExistsError) as err:
            if err.name == full_name and full_name != name:
                raise type(err)(name) from err
            raise
        except VaultmuxError:
            raise
        except Exception as err:
            logger.error(
                "%s: %s %s failed: %s", self.name, operation, name, err
            )
            raise BackendOperationError(self.name, operation, name, err) from err
