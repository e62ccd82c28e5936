"""
Mock backend — complete in-memory implementation of the backend contract.

Used to verify the contract and to test code built on vaultmux. Supports
error injection and token revocation::

    backend = MockBackend()
    await backend.init()
    session = await backend.authenticate()
    backend.get_error = PermissionDeniedError("api-key")
    await backend.get_notes("api-key", session)   # raises PermissionDeniedError

Options:
    delete_missing_ok: "true" makes deleting an absent item succeed
        (default: raise NotFoundError).
"""
import secrets
import logging
from typing import Optional
from datetime import datetime, timezone

from ..backend import Backend
from ..cache import CachedSession
from ..config import BackendType, Config
from ..exceptions import AlreadyExistsError, NotFoundError
from ..models import Item, ItemType
from ..registry import register_backend
from ..session import Session, TokenSession
from ..utils.locks import ReadWriteLock

logger = logging.getLogger("vaultmux.backends.mock")


class MockBackend(Backend):
    """In-memory backend guarded by a reader/writer lock.

    Attributes ``init_error``, ``auth_error``, ``get_error``,
    ``create_error``, ``update_error``, ``delete_error`` and ``list_error``
    hold an exception to raise from the matching operation.
    """

    def __init__(self, config: Optional[Config] = None):
        super().__init__(config or Config.new(BackendType.MOCK))
        self._items: dict[str, Item] = {}
        self._locations: set[str] = set()
        self._revoked: set[str] = set()
        self._lock = ReadWriteLock()
        self.delete_missing_ok = self.config.get_option(
            "delete_missing_ok", "false"
        ).lower() in ("1", "true", "yes")
        self.auth_calls: int = 0
        self.init_error: Optional[Exception] = None
        self.auth_error: Optional[Exception] = None
        self.get_error: Optional[Exception] = None
        self.create_error: Optional[Exception] = None
        self.update_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None

    @property
    def name(self) -> str:
        return BackendType.MOCK.value

    # ------------------------------------------------------------------
    # Fixture helpers
    # ------------------------------------------------------------------

    async def set_item(
        self,
        name: str,
        value: str,
        location: Optional[str] = None,
        item_type: ItemType = ItemType.SECURE_NOTE
    ) -> Item:
        """Seed an item directly (prefix applied, no session needed)."""
        item = Item.new_secure_note(self._prefixed(name), value)
        item = item.model_copy(update={"location": location, "item_type": item_type})
        async with self._lock.write():
            self._items[item.name] = item
            if location:
                self._locations.add(location)
        return item

    async def set_location(self, name: str) -> None:
        async with self._lock.write():
            self._locations.add(name)

    def revoke(self, session: Session) -> None:
        """Revoke a token server-side; the session keeps its expiry."""
        self._revoked.add(session.token)
        logger.debug("Revoked a mock session token")

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _init(self) -> None:
        if self.init_error is not None:
            raise self.init_error

    async def _check_authenticated(self) -> bool:
        return self.auth_error is None

    async def _authenticate(self) -> Session:
        if self.auth_error is not None:
            raise self.auth_error
        self.auth_calls += 1
        return TokenSession.with_ttl(
            secrets.token_hex(16),
            self.name,
            self.config.session_ttl,
            refreshable=True
        )

    def _restore_session(self, cached: CachedSession) -> Session:
        return TokenSession(
            cached.token,
            self.name,
            expires_at=cached.expires,
            ttl=self.config.session_ttl
        )

    async def _validate_session(self, session: Session) -> bool:
        return session.token not in self._revoked

    async def _get_item(self, name: str, session: Session) -> Item:
        if self.get_error is not None:
            raise self.get_error
        async with self._lock.read():
            item = self._items.get(name)
            if item is None:
                raise NotFoundError(name)
            return item.model_copy(deep=True)

    async def _item_exists(self, name: str, session: Session) -> bool:
        if self.get_error is not None:
            raise self.get_error
        async with self._lock.read():
            return name in self._items

    async def _list_items(self, session: Session) -> list[Item]:
        if self.list_error is not None:
            raise self.list_error
        async with self._lock.read():
            return [item.model_copy(deep=True) for item in self._items.values()]

    async def _create_item(self, name: str, value: str, session: Session) -> None:
        if self.create_error is not None:
            raise self.create_error
        async with self._lock.write():
            if name in self._items:
                raise AlreadyExistsError(name)
            self._items[name] = Item.new_secure_note(name, value)

    async def _update_item(self, name: str, value: str, session: Session) -> None:
        if self.update_error is not None:
            raise self.update_error
        async with self._lock.write():
            item = self._items.get(name)
            if item is None:
                raise NotFoundError(name)
            self._items[name] = item.model_copy(
                update={"notes": value, "modified": datetime.now(timezone.utc)}
            )

    async def _delete_item(self, name: str, session: Session) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        async with self._lock.write():
            if self._items.pop(name, None) is None:
                raise NotFoundError(name)

    async def _list_locations(self, session: Session) -> list[str]:
        async with self._lock.read():
            return sorted(self._locations)

    async def _location_exists(self, name: str, session: Session) -> bool:
        async with self._lock.read():
            return name in self._locations

    async def _create_location(self, name: str, session: Session) -> None:
        async with self._lock.write():
            if name in self._locations:
                raise AlreadyExistsError(name)
            self._locations.add(name)

    async def _list_items_in_location(
        self,
        location_type: str,
        location: str,
        session: Session
    ) -> list[Item]:
        async with self._lock.read():
            return [
                item.model_copy(deep=True)
                for item in self._items.values()
                if item.location == location
            ]


def register() -> None:
    """Register the mock backend with the factory."""
    register_backend(BackendType.MOCK, MockBackend)
