"""Vaultmux — unified asynchronous interface for multi-vault secret management.

Quick start::

    import vaultmux
    from vaultmux import Config, BackendType, new_backend

    vaultmux.init()
    backend = new_backend(Config.new(BackendType.MOCK).with_prefix("myapp/"))
    await backend.init()
    session = await backend.authenticate()
    await backend.create_item("api-key", "sk-secret123", session)
    secret = await backend.get_notes("api-key", session)
"""
import logging
import threading

from .version import __version__
from .backend import Backend
from .cache import CachedSession, SessionCache
from .config import BackendType, Config
from .exceptions import (
    ErrorKind,
    VaultmuxError,
    NotFoundError,
    AlreadyExistsError,
    NotAuthenticatedError,
    SessionExpiredError,
    BackendNotInstalledError,
    BackendLockedError,
    PermissionDeniedError,
    NotSupportedError,
    InvalidItemNameError,
    BackendError,
    UnknownBackendError,
    CommandFailedError,
    BackendOperationError,
)
from .models import Item, ItemType
from .registry import (
    register_backend,
    unregister_backend,
    registered_backends,
    new_backend,
)
from .session import Session, SessionState, TokenSession
from .validation import validate_item_name, validate_location_name

logger = logging.getLogger("vaultmux")

_init_lock = threading.Lock()
_initialized = False


def init() -> None:
    """Register every bundled backend.

    Call once at startup; further calls are no-ops.
    """
    global _initialized
    with _init_lock:
        if _initialized:
            return
        from .backends import register_all
        register_all()
        _initialized = True
    logger.debug("Registered backends: %s", ", ".join(registered_backends()))


__all__ = [
    "__version__",
    "init",
    "Backend",
    "BackendType",
    "Config",
    "CachedSession",
    "SessionCache",
    "Session",
    "SessionState",
    "TokenSession",
    "Item",
    "ItemType",
    "register_backend",
    "unregister_backend",
    "registered_backends",
    "new_backend",
    "validate_item_name",
    "validate_location_name",
    "ErrorKind",
    "VaultmuxError",
    "NotFoundError",
    "AlreadyExistsError",
    "NotAuthenticatedError",
    "SessionExpiredError",
    "BackendNotInstalledError",
    "BackendLockedError",
    "PermissionDeniedError",
    "NotSupportedError",
    "InvalidItemNameError",
    "BackendError",
    "UnknownBackendError",
    "CommandFailedError",
    "BackendOperationError",
]
