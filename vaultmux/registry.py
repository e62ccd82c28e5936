"""
Backend Registry — process-wide map of backend identifier to constructor.

Each bundled backend registers itself through ``vaultmux.init()``; third
party backends call :func:`register_backend` directly, or use it as a
decorator::

    @register_backend("mystore")
    class MyStoreBackend(Backend):
        ...

Registration is idempotent: registering an identifier again replaces the
previous constructor.
"""
import logging
import threading
from typing import Callable, Optional, Union

from .backend import Backend
from .config import BackendType, Config
from .exceptions import BackendError, UnknownBackendError, VaultmuxError

logger = logging.getLogger("vaultmux.registry")

BackendFactory = Callable[[Config], Backend]

BACKENDS: dict[str, BackendFactory] = {}
_lock = threading.Lock()


def _key(identifier: Union[BackendType, str]) -> str:
    if isinstance(identifier, BackendType):
        return identifier.value
    return str(identifier).strip().lower()


def register_backend(
    identifier: Union[BackendType, str],
    factory: Optional[BackendFactory] = None
):
    """Register a backend constructor.

    Args:
        identifier: Backend identifier (must equal the backend's ``name``).
        factory: Callable taking a Config and returning a Backend. When
            omitted, returns a decorator.
    """
    if factory is None:
        def decorator(cls):
            register_backend(identifier, cls)
            return cls
        return decorator
    key = _key(identifier)
    with _lock:
        previous = BACKENDS.get(key)
        BACKENDS[key] = factory
    if previous is not None and previous is not factory:
        logger.debug("Replaced backend factory for %s", key)
    return factory


def unregister_backend(identifier: Union[BackendType, str]) -> None:
    with _lock:
        BACKENDS.pop(_key(identifier), None)


def is_registered(identifier: Union[BackendType, str]) -> bool:
    with _lock:
        return _key(identifier) in BACKENDS


def registered_backends() -> list[str]:
    """Sorted identifiers of every registered backend."""
    with _lock:
        return sorted(BACKENDS)


def get_backend(identifier: Union[BackendType, str]) -> BackendFactory:
    """Return the constructor registered for ``identifier``.

    Raises:
        UnknownBackendError: If nothing is registered under it.
    """
    key = _key(identifier)
    with _lock:
        factory = BACKENDS.get(key)
        available = list(BACKENDS)
    if factory is None:
        raise UnknownBackendError(key, available)
    return factory


def new_backend(config: Config) -> Backend:
    """Instantiate the backend selected by ``config.backend``.

    The backend still has to be initialized with ``await backend.init()``.

    Raises:
        UnknownBackendError: The backend was not installed/registered.
        BackendError: The constructor failed.
    """
    factory = get_backend(config.backend)
    try:
        backend = factory(config)
    except VaultmuxError:
        raise
    except Exception as err:
        raise BackendError(
            f"cannot create backend {config.backend}: {err}"
        ) from err
    logger.debug("Created backend %s", config.backend)
    return backend
