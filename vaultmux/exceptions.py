"""
Vaultmux Errors — closed taxonomy shared by every backend.

Every failing operation raises a subclass of :class:`VaultmuxError`; callers
react on ``err.kind`` (or the class) instead of matching message strings.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Semantic failure kinds."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_AUTHENTICATED = "not_authenticated"
    SESSION_EXPIRED = "session_expired"
    BACKEND_NOT_INSTALLED = "backend_not_installed"
    BACKEND_LOCKED = "backend_locked"
    PERMISSION_DENIED = "permission_denied"
    NOT_SUPPORTED = "not_supported"
    INVALID_ITEM_NAME = "invalid_item_name"
    OPERATION_FAILED = "operation_failed"
    BACKEND_ERROR = "backend_error"


class VaultmuxError(Exception):
    """Base class for all vaultmux failures."""

    kind: ErrorKind = ErrorKind.BACKEND_ERROR

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class NotFoundError(VaultmuxError):
    """Item or location does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"item not found: {name}")


class AlreadyExistsError(VaultmuxError):
    """Item or location already exists."""

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"item already exists: {name}")


class NotAuthenticatedError(VaultmuxError):
    kind = ErrorKind.NOT_AUTHENTICATED

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        msg = "not authenticated"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class SessionExpiredError(VaultmuxError):
    kind = ErrorKind.SESSION_EXPIRED

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        msg = "session expired"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class BackendNotInstalledError(VaultmuxError):
    """A required CLI tool or SDK is not available."""

    kind = ErrorKind.BACKEND_NOT_INSTALLED

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"backend CLI not installed: {tool}")


class BackendLockedError(VaultmuxError):
    kind = ErrorKind.BACKEND_LOCKED

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        msg = "vault is locked"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class PermissionDeniedError(VaultmuxError):
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"permission denied: {name}")


class NotSupportedError(VaultmuxError):
    """The backend does not offer this capability."""

    kind = ErrorKind.NOT_SUPPORTED

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"operation not supported by backend: {operation}")


class InvalidItemNameError(VaultmuxError):
    """Raised by the validator; ``reason`` names the violated rule."""

    kind = ErrorKind.INVALID_ITEM_NAME

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid item name: {reason}")


class BackendError(VaultmuxError):
    """Generic backend failure (setup errors, unexpected responses)."""

    kind = ErrorKind.BACKEND_ERROR


class UnknownBackendError(BackendError):
    """No constructor registered for a backend identifier."""

    def __init__(self, backend: str, available: Optional[list] = None):
        self.backend = backend
        self.available = sorted(available or [])
        names = ", ".join(self.available) or "none"
        super().__init__(
            f"unknown backend: {backend} (was it installed and registered? "
            f"call vaultmux.init() first; available: {names})"
        )


class CommandFailedError(BackendError):
    """An external command exited with a non-zero status."""

    def __init__(self, program: str, returncode: int, stderr: str = ""):
        self.program = program
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"{program} failed with exit code {returncode}: {stderr.strip()}"
        )


class BackendOperationError(VaultmuxError):
    """Wraps an underlying failure with backend, operation and item context.

    The original error stays reachable through ``cause`` (and ``__cause__``),
    and ``root_kind`` reports its kind.
    """

    kind = ErrorKind.OPERATION_FAILED

    def __init__(
        self,
        backend: str,
        operation: str,
        item: str,
        cause: BaseException
    ):
        self.backend = backend
        self.operation = operation
        self.item = item
        self.cause = cause
        super().__init__(f"{backend}: {operation} {item}: {cause}")
        self.__cause__ = cause

    @property
    def root_kind(self) -> ErrorKind:
        cause = self.cause
        while isinstance(cause, BackendOperationError):
            cause = cause.cause
        if isinstance(cause, VaultmuxError):
            return cause.kind
        return ErrorKind.BACKEND_ERROR
