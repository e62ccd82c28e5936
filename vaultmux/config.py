"""
Vaultmux Configuration — immutable backend configuration value.

A ``Config`` is never modified in place: every ``with_*`` method returns an
updated copy, so a config can be shared between callers safely::

    config = (
        Config.new(BackendType.AWS_SECRETS_MANAGER)
        .with_prefix("myapp/")
        .with_option("region", "us-west-2")
        .with_session_cache(True)
    )
"""
import os
from enum import Enum
from types import MappingProxyType
from pathlib import Path
from typing import Any, Optional, Union
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_serializer, field_validator

from . import conf


class BackendType(str, Enum):
    """Identifiers of the known backend variants."""

    MOCK = "mock"
    BITWARDEN = "bitwarden"
    ONEPASSWORD = "1password"
    PASS = "pass"
    WINDOWS_CREDENTIAL_MANAGER = "wincred"
    AWS_SECRETS_MANAGER = "awssecrets"
    GCP_SECRET_MANAGER = "gcpsecrets"
    AZURE_KEY_VAULT = "azurekeyvault"

    def __str__(self) -> str:
        return self.value


BackendIdentifier = Union[BackendType, str]


class Config(BaseModel):
    """Backend configuration.

    Args:
        backend: Backend identifier (``BackendType`` or any lowercase string
            registered by a third-party backend).
        prefix: Namespace prepended to item names on write, stripped on read.
        options: Backend-specific options (region, project_id, vault_url...),
            interpreted only by the concrete backend.
        cache_enabled: Persist session tokens between processes.
        session_ttl: Session lifetime in seconds.
        session_file: Explicit session cache path.
    """

    backend: str = Field(default=conf.DEFAULT_BACKEND)
    prefix: str = Field(default=conf.DEFAULT_PREFIX)
    options: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    cache_enabled: bool = Field(default=conf.SESSION_CACHE_ENABLED)
    session_ttl: int = Field(default=conf.SESSION_TTL, gt=0)
    session_file: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: Any) -> str:
        """Store backend identifiers as lowercase strings."""
        if isinstance(v, BackendType):
            v = v.value
        if not isinstance(v, str) or not v.strip():
            raise ValueError("backend identifier must be a non-empty string")
        return v.strip().lower()

    @field_validator("options", mode="after")
    @classmethod
    def freeze_options(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        """Expose options as a read-only mapping."""
        return MappingProxyType(dict(v))

    @field_serializer("options")
    def serialize_options(self, v: Mapping[str, str]) -> dict[str, str]:
        return dict(v)

    @field_validator("session_ttl", mode="before")
    @classmethod
    def coerce_ttl(cls, v: Any) -> Any:
        """Accept ``timedelta`` values for the TTL."""
        if hasattr(v, "total_seconds"):
            return int(v.total_seconds())
        return v

    def __repr__(self) -> str:
        return (
            f"Config(backend={self.backend!r}, prefix={self.prefix!r}, "
            f"options={sorted(self.options)!r}, "
            f"cache_enabled={self.cache_enabled}, "
            f"session_ttl={self.session_ttl})"
        )

    @classmethod
    def new(cls, backend: BackendIdentifier) -> "Config":
        return cls(backend=backend)

    @classmethod
    def from_env(cls) -> "Config":
        """Create a Config from VAULTMUX_* environment variables.

        Returns:
            Populated Config instance.
        """
        return cls(
            backend=os.environ.get("VAULTMUX_BACKEND", conf.DEFAULT_BACKEND),
            prefix=os.environ.get("VAULTMUX_PREFIX", ""),
            options=conf.env_options(),
            cache_enabled=conf.env_bool("VAULTMUX_SESSION_CACHE", False),
            session_ttl=conf.env_int("VAULTMUX_SESSION_TTL", conf.SESSION_TTL),
            session_file=os.environ.get("VAULTMUX_SESSION_FILE") or None,
        )

    # ------------------------------------------------------------------
    # Chained mutators
    # ------------------------------------------------------------------

    def _updated(self, **changes) -> "Config":
        # model_copy(update=...) does not run validators
        data = self.model_dump()
        data.update(changes)
        return type(self)(**data)

    def with_backend(self, backend: BackendIdentifier) -> "Config":
        return self._updated(backend=backend)

    def with_prefix(self, prefix: str) -> "Config":
        return self._updated(prefix=prefix)

    def with_option(self, key: str, value: str) -> "Config":
        options = dict(self.options)
        options[key] = value
        return self._updated(options=options)

    def with_options(self, options: Mapping[str, str]) -> "Config":
        merged = dict(self.options)
        merged.update(options)
        return self._updated(options=merged)

    def with_session_cache(self, enabled: bool = True) -> "Config":
        return self._updated(cache_enabled=enabled)

    def with_session_ttl(self, ttl: Any) -> "Config":
        """Set the session TTL (seconds or ``timedelta``)."""
        return self._updated(session_ttl=ttl)

    def with_session_file(self, path: Union[str, Path]) -> "Config":
        """Set the cache file location; implies nothing about ``cache_enabled``."""
        return self._updated(session_file=str(path))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_option(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.options.get(key, default)

    @property
    def session_path(self) -> Path:
        """Resolved location of the session cache file."""
        if self.session_file:
            return Path(self.session_file).expanduser()
        return conf.CACHE_DIR.joinpath(f"{self.backend}-session.json")
