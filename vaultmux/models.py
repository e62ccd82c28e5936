"""Vault item models."""
import uuid
from enum import Enum
from typing import Any, Optional
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ItemType(str, Enum):
    """Type of vault item.

    Closed set: backend-native types that have no counterpart here map to
    ``ItemType.OTHER``.
    """

    SECURE_NOTE = "SecureNote"
    LOGIN = "Login"
    CARD = "Card"
    IDENTITY = "Identity"
    SSH_KEY = "SSHKey"
    API_KEY = "APIKey"
    DATABASE = "Database"
    OTHER = "Other"

    @classmethod
    def from_native(cls, value: Any) -> "ItemType":
        """Map a backend-native type value to an ItemType."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

    def __str__(self) -> str:
        return self.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Item(BaseModel):
    """A secret record stored in a vault.

    ``notes`` holds the secret payload; bulk listings leave it unset.
    ``fields`` is a backend-specific extension, opaque to the core.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    item_type: ItemType = ItemType.SECURE_NOTE
    notes: Optional[str] = None
    fields: Optional[dict[str, str]] = None
    location: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    def __repr__(self) -> str:
        notes = "***" if self.notes is not None else "None"
        return (
            f"Item(id={self.id!r}, name={self.name!r}, "
            f"item_type={self.item_type.value}, notes={notes}, "
            f"location={self.location!r})"
        )

    @classmethod
    def new_secure_note(cls, name: str, notes: str) -> "Item":
        now = _utcnow()
        return cls(
            name=name,
            item_type=ItemType.SECURE_NOTE,
            notes=notes,
            created=now,
            modified=now,
        )

    @classmethod
    def new_login(cls, name: str, username: str, password: str) -> "Item":
        now = _utcnow()
        return cls(
            name=name,
            item_type=ItemType.LOGIN,
            fields={"username": username, "password": password},
            created=now,
            modified=now,
        )

    def without_notes(self) -> "Item":
        """Copy of this item with the secret payload removed."""
        return self.model_copy(update={"notes": None})

    def renamed(self, name: str) -> "Item":
        return self.model_copy(update={"name": name})
