"""
Name validation, applied once before any backend sees a caller-supplied name.

Backends that shell out to CLI tools rely on this check instead of escaping
arguments themselves.
"""
from .exceptions import InvalidItemNameError

# Shell metacharacters that are never allowed in a name.
DANGEROUS_CHARS = ";|&$`<>(){}[]!*?~#%^\\\"'"

MAX_NAME_LENGTH = 255

_ALLOWED_CONTROL = frozenset({"\n", "\t"})


def _is_control(char: str) -> bool:
    code = ord(char)
    return code < 0x20 or 0x7F <= code <= 0x9F


def validate_item_name(name: str) -> None:
    """Validate an item name.

    Raises:
        InvalidItemNameError: If name is empty, longer than 255 characters,
            contains a null byte, a control character or a shell
            metacharacter.
    """
    if not isinstance(name, str):
        raise InvalidItemNameError("name must be a string")
    if not name:
        raise InvalidItemNameError("name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidItemNameError(
            f"name exceeds maximum length of {MAX_NAME_LENGTH} characters"
        )
    if "\0" in name:
        raise InvalidItemNameError("name contains null byte")
    if any(_is_control(c) and c not in _ALLOWED_CONTROL for c in name):
        raise InvalidItemNameError("name contains control characters")
    if any(c in DANGEROUS_CHARS for c in name):
        raise InvalidItemNameError(
            f"name contains dangerous characters (not allowed: {DANGEROUS_CHARS})"
        )


def validate_location_name(name: str) -> None:
    """Validate a location (folder/vault) name, same rules as items."""
    validate_item_name(name)


def is_valid_name(name: str) -> bool:
    try:
        validate_item_name(name)
    except InvalidItemNameError:
        return False
    return True
