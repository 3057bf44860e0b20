"""Curation and game identifiers."""

import re
import uuid

# 8-4-4-4-12 lowercase hex groups
_SEMI_UUID_PATTERN = re.compile(
    r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'
)


def generate_key() -> str:
    """Return a new random key for a curation, add app or game."""
    return str(uuid.uuid4())


def validate_semi_uuid(value: str) -> bool:
    """
    Check that a string is shaped like a UUID.

    Only the layout is checked: 36 characters of lowercase hexadecimal with
    hyphens at positions 8, 13, 18 and 23. Version and variant bits are not
    inspected.

    Args:
        value: String to check

    Returns:
        True if the string is a well-formed identifier
    """
    if not isinstance(value, str) or len(value) != 36:
        return False
    return _SEMI_UUID_PATTERN.fullmatch(value) is not None
