"""Identity name validation."""

from __future__ import annotations

from claudeidentity.constants import (
    IDENTITY_NAME_PATTERN,
    MAX_IDENTITY_NAME_LENGTH,
    RESERVED_NAMES,
)


def is_valid_name(name: str) -> bool:
    if not name or len(name) > MAX_IDENTITY_NAME_LENGTH:
        return False
    if name.lower() in RESERVED_NAMES:
        return False
    return IDENTITY_NAME_PATTERN.fullmatch(name) is not None


def validation_message(name: str) -> str:
    """Explain why ``name`` is rejected, or return an empty string when it is valid."""
    if not name:
        return "Name cannot be empty."
    if len(name) > MAX_IDENTITY_NAME_LENGTH:
        return f"Name must be at most {MAX_IDENTITY_NAME_LENGTH} characters."
    if name.lower() in RESERVED_NAMES:
        reserved = ", ".join(sorted(RESERVED_NAMES))
        return f"'{name}' is reserved. Avoid: {reserved}."
    if IDENTITY_NAME_PATTERN.fullmatch(name) is None:
        return (
            "Names must start with a letter or number and contain only letters, "
            "numbers, underscores, or hyphens."
        )
    return ""
