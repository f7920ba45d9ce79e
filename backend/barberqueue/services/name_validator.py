"""
Customer name validation.

Names are trimmed and whitespace-collapsed for display, and reduced to a
``name_key`` (lowercase letters and digits only) for duplicate checks.
"""

import re
from dataclasses import dataclass

from barberqueue.errors import BlockedName, EmptyName, InvalidName, TooLong, TooShort

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 24

# Substring match against the name key, so longer words containing
# one of these are blocked too.
BLOCKED_NAME_PARTS = [
    "admin",
    "test",
    "unknown",
    "anonymous",
    "null",
    "undefined",
    "fuck",
    "shit",
    "bitch",
    "asshole",
    "sex",
    "xxx",
    "aaa",
    "zzz",
]

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ValidatedName:
    cleaned_name: str
    name_key: str


def clean_name(value: str) -> str:
    """Trim and collapse internal whitespace runs to single spaces."""
    return _WHITESPACE_RE.sub(" ", value.strip())


def normalize_name(value: str) -> str:
    """Reduce a name to its duplicate-detection key."""
    lowered = clean_name(value).lower()
    kept = "".join(ch for ch in lowered if ch.isalnum() or ch.isspace())
    return _WHITESPACE_RE.sub("", kept)


def validate_name(raw: str) -> ValidatedName:
    """
    Sanitize and validate a proposed customer name.

    Raises:
        EmptyName, TooShort, TooLong, InvalidName, BlockedName
    """
    cleaned = clean_name(raw or "")

    if not cleaned:
        raise EmptyName()
    if len(cleaned) < MIN_NAME_LENGTH:
        raise TooShort()
    if len(cleaned) > MAX_NAME_LENGTH:
        raise TooLong()

    name_key = normalize_name(cleaned)
    if not name_key or name_key.isdigit():
        raise InvalidName()

    if any(bad in name_key for bad in BLOCKED_NAME_PARTS):
        raise BlockedName()

    return ValidatedName(cleaned_name=cleaned, name_key=name_key)
