"""Phone number normalization and validation."""

from __future__ import annotations

import re

from corpdate.errors import InvalidInputError

_STRIP_RE = re.compile(r"[\s\-()]")
_E164_RE = re.compile(r"^\+?[1-9]\d{1,14}$")


def normalize_phone(phone: str) -> str:
    """Remove spaces, dashes and parentheses."""
    return _STRIP_RE.sub("", phone)


def is_valid_phone(phone: str) -> bool:
    return bool(_E164_RE.match(normalize_phone(phone)))


def validate_phone(phone: str) -> str:
    """
    Normalize and validate a phone number.

    Raises:
        InvalidInputError: The number is not E.164-like after normalization.
    """
    normalized = normalize_phone(phone)
    if not _E164_RE.match(normalized):
        msg = "Invalid phone number format"
        raise InvalidInputError(msg)
    return normalized
