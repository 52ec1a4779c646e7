"""Field level normalisation rules applied to raw contact records."""
from __future__ import annotations

import re
from typing import Any

NAME_MAX_LENGTH = 100
CITY_MAX_LENGTH = 50
STATE_LENGTH = 2

# Junk-filter substrings, not an RFC validator.
_JUNK_EMAIL_MARKERS = ("example", "test@")

_PLACEHOLDER_PHONES = frozenset({"6666666666", "0000000000"})
_BLOCKED_AREA_CODES = ("176", "155", "204")

_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN from spreadsheets
        return ""
    return str(value)


def clean_name(value: Any) -> str:
    name = _text(value).replace('"', "")
    name = _WHITESPACE.sub(" ", name).strip()
    return name[:NAME_MAX_LENGTH]


def validate_email(value: Any) -> str:
    """Return the lower-cased address, or an empty string when it looks unusable."""

    email = _text(value).lower().strip()
    if not email:
        return ""
    if "@" not in email or "." not in email:
        return ""
    if any(marker in email for marker in _JUNK_EMAIL_MARKERS):
        return ""
    return email


def validate_phone(value: Any) -> str:
    """Return ``(XXX) XXX-XXXX`` for plausible US numbers, otherwise ``""``."""

    digits = _NON_DIGIT.sub("", _text(value))
    if len(digits) != 10:
        return ""
    if digits in _PLACEHOLDER_PHONES:
        return ""
    if digits.startswith(_BLOCKED_AREA_CODES):
        return ""
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def clean_city(value: Any) -> str:
    return _text(value).replace('"', "").strip()[:CITY_MAX_LENGTH]


def clean_state(value: Any) -> str:
    return _text(value).strip().upper()[:STATE_LENGTH]


def clean_text(value: Any) -> str:
    return _text(value).strip()


def dedup_key(name: str, email: str, phone: str) -> str:
    """Case and whitespace insensitive identity of a contact."""

    return _WHITESPACE.sub("", f"{name}{email}{phone}".lower())


__all__ = [
    "clean_name",
    "validate_email",
    "validate_phone",
    "clean_city",
    "clean_state",
    "clean_text",
    "dedup_key",
]
