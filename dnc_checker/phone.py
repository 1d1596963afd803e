"""Phone number normalisation and local validation."""
from __future__ import annotations

import re
from typing import Iterable, List

from .models import ValidationOutcome

INVALID_FORMAT = "Invalid format"
INVALID_AREA_CODE = "Invalid area code"

SAMPLE_NUMBERS = [f"+123456789{suffix:02d}" for suffix in range(1, 11)]

_SEPARATORS = re.compile(r"[\n,\s]+")
_NON_DIGITS = re.compile(r"[^0-9+]")
_US_NUMBER = re.compile(r"\+1[0-9]{10}")

_MIN_AREA_CODE = 200
_MAX_AREA_CODE = 999


def parse_numbers(text: str) -> List[str]:
    """Split free-form text into raw number tokens."""

    stripped = (text or "").strip()
    if not stripped:
        return []
    return [token.strip() for token in _SEPARATORS.split(stripped) if token.strip()]


def format_number(token: str) -> str:
    """Bring a single token into canonical ``+1XXXXXXXXXX`` form where possible.

    Tokens that do not look like a US number are returned digit-stripped but
    otherwise untouched; they fail validation later.
    """

    cleaned = _NON_DIGITS.sub("", token)
    if not cleaned.startswith("+"):
        if len(cleaned) == 10:
            cleaned = "+1" + cleaned
        elif len(cleaned) == 11 and cleaned.startswith("1"):
            cleaned = "+" + cleaned
    return cleaned


def normalize_tokens(tokens: Iterable[str]) -> List[str]:
    numbers: List[str] = []
    seen = set()
    for token in tokens:
        number = format_number(token)
        if not number or number in seen:
            continue
        seen.add(number)
        numbers.append(number)
    return numbers


def normalize_numbers(text: str) -> List[str]:
    """Return the unique canonical numbers in ``text`` in first-seen order."""

    return normalize_tokens(parse_numbers(text))


def validate_number(candidate: str) -> ValidationOutcome:
    if not _US_NUMBER.fullmatch(candidate or ""):
        return ValidationOutcome.invalid(INVALID_FORMAT)

    area_code = int(candidate[2:5])
    if area_code < _MIN_AREA_CODE or area_code > _MAX_AREA_CODE:
        return ValidationOutcome.invalid(INVALID_AREA_CODE)

    return ValidationOutcome.ok()


__all__ = [
    "INVALID_AREA_CODE",
    "INVALID_FORMAT",
    "SAMPLE_NUMBERS",
    "format_number",
    "normalize_numbers",
    "normalize_tokens",
    "parse_numbers",
    "validate_number",
]
