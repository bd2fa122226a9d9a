"""Parsing of job and memo identifiers supplied as decimal strings."""

from __future__ import annotations

import re
from typing import Optional

_DECIMAL = re.compile(r"[0-9]+")

# Stays below CPython's int/str conversion limit (sys.get_int_max_str_digits()).
_CHUNK_DIGITS = 4000


class InvalidIdentifier(ValueError):
    """Raised when an identifier is not a non-negative decimal integer."""


def _decimal_to_int(digits: str) -> int:
    value = 0
    for start in range(0, len(digits), _CHUNK_DIGITS):
        chunk = digits[start : start + _CHUNK_DIGITS]
        value = value * 10 ** len(chunk) + int(chunk)
    return value


def parse_unsigned_int(text: str) -> int:
    """Return ``text`` as an unsigned integer of arbitrary size.

    Surrounding whitespace is ignored. Signs, hex prefixes, separators and
    fractional parts are rejected.
    """

    if not isinstance(text, str):
        raise InvalidIdentifier(f"identifier must be a string, got {type(text).__name__}")
    trimmed = text.strip()
    if not trimmed:
        raise InvalidIdentifier("identifier is empty")
    if not _DECIMAL.fullmatch(trimmed):
        raise InvalidIdentifier(f"identifier is not a decimal integer: {trimmed[:32]!r}")
    try:
        return _decimal_to_int(trimmed.lstrip("0") or "0")
    except ValueError as exc:
        raise InvalidIdentifier(f"identifier could not be converted: {exc}") from exc


def try_parse_unsigned_int(text: Optional[str]) -> Optional[int]:
    """Like :func:`parse_unsigned_int` but returns ``None`` for absent or bad input."""

    if text is None:
        return None
    try:
        return parse_unsigned_int(text)
    except InvalidIdentifier:
        return None


__all__ = ["InvalidIdentifier", "parse_unsigned_int", "try_parse_unsigned_int"]
