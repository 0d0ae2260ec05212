"""Shared utilities for validation and normalization."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, TypeVar

from .exceptions import ValidationError

T = TypeVar("T")

_VAT_RE = re.compile(r"[0-9]{9}")
_NON_DIGIT_RE = re.compile(r"[^0-9]")


def is_valid_vat_number(vat: Any) -> bool:
    """Return True for a Greek VAT number (AFM): exactly nine digits."""
    if not isinstance(vat, str):
        return False
    return _VAT_RE.fullmatch(vat) is not None


def normalize_vat_number(vat: str) -> str:
    if not isinstance(vat, str):
        raise ValidationError("VAT number must be a string.")
    cleaned = _NON_DIGIT_RE.sub("", vat)
    if len(cleaned) != 9:
        raise ValidationError("VAT number must contain exactly 9 digits.")
    return cleaned


def format_vat_number(vat: str) -> str:
    """Format a VAT number as ``123-456-789`` for display; leave other input as is."""
    cleaned = _NON_DIGIT_RE.sub("", vat) if isinstance(vat, str) else ""
    if len(cleaned) != 9:
        return vat
    return f"{cleaned[:3]}-{cleaned[3:6]}-{cleaned[6:]}"


def format_utc_timestamp(value: datetime) -> str:
    """Render an aware datetime like JavaScript's ``toISOString``."""
    if not isinstance(value, datetime):
        raise ValidationError("Timestamp must be a datetime.")
    if value.tzinfo is None:
        raise ValidationError("Timestamp must include timezone information.")
    normalized = value.astimezone(UTC)
    return normalized.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if not isinstance(value, str) or not value:
        raise ValidationError("Timestamp must be a non-empty string.")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError("Timestamp is not a valid ISO 8601 value.") from exc
    if parsed.tzinfo is None:
        raise ValidationError("Timestamp must include timezone information.")
    return parsed.astimezone(UTC)


def to_list(value: T | Iterable[T] | None) -> list[T]:
    """Normalize a single item, an iterable of items or None to a list.

    Strings and bytes count as single items.
    """
    if value is None:
        return []
    if isinstance(value, str | bytes) or not isinstance(value, Iterable):
        return [value]  # type: ignore[list-item]
    return list(value)


def split_make_model(make_model: str) -> tuple[str | None, str | None]:
    parts = make_model.split() if isinstance(make_model, str) else []
    if not parts:
        return None, None
    brand = parts[0]
    model = " ".join(parts[1:]) or None
    return brand, model


def mask_secret(value: str | None) -> str:
    if not value:
        return "***"
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}***{value[-4:]}"
