"""Shared helpers for the data models.

Payload readers validate one field each and raise ValidationError naming it.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable

from vibematch.errors import ValidationError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_datetime(value: Any, field: str = "timestamp") -> datetime | None:
    """Parse an ISO-8601 string (or pass through a datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError(field, "must be an ISO-8601 timestamp") from e
    else:
        raise ValidationError(field, "must be an ISO-8601 timestamp")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(key, "is required")
    return value.strip()


def optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(key, "must be a string")
    return value


def str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(key, "must be a list of strings")
    return list(value)


def choice(data: dict[str, Any], key: str, allowed: Iterable[str], default: str | None = None) -> str | None:
    value = data.get(key, default)
    if value is None:
        return None
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(key, f"must be one of {', '.join(allowed)}")
    return value


def optional_number(data: dict[str, Any], key: str) -> float | None:
    """Numbers may arrive as JSON numbers or decimal strings."""
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(key, "must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(key, "must be a number") from e


def optional_int(data: dict[str, Any], key: str, *, minimum: int | None = None, maximum: int | None = None) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(key, "must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationError(key, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(key, f"must be <= {maximum}")
    return value


def optional_bool(data: dict[str, Any], key: str, default: bool = False) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(key, "must be a boolean")
    return value


def require_choice(data: dict[str, Any], key: str, allowed: Iterable[str]) -> str:
    if data.get(key) is None:
        raise ValidationError(key, "is required")
    return choice(data, key, allowed)


def apply_patch(record, payload: dict[str, Any], fields: Iterable[str]):
    """Return a copy of ``record`` with the allowed ``fields`` taken from ``payload``.

    The merged record is revalidated as a whole, so a patch can never leave
    the entity in a state a create payload would have rejected.
    """
    fields = tuple(f for f in fields if _wire_name(f) in payload)
    merged = {**record.to_dict(), **payload}
    candidate = type(record).from_payload(merged)
    return replace(record, **{f: getattr(candidate, f) for f in fields})


def _wire_name(attr: str) -> str:
    head, *rest = attr.split("_")
    return head + "".join(part.title() for part in rest)
