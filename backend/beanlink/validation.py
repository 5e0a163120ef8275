from __future__ import annotations

from typing import Any


class SyncError(ValueError):
    """Base for every failure the sync core reports; carries the offending key."""

    status_code = 500

    def __init__(self, message: str, *, key: Any = None):
        super().__init__(message)
        self.key = key

    def to_dict(self) -> dict:
        return {"error": str(self), "key": _jsonable_key(self.key)}


class InvalidPayload(SyncError):
    """400-level input problem (record is not an object, natural key missing, bad mid)."""

    status_code = 400


class UnknownCollection(SyncError):
    """404-level: the route named a record kind that has no schema."""

    status_code = 404


class Conflict(SyncError):
    """409-level: natural-key uniqueness lost to a concurrent writer after retries."""

    status_code = 409


class StorageError(SyncError):
    """503-level: connection or query failure in the storage layer."""

    status_code = 503


def _jsonable_key(key: Any) -> Any:
    if isinstance(key, tuple):
        return list(key)
    return key


def to_int(value: Any) -> int | None:
    """
    Strict integer coercion for ids and merchant ids.

    - None / "" -> None
    - bool is rejected (True is not merchant 1)
    - integral floats (12.0) and digit strings ("12", " -3 ") are accepted
    - anything else raises InvalidPayload
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidPayload(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidPayload(f"expected an integer, got {value!r}")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            raise InvalidPayload(f"expected an integer, got {value!r}")
    raise InvalidPayload(f"expected an integer, got {type(value).__name__}")


def maybe_int(value: Any) -> int | None:
    """Lenient variant: None when the value is not integral."""
    try:
        return to_int(value)
    except InvalidPayload:
        return None


def to_number(value: Any, default: float = 0) -> float:
    """Numeric payload field; absent or blank -> default. Accepts "1,299.50" and "$12"."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        return default
    try:
        return float(text)
    except ValueError:
        raise InvalidPayload(f"expected a number, got {value!r}")


def to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def to_bool(value: Any) -> bool:
    """Feature flags arrive as JSON booleans, 0/1, or "true"/"false" strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on", "y"}
    return bool(value)


def first_present(record: dict, *names: str) -> Any:
    """First non-null value among the aliases of a field."""
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def has_any(record: dict, *names: str) -> bool:
    """True when the client sent the field under any alias, even as false/0."""
    return any(record.get(name) is not None for name in names)
