# Overview: Merchant id defaulting and natural-key derivation per collection.

"""
Natural key resolution.

The "absent mid means tenant 1" rule is a convention of the terminal
fleet, not stored state, so it lives here as a pure function.
"""

from __future__ import annotations

from typing import Any

from ..validation import InvalidPayload, to_int
from .sync_schemas import get_schema

DEFAULT_MID = 1
MID_FIELDS = ("mid", "merchantId", "merchant_id")


def resolve_mid(record: dict[str, Any]) -> int:
    """
    First non-null merchant id field, else DEFAULT_MID.

    Explicit 0 is a real tenant and is kept. Blank strings count as absent.
    """
    for field in MID_FIELDS:
        value = record.get(field)
        if value is None:
            continue
        try:
            mid = to_int(value)
        except InvalidPayload:
            raise InvalidPayload(f"{field} must be an integer", key=value)
        if mid is not None:
            return mid
    return DEFAULT_MID


def resolve_key(kind: str, record: Any) -> tuple[int | None, tuple]:
    """
    Return (merchant_id, natural_key) for a normalized record.

    Registration is global: its merchant id slot is None and its key is
    the hostname alone.
    """
    schema = get_schema(kind)
    if not isinstance(record, dict):
        raise InvalidPayload("record must be a JSON object")
    key = schema.natural_key(record)
    if not schema.merchant_scoped:
        return None, key
    return resolve_mid(record), key
