# Overview: Decode-or-passthrough normalization shared by every sync route.

"""
Record normalization.

Terminals send records either as structured JSON or as a JSON document
wrapped in a string field (sometimes wrapped twice). Every collection
handler goes through normalize() so the rest of the core only ever sees
structured values.

INVARIANT: nothing in this module raises. A payload that cannot be decoded
is passed through unchanged; the upsert engine reports it as an
InvalidPayload when it needs fields it cannot find.
"""

from __future__ import annotations

import json
from typing import Any

# Guards against pathological inputs like '"\\"\\\\\\"...'
MAX_DECODE_DEPTH = 4

ENVELOPE_KEY = "data"
BATCH_KEY = "records"


def normalize(raw: Any) -> Any:
    """
    Return the structured form of raw.

    - bytes are decoded as UTF-8 first
    - text is decoded as JSON repeatedly while it still decodes to text
    - any decode failure passes the last good value through
    - already-structured values are returned as-is
    """
    value = raw
    if isinstance(value, (bytes, bytearray)):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            return raw

    for _ in range(MAX_DECODE_DEPTH):
        if not isinstance(value, str):
            break
        try:
            decoded = json.loads(value)
        except ValueError:
            break
        value = decoded
    return value


def unwrap_envelope(body: Any) -> Any:
    """
    Strip the transport wrapper {"data": <record>}.

    Only a body whose sole key is "data" is unwrapped: a bill legitimately
    carries its own "data" field next to its number.
    """
    body = normalize(body)
    if isinstance(body, dict) and set(body.keys()) == {ENVELOPE_KEY}:
        return normalize(body[ENVELOPE_KEY])
    return body


def normalize_batch(raw: Any) -> list[Any]:
    """
    Coerce a batch request body into a list of normalized records.

    Accepts a list, an envelope around a list, {"records": [...]}, or a
    single record (auto-wrapped).
    """
    body = unwrap_envelope(raw)
    if isinstance(body, dict) and set(body.keys()) == {BATCH_KEY}:
        body = normalize(body[BATCH_KEY])
    if body is None:
        return []
    if not isinstance(body, list):
        body = [body]
    return [normalize(item) for item in body]
