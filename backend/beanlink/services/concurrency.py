# Overview: Row locking and lost-race retry for the lookup-then-write upsert.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking to the natural-key lookup.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 2, backoff_base: float = 0.05, on_retry=None):
    """
    Execute a lookup-then-write with retry on unique constraint violations.

    An IntegrityError here means a concurrent request inserted the same
    natural key (or took the same id) between our lookup and our flush.
    Replaying func() re-runs the lookup, which now finds that row and
    takes the update path. Any other error propagates untouched.
    """
    for attempt in range(attempts):
        try:
            return func()
        except IntegrityError as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            if on_retry is not None:
                on_retry(attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
