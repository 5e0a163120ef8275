# Overview: Collision-free server-side id allocation for synced rows.

from __future__ import annotations

from sqlalchemy import func, update

from ..extensions import db
from ..models import SyncSequence

# Registrations draw merchant ids from one global sequence
GLOBAL_SCOPE = 0


def _max_taken(model, id_column: str, scope_mid: int | None) -> int:
    column = getattr(model, id_column)
    query = db.session.query(func.max(column))
    if scope_mid is not None:
        query = query.filter(model.mid == scope_mid)
    return int(query.scalar() or 0)


def _is_taken(model, id_column: str, value: int, scope_mid: int | None) -> bool:
    filters = {id_column: value}
    if scope_mid is not None:
        filters["mid"] = scope_mid
    return db.session.query(model).filter_by(**filters).first() is not None


def allocate_id(
    *,
    collection: str,
    model,
    scope_mid: int | None,
    id_column: str = "id",
) -> int:
    """
    Allocate the next id for a collection within one tenant.

    Uses an UPDATE on the (collection, mid) sequence row so concurrent
    allocators serialize on that row. The first allocation seeds the
    sequence past whatever ids clients already supplied. If a client has
    since taken the allocated value, the sequence jumps past the current
    maximum.

    scope_mid=None allocates from the global sequence and checks the
    whole table (registration mids).

    A concurrent first allocation surfaces as IntegrityError on the
    sequence row; callers replay the whole write.
    """
    seq_mid = GLOBAL_SCOPE if scope_mid is None else scope_mid
    stmt = (
        update(SyncSequence)
        .where(
            SyncSequence.collection == collection,
            SyncSequence.scope_mid == seq_mid,
        )
        .values(next_id=SyncSequence.next_id + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(SyncSequence.next_id)
            .filter_by(collection=collection, scope_mid=seq_mid)
            .scalar()
        )
        candidate = int(current) - 1
    else:
        candidate = _max_taken(model, id_column, scope_mid) + 1
        db.session.add(SyncSequence(collection=collection, scope_mid=seq_mid, next_id=candidate + 1))
        db.session.flush()
        return candidate

    if _is_taken(model, id_column, candidate, scope_mid):
        candidate = _max_taken(model, id_column, scope_mid) + 1
        db.session.execute(
            update(SyncSequence)
            .where(
                SyncSequence.collection == collection,
                SyncSequence.scope_mid == seq_mid,
            )
            .values(next_id=candidate + 1)
            .execution_options(synchronize_session=False)
        )
    return candidate
