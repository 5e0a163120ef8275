# Overview: Idempotent create-or-update of synced records, singly and in batches.

"""
Sync Service: Upsert Reconciliation

INVARIANTS:
1. (natural key, mid) never maps to more than one row.
2. Repeating an identical sync returns the same (id, mid) and only moves
   updated_at forward.
3. created_at/updated_at are assigned here, never taken from the client.
4. Each record is its own unit of work: a batch commits record by record
   and a failed record is rolled back alone.
5. Registration mid and edit_password are written once, on insert.

CONCURRENCY:
No application lock is held. A concurrent insert of the same natural key
trips the table's unique constraint; the write is then replayed as a
fresh lookup-then-write (see concurrency.run_with_retry), which finds the
winner's row and updates it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..validation import Conflict, InvalidPayload, StorageError, SyncError
from beanlink.time_utils import utcnow
from .concurrency import run_with_retry
from .key_resolver import resolve_key
from .normalizer import normalize, normalize_batch
from .sequence_service import allocate_id
from .sync_schemas import SCHEMAS, BaseSyncSchema, get_schema


@dataclass
class BatchResult:
    """Outcome of a best-effort batch: partial success is a normal result."""

    kind: str
    succeeded: list[dict[str, Any]] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection": self.kind,
            "success": self.success,
            "total": self.total,
            "processed": len(self.succeeded),
            "failed": len(self.failed),
            "results": self.succeeded,
            "errors": self.failed,
        }


def _describe_key(schema: BaseSyncSchema, mid: int | None, key: tuple) -> dict[str, Any]:
    described: dict[str, Any] = {
        column: value for column, value in zip(schema.natural_key_columns, key) if value is not None
    }
    if schema.merchant_scoped:
        described["mid"] = mid
    return described


def _assign_identity(schema: BaseSyncSchema, row: Any, record: dict[str, Any], mid: int | None) -> None:
    if not schema.merchant_scoped:
        # Registration: the sequential mid is the externally visible merchant id
        row.mid = allocate_id(
            collection=schema.name,
            model=schema.model,
            scope_mid=None,
            id_column="mid",
        )
        return

    row.mid = mid
    client_id = schema.client_id(record)
    if client_id is not None and db.session.get(schema.model, (client_id, mid)) is None:
        row.id = client_id
    else:
        row.id = allocate_id(collection=schema.name, model=schema.model, scope_mid=mid)


def _write(schema: BaseSyncSchema, record: dict[str, Any], mid: int | None, key: tuple) -> dict[str, Any]:
    """One lookup-then-write attempt. Commits on success."""
    now = utcnow()
    row = schema.lookup(mid, key)
    if row is not None:
        schema.apply_update(row, record)
        row.updated_at = now
    else:
        row = schema.model(**schema.insert_values(record))
        _assign_identity(schema, row, record, mid)
        row.created_at = now
        row.updated_at = now
        db.session.add(row)

    db.session.flush()
    db.session.commit()
    return row.to_dict()


def upsert(kind: str, raw: Any) -> dict[str, Any]:
    """
    Create-or-update one record and return the row as persisted.

    Raises:
        UnknownCollection: kind has no schema
        InvalidPayload: record is not an object or lacks its natural key
        Conflict: the unique constraint kept failing after retries
        StorageError: any other storage failure (not retried)
    """
    schema = get_schema(kind)
    record = normalize(raw)
    mid, key = resolve_key(schema.name, record)

    retries = int(current_app.config.get("SYNC_CONFLICT_RETRIES", 1))

    def _on_retry(attempt: int, exc: IntegrityError) -> None:
        current_app.logger.warning(
            "Sync conflict on %s %s, retrying as update (attempt %d)",
            schema.name, _describe_key(schema, mid, key), attempt,
        )

    try:
        return run_with_retry(
            lambda: _write(schema, record, mid, key),
            attempts=retries + 1,
            on_retry=_on_retry,
        )
    except IntegrityError as exc:
        raise Conflict(
            f"{schema.name} record conflicts with a concurrent write",
            key=_describe_key(schema, mid, key),
        ) from exc
    except SyncError as exc:
        db.session.rollback()
        if exc.key is None:
            exc.key = _describe_key(schema, mid, key)
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError(
            f"Storage failure while syncing {schema.name}: {exc.__class__.__name__}",
            key=_describe_key(schema, mid, key),
        ) from exc


def upsert_batch(kind: str, raw: Any) -> BatchResult:
    """
    Sequentially upsert every record, isolating per-record failures.

    Records are applied in arrival order; two records with the same
    natural key in one batch leave the second one's values.

    Only the first SYNC_MAX_BATCH_SIZE records are applied. The rest are
    reported as failed without being written, so the terminal can resend them.
    """
    schema = get_schema(kind)
    records = normalize_batch(raw)

    max_size = int(current_app.config.get("SYNC_MAX_BATCH_SIZE", 1000))

    result = BatchResult(kind=schema.name)
    for index, record in enumerate(records):
        if index >= max_size:
            result.failed.append({
                "index": index,
                "key": None,
                "error": f"Batch limit of {max_size} records exceeded",
                "kind": InvalidPayload.__name__,
            })
            continue
        try:
            result.succeeded.append(upsert(schema.name, record))
        except SyncError as exc:
            result.failed.append({
                "index": index,
                "key": exc.to_dict()["key"],
                "error": str(exc),
                "kind": exc.__class__.__name__,
            })
        except Exception as exc:  # noqa: BLE001
            db.session.rollback()
            current_app.logger.exception("Unexpected failure syncing %s record %d", schema.name, index)
            result.failed.append({
                "index": index,
                "key": None,
                "error": str(exc) or exc.__class__.__name__,
                "kind": "InternalError",
            })

    current_app.logger.info(
        "Batch sync %s: %d processed, %d failed",
        schema.name, len(result.succeeded), len(result.failed),
    )
    return result


def list_rows(kind: str, *, mid: int | None = None) -> list[dict[str, Any]]:
    """All rows of a collection, optionally for one tenant."""
    schema = get_schema(kind)
    query = db.session.query(schema.model)
    if mid is not None:
        query = query.filter(schema.model.mid == mid)
    return [row.to_dict() for row in query.order_by(*schema.list_order()).all()]


def get_registration(hostname: str) -> dict[str, Any] | None:
    schema = get_schema("registration")
    row = db.session.query(schema.model).filter_by(hostname=hostname.strip()).first()
    return row.to_dict() if row else None


def collection_counts() -> dict[str, int]:
    return {name: db.session.query(schema.model).count() for name, schema in SCHEMAS.items()}
