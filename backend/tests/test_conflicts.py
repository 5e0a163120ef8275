# Overview: Pytest coverage for lost insert races and storage failures.

"""
Conflict Handling Tests

A stale lookup (another writer inserted the natural key after we looked)
is simulated by making the lookup miss once while the row already exists.
The unique constraint must reject the duplicate insert and the write must
be replayed as an update.
"""

import pytest
from sqlalchemy.exc import OperationalError

from beanlink.models import Supply
from beanlink.services import sync_service
from beanlink.services.sync_schemas import SCHEMAS
from beanlink.validation import Conflict, StorageError


@pytest.fixture
def supply_schema():
    return SCHEMAS["supply"]


class TestLostInsertRace:
    def test_stale_lookup_is_retried_as_update(self, db_session, count_rows, monkeypatch, supply_schema):
        existing = sync_service.upsert("supply", {"name": "Flour"})

        real_lookup = supply_schema.lookup
        calls = []

        def stale_once(mid, key):
            calls.append(key)
            if len(calls) == 1:
                return None
            return real_lookup(mid, key)

        monkeypatch.setattr(supply_schema, "lookup", stale_once)

        row = sync_service.upsert("supply", {"name": "Flour"})

        assert len(calls) == 2
        assert row["id"] == existing["id"]
        assert count_rows(Supply) == 1

    def test_persistent_conflict_is_reported_with_key(self, db_session, count_rows, monkeypatch, supply_schema):
        sync_service.upsert("supply", {"name": "Flour"})
        monkeypatch.setattr(supply_schema, "lookup", lambda mid, key: None)

        with pytest.raises(Conflict) as exc_info:
            sync_service.upsert("supply", {"name": "Flour"})

        assert exc_info.value.status_code == 409
        assert exc_info.value.key == {"name": "Flour", "mid": 1}
        assert count_rows(Supply) == 1

    def test_conflict_in_batch_does_not_block_other_records(self, db_session, monkeypatch, supply_schema):
        sync_service.upsert("supply", {"name": "Flour"})
        real_lookup = supply_schema.lookup

        def never_finds_flour(mid, key):
            if key == ("Flour",):
                return None
            return real_lookup(mid, key)

        monkeypatch.setattr(supply_schema, "lookup", never_finds_flour)

        result = sync_service.upsert_batch("supply", [{"name": "Flour"}, {"name": "Salt"}])

        assert [row["name"] for row in result.succeeded] == ["Salt"]
        assert result.failed[0]["kind"] == "Conflict"
        assert result.failed[0]["key"] == {"name": "Flour", "mid": 1}


class TestStorageFailure:
    def test_storage_error_is_not_retried(self, db_session, monkeypatch, supply_schema):
        calls = []

        def broken(mid, key):
            calls.append(key)
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(supply_schema, "lookup", broken)

        with pytest.raises(StorageError) as exc_info:
            sync_service.upsert("supply", {"name": "Flour"})

        assert len(calls) == 1
        assert exc_info.value.status_code == 503
        assert exc_info.value.key == {"name": "Flour", "mid": 1}
