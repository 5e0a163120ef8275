# Overview: Pytest coverage for best-effort batch upserts.

"""
Batch Sync Tests

A batch applies records in order, commits each on its own, and reports
the records it could not apply instead of failing the whole call.
"""

import json

import pytest

from beanlink.models import Product, Supply
from beanlink.services import sync_service
from beanlink.validation import UnknownCollection


class TestPartialFailure:
    def test_bad_record_does_not_block_its_neighbours(self, db_session, count_rows):
        result = sync_service.upsert_batch("supply", [
            {"name": "Flour"},
            {"name": None},
            {"name": "Sugar"},
        ])

        assert result.success is False
        assert len(result.succeeded) == 2
        assert [f["index"] for f in result.failed] == [1]
        assert result.failed[0]["kind"] == "InvalidPayload"
        assert "name" in result.failed[0]["error"]

        names = {row.name for row in db_session.query(Supply).all()}
        assert names == {"Flour", "Sugar"}
        assert count_rows(Supply) == 2

    def test_summary_counts(self, db_session):
        body = sync_service.upsert_batch("supply", [{"name": "a"}, "junk", {"name": "b"}]).to_dict()

        assert body["collection"] == "supply"
        assert body["total"] == 3
        assert body["processed"] == 2
        assert body["failed"] == 1
        assert len(body["results"]) == 2
        assert body["errors"][0]["index"] == 1

    def test_clean_batch_reports_success(self, db_session):
        result = sync_service.upsert_batch("merchants", [{"name": "A"}, {"name": "B", "mid": 2}])
        assert result.success is True
        assert result.failed == []


class TestBatchShapes:
    def test_single_object_is_a_batch_of_one(self, db_session, count_rows):
        result = sync_service.upsert_batch("supply", {"name": "Flour"})
        assert result.total == 1
        assert count_rows(Supply) == 1

    def test_records_envelope(self, db_session):
        result = sync_service.upsert_batch("supply", {"records": [{"name": "a"}, {"name": "b"}]})
        assert len(result.succeeded) == 2

    def test_encoded_array(self, db_session):
        raw = json.dumps([json.dumps({"name": "a"}), {"name": "b"}])
        result = sync_service.upsert_batch("supply", raw)
        assert [row["name"] for row in result.succeeded] == ["a", "b"]

    def test_empty_body_is_an_empty_batch(self, db_session):
        result = sync_service.upsert_batch("supply", None)
        assert result.total == 0
        assert result.success is True


class TestOrdering:
    def test_later_record_with_same_key_wins(self, db_session, count_rows):
        result = sync_service.upsert_batch("products", [
            {"name": "Bun", "salePrice": 10},
            {"name": "Bun", "salePrice": 12},
        ])

        first, second = result.succeeded
        assert first["id"] == second["id"]
        assert second["sale_price"] == 12
        assert count_rows(Product) == 1
        assert sync_service.list_rows("products")[0]["sale_price"] == 12


class TestLimits:
    def test_records_past_the_limit_are_reported_not_written(self, db_session, count_rows):
        records = [{"name": f"s{i}"} for i in range(52)]
        result = sync_service.upsert_batch("supply", records)

        assert len(result.succeeded) == 50
        assert [f["index"] for f in result.failed] == [50, 51]
        assert all(f["kind"] == "InvalidPayload" for f in result.failed)
        assert "limit" in result.failed[0]["error"]
        assert count_rows(Supply) == 50
        assert count_rows(Supply, name="s50") == 0

    def test_unknown_collection(self, db_session):
        with pytest.raises(UnknownCollection):
            sync_service.upsert_batch("invoices", [{"name": "x"}])
