# Overview: Pytest coverage for merchant id defaulting and natural key derivation.

import pytest

from beanlink.services.key_resolver import DEFAULT_MID, resolve_key, resolve_mid
from beanlink.validation import InvalidPayload, UnknownCollection


class TestResolveMid:
    def test_absent_mid_defaults_to_legacy_tenant(self):
        assert resolve_mid({"name": "Acme"}) == DEFAULT_MID == 1

    def test_null_mid_defaults(self):
        assert resolve_mid({"mid": None}) == 1

    def test_explicit_zero_is_honored(self):
        assert resolve_mid({"mid": 0}) == 0

    def test_string_zero_is_honored(self):
        assert resolve_mid({"mid": "0"}) == 0

    def test_integer_string_is_coerced(self):
        assert resolve_mid({"mid": " 42 "}) == 42

    def test_alias_used_when_mid_absent(self):
        assert resolve_mid({"merchantId": 7}) == 7

    def test_mid_wins_over_alias(self):
        assert resolve_mid({"mid": 3, "merchantId": 7}) == 3

    def test_non_integer_mid_rejected(self):
        with pytest.raises(InvalidPayload):
            resolve_mid({"mid": "north"})

    def test_boolean_mid_rejected(self):
        with pytest.raises(InvalidPayload):
            resolve_mid({"mid": True})


class TestResolveKey:
    def test_merchant_key_is_name(self):
        assert resolve_key("merchants", {"name": " Acme ", "mid": 2}) == (2, ("Acme",))

    def test_inventory_key_is_merchant_name_and_date(self):
        record = {"merchantName": "A", "date": "2024-01-01"}
        assert resolve_key("inventory", record) == (1, ("A", "2024-01-01"))

    def test_production_key_is_date(self):
        assert resolve_key("production", {"date": "2024-02-02", "mid": 5}) == (5, ("2024-02-02",))

    def test_bill_key_prefers_explicit_id(self):
        assert resolve_key("bills", {"id": 9, "billNumber": "1001"}) == (1, (9, None))

    def test_bill_key_falls_back_to_bill_number_text(self):
        assert resolve_key("bills", {"billNumber": 1001, "mid": 0}) == (0, (None, "1001"))
        assert resolve_key("bills", {"billNumber": "INV-7"}) == (1, (None, "INV-7"))

    def test_bill_without_id_or_number_has_empty_key(self):
        assert resolve_key("bills", {"total": 50}) == (1, ())

    def test_registration_is_not_merchant_scoped(self):
        assert resolve_key("registration", {"hostName": "till-01", "mid": 9}) == (None, ("till-01",))

    def test_kind_alias(self):
        assert resolve_key("product", {"name": "Bun"}) == (1, ("Bun",))

    def test_missing_natural_key_field(self):
        with pytest.raises(InvalidPayload, match="name is required"):
            resolve_key("supply", {"name": None})

    def test_blank_natural_key_field(self):
        with pytest.raises(InvalidPayload):
            resolve_key("merchants", {"name": "   "})

    def test_non_object_record(self):
        with pytest.raises(InvalidPayload):
            resolve_key("supply", ["not", "a", "record"])

    def test_unknown_collection(self):
        with pytest.raises(UnknownCollection):
            resolve_key("invoices", {"name": "x"})
