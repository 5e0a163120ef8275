# Overview: Pytest coverage for terminal registration and merchant id issuance.

"""
Registration Tests

The first sync of a hostname issues the next merchant id. Later syncs may
refresh contact details, location and feature flags, but the issued mid
and the edit password are fixed at first sync.
"""

from beanlink.models import Registration
from beanlink.services import sync_service


def _register(hostname, **fields):
    return sync_service.upsert("registration", {"hostname": hostname, **fields})


class TestMerchantIdIssuance:
    def test_first_registration_gets_mid_one(self, db_session):
        assert _register("till-01")["mid"] == 1

    def test_mids_are_sequential(self, db_session):
        mids = [_register(f"till-{i:02d}")["mid"] for i in range(1, 4)]
        assert mids == [1, 2, 3]

    def test_client_supplied_mid_is_ignored(self, db_session):
        row = _register("till-01", mid=77, merchantId=77)
        assert row["mid"] == 1

    def test_resync_keeps_issued_mid(self, db_session, count_rows):
        first = _register("till-01")
        _register("till-02")
        again = _register("till-01", mid=99)

        assert again["mid"] == first["mid"]
        assert again["id"] == first["id"]
        assert count_rows(Registration) == 2


class TestEditPassword:
    def test_default_password_from_config(self, db_session):
        assert _register("till-01")["edit_password"] == "4321"

    def test_first_sync_password_is_kept(self, db_session):
        assert _register("till-01", editPassword="9999")["edit_password"] == "9999"

    def test_resync_never_changes_password(self, db_session):
        _register("till-01", editPassword="9999")
        row = _register("till-01", editPassword="0000", edit_password="0000")
        assert row["edit_password"] == "9999"


class TestFeatureFlags:
    def test_insert_defaults(self, db_session):
        row = _register("till-01")

        assert row["inventory_enabled"] is True
        assert row["supply_enabled"] is True
        assert row["production_enabled"] is False
        assert row["bom_enabled"] is False
        assert row["multi_merchant_enabled"] is False

    def test_omitted_flag_keeps_stored_value(self, db_session):
        _register("till-01", productionEnabled=True)
        row = _register("till-01", businessName="Corner Bakery")

        assert row["production_enabled"] is True
        assert row["business_name"] == "Corner Bakery"

    def test_explicit_false_overrides(self, db_session):
        _register("till-01")
        row = _register("till-01", inventoryEnabled=False, supply_enabled="false")

        assert row["inventory_enabled"] is False
        assert row["supply_enabled"] is False


class TestRefreshableFields:
    def test_contact_and_location_refresh(self, db_session):
        _register("till-01", businessName="Old", phone="111", latitude="12.5", lng=77.1)
        row = _register("till-01", businessName="New", city="Pune")

        assert row["business_name"] == "New"
        assert row["city"] == "Pune"
        assert row["phone"] == "111"
        assert row["latitude"] == 12.5
        assert row["longitude"] == 77.1

    def test_updated_at_moves_created_at_does_not(self, db_session):
        first = _register("till-01")
        again = _register("till-01", phone="222")

        assert again["created_at"] == first["created_at"]
        assert again["updated_at"] >= first["updated_at"]


class TestLookup:
    def test_get_registration_by_hostname(self, db_session):
        _register("till-01", businessName="Corner Bakery")
        row = sync_service.get_registration("till-01")
        assert row["business_name"] == "Corner Bakery"
        assert row["mid"] == 1

    def test_missing_registration(self, db_session):
        assert sync_service.get_registration("nope") is None
