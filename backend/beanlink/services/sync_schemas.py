from __future__ import annotations

from typing import Any

from flask import current_app

from ..extensions import db
from ..models import (
    Bill,
    BillOfMaterial,
    InventorySnapshot,
    Merchant,
    ProductionLog,
    Product,
    Registration,
    Supply,
)
from ..validation import (
    InvalidPayload,
    UnknownCollection,
    first_present,
    has_any,
    maybe_int,
    to_bool,
    to_number,
    to_text,
)
from beanlink.time_utils import today_iso
from .concurrency import lock_for_update
from .normalizer import normalize

# Keys that never belong in a verbatim payload: identity and server timestamps
RESERVED_KEYS = frozenset({
    "id", "mid", "merchantId", "merchant_id",
    "created_at", "updated_at", "createdAt", "updatedAt",
})


def _required_text(record: dict[str, Any], field: str, *aliases: str) -> str:
    value = to_text(first_present(record, field, *aliases))
    if value is None:
        raise InvalidPayload(f"{field} is required")
    return value


def _json_list(value: Any, field: str) -> list:
    value = normalize(value)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidPayload(f"{field} must be an array")
    return value


class BaseSyncSchema:
    """
    Declarative description of one synced collection.

    Subclasses state the model, how to read the natural key out of a
    record, and which columns an insert/update writes. The upsert engine
    owns the lookup-then-write sequence and the timestamps.
    """

    name: str = ""
    model: Any = None
    natural_key_columns: tuple[str, ...] = ()
    merchant_scoped = True

    def natural_key(self, record: dict[str, Any]) -> tuple:
        raise NotImplementedError

    def client_id(self, record: dict[str, Any]) -> int | None:
        return maybe_int(record.get("id"))

    def insert_values(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.update_values(record)

    def update_values(self, record: dict[str, Any]) -> dict[str, Any]:
        """Columns overwritten on every sync (full replace, not merge)."""
        return {}

    def apply_update(self, row: Any, record: dict[str, Any]) -> None:
        for column, value in self.update_values(record).items():
            setattr(row, column, value)

    def lookup(self, mid: int | None, key: tuple) -> Any:
        if not key:
            return None
        filters = dict(zip(self.natural_key_columns, key))
        if self.merchant_scoped:
            filters["mid"] = mid
        query = db.session.query(self.model).filter_by(**filters)
        return lock_for_update(query).first()

    def list_order(self) -> list:
        return [self.model.mid.asc(), self.model.id.asc()]


class MerchantsSchema(BaseSyncSchema):
    name = "merchants"
    model = Merchant
    natural_key_columns = ("name",)

    def natural_key(self, record):
        return (_required_text(record, "name", "merchantName", "merchant_name"),)

    def insert_values(self, record):
        return {"name": self.natural_key(record)[0]}


class BillsSchema(BaseSyncSchema):
    """
    Bills are matched on an explicit id when the terminal sends one, else
    on the bill number text within the tenant. A bill with neither always
    inserts.

    The key is (id, bill_number) with exactly one side set. A bill number is
    never matched against ids, so it cannot land on another bill's
    server-allocated id.

    New rows take the explicit id, else the integral bill number, else an
    allocated id. bill_number itself is not unique: two bills with distinct
    explicit ids may share it.
    """

    name = "bills"
    model = Bill
    natural_key_columns = ("id", "bill_number")

    @staticmethod
    def _bill_number(record):
        return to_text(first_present(record, "billNumber", "bill_number"))

    def natural_key(self, record):
        bill_id = maybe_int(record.get("id"))
        if bill_id is not None:
            return (bill_id, None)
        bill_number = self._bill_number(record)
        if bill_number is not None:
            return (None, bill_number)
        return ()

    def client_id(self, record):
        bill_id = maybe_int(record.get("id"))
        if bill_id is None:
            bill_id = maybe_int(self._bill_number(record))
        return bill_id

    def lookup(self, mid, key):
        if not key:
            return None
        bill_id, bill_number = key
        query = db.session.query(Bill).filter(Bill.mid == mid)
        if bill_id is not None:
            query = query.filter(Bill.id == bill_id)
        else:
            query = query.filter(Bill.bill_number == bill_number).order_by(Bill.id.asc())
        return lock_for_update(query).first()

    def update_values(self, record):
        return {
            "bill_number": self._bill_number(record),
            "data": record,
        }


class InventorySchema(BaseSyncSchema):
    name = "inventory"
    model = InventorySnapshot
    natural_key_columns = ("merchant_name", "date")

    def natural_key(self, record):
        return (
            _required_text(record, "merchant_name", "merchantName"),
            _required_text(record, "date"),
        )

    def insert_values(self, record):
        merchant_name, date = self.natural_key(record)
        return {"merchant_name": merchant_name, "date": date, **self.update_values(record)}

    def update_values(self, record):
        return {"data": _json_list(first_present(record, "rows", "items", "data"), "rows")}


class SupplySchema(BaseSyncSchema):
    name = "supply"
    model = Supply
    natural_key_columns = ("name",)

    def natural_key(self, record):
        return (_required_text(record, "name"),)

    def insert_values(self, record):
        return {"name": self.natural_key(record)[0]}


class ProductionSchema(BaseSyncSchema):
    """Payload is the explicit "data" field when sent, else every non-key field verbatim."""

    name = "production"
    model = ProductionLog
    natural_key_columns = ("date",)

    def natural_key(self, record):
        return (_required_text(record, "date"),)

    def insert_values(self, record):
        return {"date": self.natural_key(record)[0], **self.update_values(record)}

    def update_values(self, record):
        if "data" in record:
            payload = normalize(record["data"])
        else:
            payload = {k: v for k, v in record.items() if k not in RESERVED_KEYS and k != "date"}
        return {"data": payload}

    def list_order(self):
        return [ProductionLog.date.desc(), ProductionLog.mid.asc()]


class ProductsSchema(BaseSyncSchema):
    name = "products"
    model = Product
    natural_key_columns = ("name",)

    def natural_key(self, record):
        return (_required_text(record, "name", "productName", "product_name"),)

    def insert_values(self, record):
        return {"name": self.natural_key(record)[0], **self.update_values(record)}

    def update_values(self, record):
        return {
            "list_price": to_number(first_present(record, "listPrice", "list_price", "mrp")),
            "wholesale_price": to_number(first_present(record, "wholesalePrice", "wholesale_price")),
            "sale_price": to_number(first_present(record, "salePrice", "sale_price", "price")),
            "unit": to_text(first_present(record, "unit", "uom")) or "unit",
            "discount": to_number(record.get("discount")),
            "tax_rate": to_number(first_present(record, "taxRate", "tax_rate", "tax")),
            "effective_date": to_text(first_present(record, "effectiveDate", "effective_date")) or today_iso(),
        }


class BillOfMaterialSchema(BaseSyncSchema):
    name = "bom"
    model = BillOfMaterial
    natural_key_columns = ("name",)

    def natural_key(self, record):
        return (_required_text(record, "name", "productName", "product_name"),)

    def insert_values(self, record):
        return {"name": self.natural_key(record)[0], **self.update_values(record)}

    def update_values(self, record):
        return {
            "items": _json_list(first_present(record, "items", "materials"), "items"),
            "effective_date": to_text(first_present(record, "effectiveDate", "effective_date")) or today_iso(),
        }


# (column, aliases) for fields a re-sync may refresh
REGISTRATION_CONTACT_FIELDS = (
    ("business_name", ("businessName", "business_name", "name")),
    ("owner_name", ("ownerName", "owner_name")),
    ("phone", ("phone", "mobile")),
    ("email", ("email",)),
    ("address", ("address",)),
    ("city", ("city",)),
)
REGISTRATION_LOCATION_FIELDS = (
    ("latitude", ("latitude", "lat")),
    ("longitude", ("longitude", "lng", "lon")),
)
# column -> (aliases, insert-time default)
REGISTRATION_FLAGS = {
    "inventory_enabled": (("inventoryEnabled", "inventory_enabled"), True),
    "supply_enabled": (("supplyEnabled", "supply_enabled"), True),
    "production_enabled": (("productionEnabled", "production_enabled"), False),
    "bom_enabled": (("bomEnabled", "bom_enabled"), False),
    "multi_merchant_enabled": (("multiMerchantEnabled", "multi_merchant_enabled"), False),
}


class RegistrationSchema(BaseSyncSchema):
    """
    Global (not merchant-scoped) registry of terminals.

    mid and edit_password are written on insert only. Refreshable fields
    are written only when the client actually sent them, so an omitted
    flag keeps its stored value while an explicit false overrides it.
    """

    name = "registration"
    model = Registration
    natural_key_columns = ("hostname",)
    merchant_scoped = False

    def natural_key(self, record):
        return (_required_text(record, "hostname", "hostName", "host_name"),)

    def client_id(self, record):
        return None

    def insert_values(self, record):
        default_password = current_app.config.get("REGISTRATION_DEFAULT_EDIT_PASSWORD", "1234")
        values: dict[str, Any] = {
            "hostname": self.natural_key(record)[0],
            "edit_password": to_text(first_present(record, "editPassword", "edit_password")) or default_password,
        }
        for column, (aliases, default) in REGISTRATION_FLAGS.items():
            values[column] = to_bool(first_present(record, *aliases)) if has_any(record, *aliases) else default
        for column, aliases in REGISTRATION_CONTACT_FIELDS:
            values[column] = to_text(first_present(record, *aliases))
        for column, aliases in REGISTRATION_LOCATION_FIELDS:
            values[column] = self._coordinate(record, aliases)
        return values

    def update_values(self, record):
        values: dict[str, Any] = {}
        for column, (aliases, _default) in REGISTRATION_FLAGS.items():
            if has_any(record, *aliases):
                values[column] = to_bool(first_present(record, *aliases))
        for column, aliases in REGISTRATION_CONTACT_FIELDS:
            if has_any(record, *aliases):
                values[column] = to_text(first_present(record, *aliases))
        for column, aliases in REGISTRATION_LOCATION_FIELDS:
            if has_any(record, *aliases):
                values[column] = self._coordinate(record, aliases)
        return values

    @staticmethod
    def _coordinate(record, aliases) -> float | None:
        value = first_present(record, *aliases)
        if value is None or value == "":
            return None
        return float(to_number(value))

    def list_order(self):
        return [Registration.updated_at.desc(), Registration.id.desc()]


SCHEMAS: dict[str, BaseSyncSchema] = {
    schema.name: schema
    for schema in (
        MerchantsSchema(),
        BillsSchema(),
        InventorySchema(),
        SupplySchema(),
        ProductionSchema(),
        ProductsSchema(),
        BillOfMaterialSchema(),
        RegistrationSchema(),
    )
}

KIND_ALIASES = {
    "merchant": "merchants",
    "bill": "bills",
    "product": "products",
    "bill-of-material": "bom",
    "bill_of_material": "bom",
    "bill-of-materials": "bom",
    "registrations": "registration",
}


def get_schema(kind: str) -> BaseSyncSchema:
    name = KIND_ALIASES.get(kind, kind)
    schema = SCHEMAS.get(name)
    if not schema:
        raise UnknownCollection(f"Unsupported collection: {kind}", key=kind)
    return schema
