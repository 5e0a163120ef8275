from __future__ import annotations

from ..extensions import db
from beanlink.time_utils import to_utc_z


class Supply(db.Model):
    """Named supply source. Carries no payload; a re-sync only touches updated_at."""
    __tablename__ = "supply"
    __table_args__ = (
        db.UniqueConstraint("name", "mid", name="uq_supply_name_mid"),
    )

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supply id={self.id} mid={self.mid} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Catalog entry with pricing.

    Every pricing field is replaced on each sync; absent numbers become 0.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("name", "mid", name="uq_products_name_mid"),
    )

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)

    list_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    wholesale_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    sale_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default="unit")
    discount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    tax_rate = db.Column(db.Numeric(6, 2, asdecimal=False), nullable=False, default=0)
    effective_date = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} mid={self.mid} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "name": self.name,
            "list_price": self.list_price,
            "wholesale_price": self.wholesale_price,
            "sale_price": self.sale_price,
            "unit": self.unit,
            "discount": self.discount,
            "tax_rate": self.tax_rate,
            "effective_date": self.effective_date,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class BillOfMaterial(db.Model):
    """Recipe: the items consumed to produce one named product."""
    __tablename__ = "bill_of_materials"
    __table_args__ = (
        db.UniqueConstraint("name", "mid", name="uq_bill_of_materials_name_mid"),
    )

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)
    items = db.Column(db.JSON, nullable=False, default=list)
    effective_date = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<BillOfMaterial id={self.id} mid={self.mid} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "name": self.name,
            "items": self.items,
            "effective_date": self.effective_date,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
