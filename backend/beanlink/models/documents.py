from __future__ import annotations

from ..extensions import db
from beanlink.time_utils import to_utc_z


class Bill(db.Model):
    """
    A sale as recorded by the terminal, stored opaquely.

    bill_number is informational: only (id, mid) is unique.
    """
    __tablename__ = "bills"

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    bill_number = db.Column(db.String(64), nullable=True, index=True)
    data = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Bill id={self.id} mid={self.mid} bill_number={self.bill_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "bill_number": self.bill_number,
            "data": self.data,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventorySnapshot(db.Model):
    """One stock count per merchant name, date and tenant."""
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("merchant_name", "date", "mid", name="uq_inventory_merchant_date_mid"),
    )

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    merchant_name = db.Column(db.String(255), nullable=False)
    date = db.Column(db.String(32), nullable=False)
    data = db.Column(db.JSON, nullable=True)  # counted rows

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<InventorySnapshot id={self.id} mid={self.mid} merchant_name={self.merchant_name!r} date={self.date}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "merchant_name": self.merchant_name,
            "date": self.date,
            "data": self.data,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductionLog(db.Model):
    """Daily production log: one per date per tenant."""
    __tablename__ = "production"
    __table_args__ = (
        db.UniqueConstraint("date", "mid", name="uq_production_date_mid"),
    )

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    date = db.Column(db.String(32), nullable=False)
    data = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<ProductionLog id={self.id} mid={self.mid} date={self.date}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "date": self.date,
            "data": self.data,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
