from __future__ import annotations

from ..extensions import db
from beanlink.time_utils import to_utc_z


class Merchant(db.Model):
    """
    Named business unit under a tenant.

    MULTI-TENANT: identity is (id, mid); names are unique per mid, not globally.
    """
    __tablename__ = "merchants"
    __table_args__ = (
        db.UniqueConstraint("name", "mid", name="uq_merchants_name_mid"),
    )

    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    mid = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Merchant id={self.id} mid={self.mid} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mid": self.mid,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Registration(db.Model):
    """
    A terminal installation, keyed globally by hostname.

    WHY: this is the record that establishes a merchant id. The first sync
    of a hostname is issued the next sequential mid; later syncs may refresh
    contact/location fields and feature flags but never mid or edit_password.
    """
    __tablename__ = "registrations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    hostname = db.Column(db.String(255), nullable=False, unique=True, index=True)
    mid = db.Column(db.Integer, nullable=False, unique=True, index=True)
    edit_password = db.Column(db.String(64), nullable=False)

    business_name = db.Column(db.String(255), nullable=True)
    owner_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Feature toggles pushed down to the terminal
    inventory_enabled = db.Column(db.Boolean, nullable=False, default=True)
    supply_enabled = db.Column(db.Boolean, nullable=False, default=True)
    production_enabled = db.Column(db.Boolean, nullable=False, default=False)
    bom_enabled = db.Column(db.Boolean, nullable=False, default=False)
    multi_merchant_enabled = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Registration id={self.id} hostname={self.hostname!r} mid={self.mid}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hostname": self.hostname,
            "mid": self.mid,
            "edit_password": self.edit_password,
            "business_name": self.business_name,
            "owner_name": self.owner_name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "city": self.city,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "inventory_enabled": self.inventory_enabled,
            "supply_enabled": self.supply_enabled,
            "production_enabled": self.production_enabled,
            "bom_enabled": self.bom_enabled,
            "multi_merchant_enabled": self.multi_merchant_enabled,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
