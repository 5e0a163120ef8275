from __future__ import annotations

from ..extensions import db


class SyncSequence(db.Model):
    """
    Next server-assigned id per (collection, mid).

    Registrations use scope_mid=0: their sequence is global and issues mids.
    """
    __tablename__ = "sync_sequences"
    __table_args__ = (
        db.UniqueConstraint("collection", "scope_mid", name="uq_sync_sequences_collection_mid"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(32), nullable=False)
    scope_mid = db.Column(db.Integer, nullable=False)
    next_id = db.Column(db.BigInteger, nullable=False, default=1)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<SyncSequence {self.collection}/{self.scope_mid} next={self.next_id}>"
