from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class FreezerTransfer(db.Model):
    """
    Stock moved between two freezers in one step.

    Unlike a trip there is no settlement: the transfer and its items are
    created in one transaction and never modified afterwards.
    """
    __tablename__ = "freezer_transfers"
    __table_args__ = (
        db.Index("ix_freezer_transfers_from", "from_freezer_id", "created_at"),
        db.Index("ix_freezer_transfers_to", "to_freezer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    from_freezer_id = db.Column(db.Integer, nullable=False)
    to_freezer_id = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = db.Column(db.Integer, nullable=False)

    items = db.relationship(
        "FreezerTransferItem", backref="transfer", lazy=True, order_by="FreezerTransferItem.id"
    )

    def __repr__(self) -> str:
        return f"<FreezerTransfer id={self.id} {self.from_freezer_id}->{self.to_freezer_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_freezer_id": self.from_freezer_id,
            "to_freezer_id": self.to_freezer_id,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
            "created_by": self.created_by,
        }


class FreezerTransferItem(db.Model):
    __tablename__ = "freezer_transfer_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("freezer_transfers.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, nullable=False)
    flavor_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transfer_id": self.transfer_id,
            "product_id": self.product_id,
            "flavor_id": self.flavor_id,
            "quantity": self.quantity,
        }
