from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class OwnerSale(db.Model):
    """
    The owner's own selling run.

    Same shape as WorkerTrip without an explicit status: return_time IS NULL
    means open, non-null means settled. Settlement posts an income entry and
    an equal withdrawal (auto_withdrawal_cents) to the cash ledger, so the
    balance is unchanged but the money stays traceable.
    """
    __tablename__ = "owner_sales"
    __table_args__ = (
        db.Index("ix_owner_sales_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, nullable=False, index=True)
    route_id = db.Column(db.Integer, db.ForeignKey("routes.id"), nullable=True)

    departure_time = db.Column(db.DateTime(timezone=True), nullable=False)
    return_time = db.Column(db.DateTime(timezone=True), nullable=True)

    sold_quantity = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    auto_withdrawal_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = db.Column(db.Integer, nullable=False)

    loaded_items = db.relationship(
        "OwnerSaleLoadedItem", backref="sale", lazy=True, order_by="OwnerSaleLoadedItem.id"
    )
    returned_items = db.relationship(
        "OwnerSaleReturnedItem", backref="sale", lazy=True, order_by="OwnerSaleReturnedItem.id"
    )

    @property
    def is_open(self) -> bool:
        return self.return_time is None

    def __repr__(self) -> str:
        return f"<OwnerSale id={self.id} owner={self.owner_id} open={self.is_open}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "route_id": self.route_id,
            "departure_time": to_utc_z(self.departure_time),
            "return_time": to_utc_z(self.return_time),
            "sold_quantity": self.sold_quantity,
            "total_amount_cents": self.total_amount_cents,
            "auto_withdrawal_cents": self.auto_withdrawal_cents,
            "created_at": to_utc_z(self.created_at),
            "created_by": self.created_by,
        }


class OwnerSaleLoadedItem(db.Model):
    __tablename__ = "owner_sale_loaded_items"
    __table_args__ = (
        db.Index("ix_owner_loaded_product_flavor", "sale_id", "product_id", "flavor_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("owner_sales.id"), nullable=False, index=True)

    inventory_id = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, nullable=False)
    flavor_id = db.Column(db.Integer, nullable=False)
    freezer_id = db.Column(db.Integer, nullable=False)
    provider_id = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    is_deformed = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "inventory_id": self.inventory_id,
            "product_id": self.product_id,
            "flavor_id": self.flavor_id,
            "freezer_id": self.freezer_id,
            "provider_id": self.provider_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "is_deformed": self.is_deformed,
        }


class OwnerSaleReturnedItem(db.Model):
    __tablename__ = "owner_sale_returned_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("owner_sales.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, nullable=False)
    flavor_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    is_deformed = db.Column(db.Boolean, nullable=False, default=False)
    destination_freezer_id = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "flavor_id": self.flavor_id,
            "quantity": self.quantity,
            "is_deformed": self.is_deformed,
            "destination_freezer_id": self.destination_freezer_id,
        }
