from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class InventoryLine(db.Model):
    """
    One homogeneous pile of stock inside a freezer.

    PILE IDENTITY (merge key):
    (freezer_id, product_id, flavor_id, provider_id, is_deformed, assigned_worker_id)

    - quantity is never negative: decrements are conditional updates and the
      CHECK constraint backs that up at the storage layer.
    - Normal piles persist at quantity 0 so their min_stock_alert survives.
    - Deformed piles are worker-scoped, always carry min_stock_alert = 0 and
      are deleted when they reach 0.

    Catalog ids (freezer/product/flavor/provider) are owned by the catalog
    service and are not foreign keys here.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint(
            "freezer_id", "product_id", "flavor_id", "provider_id", "is_deformed", "assigned_worker_id",
            name="uq_inventory_pile",
        ),
        # NULLs are distinct in uq_inventory_pile, so unassigned piles need their own index.
        db.Index(
            "uq_inventory_unassigned_pile",
            "freezer_id", "product_id", "flavor_id", "provider_id", "is_deformed",
            unique=True,
            sqlite_where=db.text("assigned_worker_id IS NULL"),
            postgresql_where=db.text("assigned_worker_id IS NULL"),
        ),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        db.Index("ix_inventory_product_flavor", "product_id", "flavor_id"),
        db.Index("ix_inventory_worker_deformed", "assigned_worker_id", "is_deformed"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    freezer_id = db.Column(db.Integer, nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False)
    flavor_id = db.Column(db.Integer, nullable=False)
    provider_id = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_alert = db.Column(db.Integer, nullable=False, default=0)

    is_deformed = db.Column(db.Boolean, nullable=False, default=False, index=True)
    assigned_worker_id = db.Column(db.Integer, nullable=True)

    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_by = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryLine id={self.id} freezer={self.freezer_id} product={self.product_id} "
            f"flavor={self.flavor_id} qty={self.quantity} deformed={self.is_deformed}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "freezer_id": self.freezer_id,
            "product_id": self.product_id,
            "flavor_id": self.flavor_id,
            "provider_id": self.provider_id,
            "quantity": self.quantity,
            "min_stock_alert": self.min_stock_alert,
            "is_deformed": self.is_deformed,
            "assigned_worker_id": self.assigned_worker_id,
            "last_updated": to_utc_z(self.last_updated),
            "updated_by": self.updated_by,
        }
