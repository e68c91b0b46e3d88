from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class WorkerTrip(db.Model):
    """
    A worker's trip: stock leaves with the worker, comes back partially sold.

    LIFECYCLE:
    1. in_progress: loaded items subtracted from inventory
    2. returned: returns restocked, sold quantity and amount due settled (terminal)

    Once returned the row and its items are immutable.
    """
    __tablename__ = "worker_trips"
    __table_args__ = (
        db.Index("ix_worker_trips_worker_departure", "worker_id", "departure_time"),
        db.Index("ix_worker_trips_status_departure", "status", "departure_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False, index=True)
    route_id = db.Column(db.Integer, db.ForeignKey("routes.id"), nullable=True)

    departure_time = db.Column(db.DateTime(timezone=True), nullable=False)
    return_time = db.Column(db.DateTime(timezone=True), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="in_progress")

    sold_quantity = db.Column(db.Integer, nullable=False, default=0)
    amount_due_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = db.Column(db.Integer, nullable=False)

    worker = db.relationship("Worker", backref=db.backref("trips", lazy=True))
    loaded_items = db.relationship(
        "WorkerTripLoadedItem", backref="trip", lazy=True, order_by="WorkerTripLoadedItem.id"
    )
    returned_items = db.relationship(
        "WorkerTripReturnedItem", backref="trip", lazy=True, order_by="WorkerTripReturnedItem.id"
    )

    def __repr__(self) -> str:
        return f"<WorkerTrip id={self.id} worker={self.worker_id} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "route_id": self.route_id,
            "departure_time": to_utc_z(self.departure_time),
            "return_time": to_utc_z(self.return_time),
            "status": self.status,
            "sold_quantity": self.sold_quantity,
            "amount_due_cents": self.amount_due_cents,
            "created_at": to_utc_z(self.created_at),
            "created_by": self.created_by,
        }


class WorkerTripLoadedItem(db.Model):
    """
    Stock loaded onto a trip, taken from one pile.

    provider_id is the pile's provider at load time; the pile itself may be
    gone by settlement (deformed piles are deleted at zero).
    """
    __tablename__ = "worker_trip_loaded_items"
    __table_args__ = (
        db.Index("ix_trip_loaded_product_flavor", "trip_id", "product_id", "flavor_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    trip_id = db.Column(db.Integer, db.ForeignKey("worker_trips.id"), nullable=False, index=True)

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
            "trip_id": self.trip_id,
            "inventory_id": self.inventory_id,
            "product_id": self.product_id,
            "flavor_id": self.flavor_id,
            "freezer_id": self.freezer_id,
            "provider_id": self.provider_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "is_deformed": self.is_deformed,
        }


class WorkerTripReturnedItem(db.Model):
    __tablename__ = "worker_trip_returned_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    trip_id = db.Column(db.Integer, db.ForeignKey("worker_trips.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, nullable=False)
    flavor_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    is_deformed = db.Column(db.Boolean, nullable=False, default=False)
    destination_freezer_id = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "trip_id": self.trip_id,
            "product_id": self.product_id,
            "flavor_id": self.flavor_id,
            "quantity": self.quantity,
            "is_deformed": self.is_deformed,
            "destination_freezer_id": self.destination_freezer_id,
        }
