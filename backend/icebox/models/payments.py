from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class WorkerPayment(db.Model):
    """
    A worker settling the debt of one returned trip.

    At most one payment per trip (trip_id is unique). previous_debt_cents and
    new_debt_cents snapshot the worker's debt around the payment.
    """
    __tablename__ = "worker_payments"
    __table_args__ = (
        db.Index("ix_worker_payments_worker_created", "worker_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False)
    trip_id = db.Column(db.Integer, db.ForeignKey("worker_trips.id"), nullable=False, unique=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    previous_debt_cents = db.Column(db.Integer, nullable=False)
    new_debt_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<WorkerPayment id={self.id} trip={self.trip_id} amount={self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "trip_id": self.trip_id,
            "amount_cents": self.amount_cents,
            "previous_debt_cents": self.previous_debt_cents,
            "new_debt_cents": self.new_debt_cents,
            "created_at": to_utc_z(self.created_at),
            "created_by": self.created_by,
        }
