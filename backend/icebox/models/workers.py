from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z


class Worker(db.Model):
    """
    Mobile sales agent.

    current_debt_cents / total_sales / last_sale are denormalized projections
    maintained by trip settlement in the same transaction; see
    maintenance_service.recompute_worker_aggregates for the from-scratch path.
    """
    __tablename__ = "workers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    current_debt_cents = db.Column(db.Integer, nullable=False, default=0)
    total_sales = db.Column(db.Integer, nullable=False, default=0)
    last_sale = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Worker id={self.id} name={self.name!r} debt={self.current_debt_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "current_debt_cents": self.current_debt_cents,
            "total_sales": self.total_sales,
            "last_sale": to_utc_z(self.last_sale),
            "created_at": to_utc_z(self.created_at),
        }


class Route(db.Model):
    """Named sales route. usage_count grows by one per trip or owner sale that uses it."""
    __tablename__ = "routes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    usage_count = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "usage_count": self.usage_count,
        }
