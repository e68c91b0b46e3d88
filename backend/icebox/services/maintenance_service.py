# Overview: Rebuild denormalized worker aggregates from settled trips and payments.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func

from ..errors import NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import Worker, WorkerPayment, WorkerTrip
from .concurrency import run_in_transaction
from .trip_service import TRIP_STATUS_RETURNED

logger = get_logger("services.maintenance")


@dataclass(frozen=True)
class WorkerAggregates:
    current_debt_cents: int
    total_sales: int
    last_sale: datetime | None

    def to_dict(self) -> dict:
        return {
            "current_debt_cents": self.current_debt_cents,
            "total_sales": self.total_sales,
            "last_sale": self.last_sale.isoformat() if self.last_sale else None,
        }


@dataclass(frozen=True)
class WorkerDrift:
    worker_id: int
    stored: WorkerAggregates
    recomputed: WorkerAggregates

    def to_dict(self) -> dict:
        return {
            "worker_id": self.worker_id,
            "stored": self.stored.to_dict(),
            "recomputed": self.recomputed.to_dict(),
        }


def _recomputed_for(worker_id: int) -> WorkerAggregates:
    charged, sold, last = (
        db.session.query(
            func.coalesce(func.sum(WorkerTrip.amount_due_cents), 0),
            func.coalesce(func.sum(WorkerTrip.sold_quantity), 0),
            func.max(WorkerTrip.return_time),
        )
        .filter(WorkerTrip.worker_id == worker_id, WorkerTrip.status == TRIP_STATUS_RETURNED)
        .one()
    )
    paid = (
        db.session.query(func.coalesce(func.sum(WorkerPayment.amount_cents), 0))
        .filter(WorkerPayment.worker_id == worker_id)
        .scalar()
    )
    return WorkerAggregates(
        current_debt_cents=int(charged) - int(paid),
        total_sales=int(sold),
        last_sale=last,
    )


def _stored_for(worker: Worker) -> WorkerAggregates:
    return WorkerAggregates(
        current_debt_cents=worker.current_debt_cents,
        total_sales=worker.total_sales,
        last_sale=worker.last_sale,
    )


def recompute_worker_aggregates(worker_id: int | None = None, apply: bool = False) -> list[WorkerDrift]:
    """
    Compare stored worker aggregates with values rebuilt from returned trips
    and recorded payments.

    Returns one WorkerDrift per worker whose stored values differ. With
    apply=True the recomputed values are written back in one transaction.
    """

    def _op():
        q = db.session.query(Worker).order_by(Worker.id)
        if worker_id is not None:
            q = q.filter(Worker.id == worker_id)
        workers = q.all()
        if worker_id is not None and not workers:
            raise NotFoundError(f"Worker {worker_id} not found")

        drifts = []
        for worker in workers:
            stored = _stored_for(worker)
            recomputed = _recomputed_for(worker.id)
            if stored == recomputed:
                continue
            drifts.append(WorkerDrift(worker_id=worker.id, stored=stored, recomputed=recomputed))
            if apply:
                worker.current_debt_cents = recomputed.current_debt_cents
                worker.total_sales = recomputed.total_sales
                worker.last_sale = recomputed.last_sale
        db.session.flush()
        return drifts

    drifts = run_in_transaction(_op, operation="recompute_worker_aggregates")
    if drifts:
        logger.warning(
            "Worker aggregates drifted",
            extra={"worker_ids": [d.worker_id for d in drifts], "applied": apply},
        )
    return drifts
