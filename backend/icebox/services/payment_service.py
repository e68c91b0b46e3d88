# backend/icebox/services/payment_service.py
"""
Worker debt payments.

A returned trip leaves its amount due on the worker's current_debt_cents.
pay_worker clears that amount, once per trip.

The register already received +amount_due when the trip was settled, so a
payment only moves the worker's debt; it posts no cash entry.
"""
from __future__ import annotations

from ..actor import Actor
from ..errors import BadRequestError, ConflictError, NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import Worker, WorkerPayment, WorkerTrip
from .audit_service import record_audit
from .concurrency import lock_for_update, run_in_transaction
from .trip_service import TRIP_STATUS_RETURNED

logger = get_logger("services.payments")


def pay_worker(trip_id: int, actor: Actor) -> WorkerPayment:
    """
    Record that the worker paid the amount due of a returned trip.

    Invariants (authoritative):
    - One payment per trip. The unique trip_id column backs the pre-check,
      so a racing second payment fails with ConflictError.
    - new_debt_cents = previous_debt_cents - trip.amount_due_cents

    Raises:
        NotFoundError: trip or worker missing
        BadRequestError: trip not returned yet
        ConflictError: trip already paid
    """

    def _op():
        trip = db.session.get(WorkerTrip, trip_id)
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found")
        if trip.status != TRIP_STATUS_RETURNED:
            raise BadRequestError(f"Trip {trip_id} is not returned yet")

        existing = db.session.query(WorkerPayment.id).filter(WorkerPayment.trip_id == trip.id).first()
        if existing is not None:
            raise ConflictError(
                f"Trip {trip_id} is already paid",
                details={"payment_id": existing.id},
            )

        worker = lock_for_update(db.session.query(Worker).filter(Worker.id == trip.worker_id)).first()
        if worker is None:
            raise NotFoundError(f"Worker {trip.worker_id} not found")

        previous = worker.current_debt_cents
        payment = WorkerPayment(
            worker_id=worker.id,
            trip_id=trip.id,
            amount_cents=trip.amount_due_cents,
            previous_debt_cents=previous,
            new_debt_cents=previous - trip.amount_due_cents,
            created_by=actor.actor_id,
        )
        db.session.add(payment)
        worker.current_debt_cents = payment.new_debt_cents
        db.session.flush()

        record_audit(
            action="create",
            table_name="worker_payments",
            record_id=payment.id,
            after=payment.to_dict(),
            actor=actor,
        )
        return payment

    payment = run_in_transaction(_op, operation="pay_worker")
    logger.info(
        "Worker payment recorded",
        extra={
            "payment_id": payment.id,
            "trip_id": payment.trip_id,
            "worker_id": payment.worker_id,
            "amount_cents": payment.amount_cents,
        },
    )
    return payment


def get_payment_by_trip(trip_id: int) -> WorkerPayment:
    payment = db.session.query(WorkerPayment).filter(WorkerPayment.trip_id == trip_id).first()
    if payment is None:
        raise NotFoundError(f"No payment for trip {trip_id}")
    return payment


def list_payments_by_worker(worker_id: int, limit: int = 50) -> list[WorkerPayment]:
    if limit <= 0:
        raise BadRequestError("limit must be positive")
    return (
        db.session.query(WorkerPayment)
        .filter(WorkerPayment.worker_id == worker_id)
        .order_by(WorkerPayment.created_at.desc(), WorkerPayment.id.desc())
        .limit(limit)
        .all()
    )
