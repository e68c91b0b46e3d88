# backend/icebox/services/trip_service.py
"""
Worker trip lifecycle.

WHY: A worker leaves with stock from one or more piles, sells along a route
and comes back with leftovers and cash. Settlement turns the difference into
a debt for the worker and money in the cash register.

LIFECYCLE:
1. in_progress: create_trip loads items, subtracting every pile atomically
2. returned: complete_trip restocks returns, settles, posts cash (terminal)

There is no way back from returned, and no second settlement path: the
in_progress filter on the locked re-fetch is the double-settlement guard.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from ..actor import Actor
from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import (
    InventoryLine,
    Route,
    Worker,
    WorkerTrip,
    WorkerTripLoadedItem,
    WorkerTripReturnedItem,
)
from icebox.time_utils import day_bounds, normalize_datetime, utcnow
from .audit_service import record_audit
from .cash_service import ENTRY_WORKER_TRIP, EntryMetadata, append_entry
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import subtract_stock
from .returns import restock_returns
from .schemas import (
    LoadedItemInput,
    ReturnedItemInput,
    validate_loaded_items,
    validate_returned_items,
)
from .settlement import calculate_settlement

logger = get_logger("services.trips")


# Trip status constants
TRIP_STATUS_IN_PROGRESS = "in_progress"
TRIP_STATUS_RETURNED = "returned"


@dataclass
class TripWithItems:
    """Read model: a trip flattened together with its line items."""
    trip: WorkerTrip
    loaded_items: list[WorkerTripLoadedItem]
    returned_items: list[WorkerTripReturnedItem]

    def to_dict(self) -> dict:
        return {
            **self.trip.to_dict(),
            "loaded_items": [item.to_dict() for item in self.loaded_items],
            "returned_items": [item.to_dict() for item in self.returned_items],
        }


def increment_route_usage(route_id: int) -> None:
    rows = (
        db.session.query(Route)
        .filter(Route.id == route_id)
        .update({Route.usage_count: Route.usage_count + 1}, synchronize_session="fetch")
    )
    if rows == 0:
        raise NotFoundError(f"Route {route_id} not found")


def load_from_pile(item: LoadedItemInput, actor: Actor) -> int:
    """Subtract a loaded line from its pile; returns the pile's provider id."""
    pile = db.session.get(InventoryLine, item.inventory_id)
    provider_id = pile.provider_id if pile is not None else None
    subtract_stock(item.inventory_id, item.quantity, actor)
    return provider_id


# =============================================================================
# CREATE
# =============================================================================

def create_trip(
    worker_id: int,
    departure_time: datetime,
    loaded_items: Iterable[LoadedItemInput],
    actor: Actor,
    route_id: int | None = None,
) -> WorkerTrip:
    """
    Load a worker and send them out.

    All-or-nothing: if any pile lacks stock the trip, its lines and every
    earlier subtraction are rolled back.

    Raises:
        BadRequestError: no loaded items, or a non-positive quantity
        NotFoundError: unknown worker or route
        InsufficientStockError: a pile cannot cover its line
    """
    items = validate_loaded_items(loaded_items)
    departure_time = normalize_datetime(departure_time)

    def _op():
        worker = db.session.get(Worker, worker_id)
        if worker is None:
            raise NotFoundError(f"Worker {worker_id} not found")

        trip = WorkerTrip(
            worker_id=worker_id,
            departure_time=departure_time,
            route_id=route_id,
            status=TRIP_STATUS_IN_PROGRESS,
            sold_quantity=0,
            amount_due_cents=0,
            created_at=utcnow(),
            created_by=actor.actor_id,
        )
        db.session.add(trip)
        db.session.flush()  # Get ID

        if route_id is not None:
            increment_route_usage(route_id)

        for item in items:
            line = WorkerTripLoadedItem(
                trip_id=trip.id,
                inventory_id=item.inventory_id,
                product_id=item.product_id,
                flavor_id=item.flavor_id,
                freezer_id=item.freezer_id,
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                is_deformed=item.is_deformed,
            )
            db.session.add(line)
            db.session.flush()
            line.provider_id = load_from_pile(item, actor)

        record_audit(
            action="create",
            table_name="worker_trips",
            record_id=trip.id,
            after=trip.to_dict(),
            actor=actor,
        )
        return trip

    trip = run_in_transaction(_op, operation="create_trip")
    logger.info(
        "Trip created",
        extra={"trip_id": trip.id, "worker_id": worker_id, "loaded_lines": len(items)},
    )
    return trip


# =============================================================================
# COMPLETE
# =============================================================================

def complete_trip(
    trip_id: int,
    returned_items: Iterable[ReturnedItemInput],
    actor: Actor,
) -> WorkerTrip:
    """
    Settle a trip: restock returns, compute sold quantity and amount due,
    charge the worker and post the amount to the cash register.

    Raises:
        NotFoundError: trip missing or already returned
        BadRequestError: a non-positive returned quantity
    """
    items = validate_returned_items(returned_items)

    def _op():
        trip = lock_for_update(
            db.session.query(WorkerTrip).filter(
                WorkerTrip.id == trip_id,
                WorkerTrip.status == TRIP_STATUS_IN_PROGRESS,
            )
        ).first()
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found or already completed")
        before = trip.to_dict()

        loaded = (
            db.session.query(WorkerTripLoadedItem)
            .filter(WorkerTripLoadedItem.trip_id == trip.id)
            .order_by(WorkerTripLoadedItem.id)
            .all()
        )

        restock_returns(
            loaded_items=loaded,
            returned_items=items,
            build_row=lambda item: WorkerTripReturnedItem(
                trip_id=trip.id,
                product_id=item.product_id,
                flavor_id=item.flavor_id,
                quantity=item.quantity,
                is_deformed=item.is_deformed,
                destination_freezer_id=item.destination_freezer_id,
            ),
            deformed_owner_id=trip.worker_id,
            actor=actor,
        )

        result = calculate_settlement(loaded, items)
        if result.over_returned:
            logger.warning(
                "Returned more than loaded; excess ignored",
                extra={"trip_id": trip.id, "over_returned": {f"{p}:{f}": q for (p, f), q in result.over_returned.items()}},
            )

        now = utcnow()
        trip.return_time = now
        trip.status = TRIP_STATUS_RETURNED
        trip.sold_quantity = result.sold_quantity
        trip.amount_due_cents = result.amount_due_cents
        db.session.flush()

        rows = (
            db.session.query(Worker)
            .filter(Worker.id == trip.worker_id)
            .update(
                {
                    Worker.current_debt_cents: Worker.current_debt_cents + result.amount_due_cents,
                    Worker.total_sales: Worker.total_sales + result.sold_quantity,
                    Worker.last_sale: now,
                },
                synchronize_session="fetch",
            )
        )
        if rows == 0:
            raise NotFoundError(f"Worker {trip.worker_id} not found")

        append_entry(
            ENTRY_WORKER_TRIP,
            result.amount_due_cents,
            actor,
            EntryMetadata(
                description=f"Trip {trip.id} settlement",
                related_doc_type="worker_trips",
                related_doc_id=trip.id,
            ),
        )

        record_audit(
            action="update",
            table_name="worker_trips",
            record_id=trip.id,
            before=before,
            after=trip.to_dict(),
            actor=actor,
        )
        return trip

    trip = run_in_transaction(_op, operation="complete_trip")
    logger.info(
        "Trip settled",
        extra={
            "trip_id": trip.id,
            "worker_id": trip.worker_id,
            "sold_quantity": trip.sold_quantity,
            "amount_due_cents": trip.amount_due_cents,
        },
    )
    return trip


# =============================================================================
# READS
# =============================================================================

def get_trip(trip_id: int) -> TripWithItems:
    trip = db.session.get(WorkerTrip, trip_id)
    if trip is None:
        raise NotFoundError(f"Trip {trip_id} not found")
    return TripWithItems(
        trip=trip,
        loaded_items=list(trip.loaded_items),
        returned_items=list(trip.returned_items),
    )


def list_active_trips() -> list[WorkerTrip]:
    return (
        db.session.query(WorkerTrip)
        .filter(WorkerTrip.status == TRIP_STATUS_IN_PROGRESS)
        .order_by(WorkerTrip.departure_time.desc(), WorkerTrip.id.desc())
        .all()
    )


def list_trips_by_worker(worker_id: int, limit: int = 50) -> list[WorkerTrip]:
    if limit <= 0:
        raise BadRequestError("limit must be positive")
    return (
        db.session.query(WorkerTrip)
        .filter(WorkerTrip.worker_id == worker_id)
        .order_by(WorkerTrip.departure_time.desc(), WorkerTrip.id.desc())
        .limit(limit)
        .all()
    )


def todays_returned_trips(today: date | None = None) -> list[WorkerTrip]:
    """Trips that departed today (UTC) and are already settled."""
    start, end = day_bounds(today or utcnow().date())
    return (
        db.session.query(WorkerTrip)
        .filter(
            WorkerTrip.departure_time >= start,
            WorkerTrip.departure_time < end,
            WorkerTrip.status == TRIP_STATUS_RETURNED,
        )
        .order_by(WorkerTrip.departure_time.desc(), WorkerTrip.id.desc())
        .all()
    )
