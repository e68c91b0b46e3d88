# backend/icebox/routes/trips.py
"""
Worker trip API routes.
"""
from flask import Blueprint, g, jsonify

from ..actor import MANAGER_ROLES
from ..decorators import require_actor, require_role
from ..services import trip_service
from ..services.schemas import LoadedItemInput, ReturnedItemInput, parse_items
from .params import json_body, limit_arg, optional_int, required_datetime, required_int

trips_bp = Blueprint("trips", __name__, url_prefix="/api/trips")


@trips_bp.post("")
@require_actor
@require_role(*MANAGER_ROLES)
def create_trip():
    """
    Load a worker and start a trip.

    Request body:
    {
        "worker_id": int,
        "departure_time": ISO-8601,
        "route_id": int (optional),
        "loaded_items": [
            {"inventory_id", "product_id", "flavor_id", "freezer_id",
             "quantity", "unit_price_cents", "is_deformed"}
        ]
    }

    Returns:
        201: Trip created
        400: Invalid request
        404: Unknown worker or route
        409: Insufficient stock
    """
    data = json_body()
    trip = trip_service.create_trip(
        worker_id=required_int(data, "worker_id"),
        departure_time=required_datetime(data, "departure_time"),
        route_id=optional_int(data, "route_id"),
        loaded_items=parse_items(data.get("loaded_items"), LoadedItemInput, "loaded_items"),
        actor=g.actor,
    )
    return jsonify(trip_service.get_trip(trip.id).to_dict()), 201


@trips_bp.post("/<int:trip_id>/complete")
@require_actor
@require_role(*MANAGER_ROLES)
def complete_trip(trip_id: int):
    """
    Settle a trip with the goods that came back.

    Request body:
    {
        "returned_items": [
            {"product_id", "flavor_id", "quantity", "destination_freezer_id", "is_deformed"}
        ]
    }

    Returns:
        200: Trip settled
        404: Trip missing or already settled
    """
    data = json_body()
    trip = trip_service.complete_trip(
        trip_id,
        parse_items(data.get("returned_items", []), ReturnedItemInput, "returned_items"),
        g.actor,
    )
    return jsonify(trip_service.get_trip(trip.id).to_dict()), 200


@trips_bp.get("/active")
def active_trips():
    return jsonify({"items": [t.to_dict() for t in trip_service.list_active_trips()]}), 200


@trips_bp.get("/today")
def todays_trips():
    return jsonify({"items": [t.to_dict() for t in trip_service.todays_returned_trips()]}), 200


@trips_bp.get("/by-worker/<int:worker_id>")
def trips_by_worker(worker_id: int):
    trips = trip_service.list_trips_by_worker(worker_id, limit=limit_arg())
    return jsonify({"items": [t.to_dict() for t in trips]}), 200


@trips_bp.get("/<int:trip_id>")
def get_trip(trip_id: int):
    return jsonify(trip_service.get_trip(trip_id).to_dict()), 200
