# backend/icebox/routes/payments.py
"""
Worker debt payment API routes.
"""
from flask import Blueprint, g, jsonify

from ..actor import MANAGER_ROLES
from ..decorators import require_actor, require_role
from ..services import payment_service
from .params import json_body, limit_arg, required_int

payments_bp = Blueprint("payments", __name__, url_prefix="/api/worker-payments")


@payments_bp.post("")
@require_actor
@require_role(*MANAGER_ROLES)
def pay_worker():
    """
    Record the payment of a returned trip's amount due.

    Request body:
    {
        "trip_id": int
    }

    Returns:
        201: Payment recorded
        400: Trip not returned yet
        404: Unknown trip
        409: Trip already paid
    """
    data = json_body()
    payment = payment_service.pay_worker(required_int(data, "trip_id"), g.actor)
    return jsonify(payment.to_dict()), 201


@payments_bp.get("/worker/<int:worker_id>")
def payments_by_worker(worker_id: int):
    payments = payment_service.list_payments_by_worker(worker_id, limit=limit_arg())
    return jsonify({"items": [p.to_dict() for p in payments]}), 200


@payments_bp.get("/trip/<int:trip_id>")
def payment_for_trip(trip_id: int):
    return jsonify(payment_service.get_payment_by_trip(trip_id).to_dict()), 200
