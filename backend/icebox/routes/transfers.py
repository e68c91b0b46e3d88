# backend/icebox/routes/transfers.py
"""
Freezer transfer API routes.
"""
from flask import Blueprint, g, jsonify, request

from ..actor import MANAGER_ROLES
from ..decorators import require_actor, require_role
from ..services import transfer_service
from ..services.schemas import TransferItemInput, parse_items
from .params import json_body, limit_arg, optional_str, required_int

transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.post("")
@require_actor
@require_role(*MANAGER_ROLES)
def create_transfer():
    """
    Move stock between two freezers.

    Request body:
    {
        "from_freezer_id": int,
        "to_freezer_id": int,
        "reason": str (optional),
        "items": [{"product_id", "flavor_id", "quantity"}]
    }

    Returns:
        201: Transfer done
        400: Invalid request
        404: No source pile for an item
        409: Insufficient stock
    """
    data = json_body()
    record = transfer_service.transfer(
        from_freezer_id=required_int(data, "from_freezer_id"),
        to_freezer_id=required_int(data, "to_freezer_id"),
        items=parse_items(data.get("items"), TransferItemInput, "items"),
        reason=optional_str(data, "reason"),
        actor=g.actor,
    )
    return jsonify(transfer_service.get_transfer(record.id).to_dict()), 201


@transfers_bp.get("")
def list_transfers():
    freezer_id = request.args.get("freezer_id", type=int)
    if freezer_id is not None:
        records = transfer_service.list_transfers_by_freezer(freezer_id)
    else:
        records = transfer_service.list_transfers(limit=limit_arg())
    return jsonify({"items": [r.to_dict() for r in records]}), 200


@transfers_bp.get("/<int:transfer_id>")
def get_transfer(transfer_id: int):
    return jsonify(transfer_service.get_transfer(transfer_id).to_dict()), 200
