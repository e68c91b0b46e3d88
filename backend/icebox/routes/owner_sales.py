# backend/icebox/routes/owner_sales.py
"""
Owner sale API routes.
"""
from flask import Blueprint, g, jsonify

from ..actor import MANAGER_ROLES
from ..decorators import require_actor, require_role
from ..services import owner_sale_service
from ..services.schemas import LoadedItemInput, ReturnedItemInput, parse_items
from .params import json_body, limit_arg, optional_int, required_datetime

owner_sales_bp = Blueprint("owner_sales", __name__, url_prefix="/api/owner-sales")


@owner_sales_bp.post("")
@require_actor
@require_role(*MANAGER_ROLES)
def create_owner_sale():
    """
    Start an owner sale; the acting identity is the owner.

    Request body:
    {
        "departure_time": ISO-8601,
        "route_id": int (optional),
        "loaded_items": [...]
    }
    """
    data = json_body()
    sale = owner_sale_service.create_owner_sale(
        departure_time=required_datetime(data, "departure_time"),
        route_id=optional_int(data, "route_id"),
        loaded_items=parse_items(data.get("loaded_items"), LoadedItemInput, "loaded_items"),
        actor=g.actor,
    )
    return jsonify(owner_sale_service.get_owner_sale(sale.id).to_dict()), 201


@owner_sales_bp.post("/<int:sale_id>/complete")
@require_actor
@require_role(*MANAGER_ROLES)
def complete_owner_sale(sale_id: int):
    data = json_body()
    sale = owner_sale_service.complete_owner_sale(
        sale_id,
        parse_items(data.get("returned_items", []), ReturnedItemInput, "returned_items"),
        g.actor,
    )
    return jsonify(owner_sale_service.get_owner_sale(sale.id).to_dict()), 200


@owner_sales_bp.get("")
def list_owner_sales():
    sales = owner_sale_service.list_owner_sales(limit=limit_arg())
    return jsonify({"items": [s.to_dict() for s in sales]}), 200


@owner_sales_bp.get("/<int:sale_id>")
def get_owner_sale(sale_id: int):
    return jsonify(owner_sale_service.get_owner_sale(sale_id).to_dict()), 200
