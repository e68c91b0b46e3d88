# backend/icebox/routes/inventory.py
"""
Inventory pile API routes.
"""
from flask import Blueprint, g, jsonify, request

from ..actor import MANAGER_ROLES
from ..decorators import require_actor, require_role
from ..services import inventory_service
from .params import json_body, required_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _piles(piles):
    return jsonify({"items": [p.to_dict() for p in piles]}), 200


@inventory_bp.get("")
def list_piles():
    """
    List piles.

    Query:
        freezer_id: only piles in this freezer
        sellable=1: only non-deformed piles
    """
    freezer_id = request.args.get("freezer_id", type=int)
    if freezer_id is not None:
        return _piles(inventory_service.list_by_freezer(freezer_id))
    if request.args.get("sellable") in ("1", "true"):
        return _piles(inventory_service.list_sellable())
    return _piles(inventory_service.list_all())


@inventory_bp.get("/low-stock")
def low_stock():
    return _piles(inventory_service.list_low_stock())


@inventory_bp.get("/deformed/<int:worker_id>")
def worker_deformed(worker_id: int):
    return _piles(inventory_service.list_worker_deformed(worker_id))


@inventory_bp.get("/<int:pile_id>")
def get_pile(pile_id: int):
    return jsonify(inventory_service.get_pile(pile_id).to_dict()), 200


@inventory_bp.post("/purchases")
@require_actor
@require_role(*MANAGER_ROLES)
def purchase():
    """
    Receive stock from a provider.

    Request body:
    {
        "freezer_id": int,
        "product_id": int,
        "flavor_id": int,
        "provider_id": int,
        "quantity": int
    }
    """
    data = json_body()
    pile = inventory_service.add_stock(
        freezer_id=required_int(data, "freezer_id"),
        product_id=required_int(data, "product_id"),
        flavor_id=required_int(data, "flavor_id"),
        provider_id=required_int(data, "provider_id"),
        quantity=required_int(data, "quantity"),
        actor=g.actor,
    )
    return jsonify(pile.to_dict()), 201


@inventory_bp.post("/<int:pile_id>/subtract")
@require_actor
@require_role(*MANAGER_ROLES)
def subtract(pile_id: int):
    data = json_body()
    inventory_service.subtract_inventory(pile_id, required_int(data, "quantity"), g.actor)
    return jsonify({"inventory_id": pile_id, "status": "ok"}), 200


@inventory_bp.patch("/<int:pile_id>/alert")
@require_actor
@require_role(*MANAGER_ROLES)
def update_alert(pile_id: int):
    data = json_body()
    pile = inventory_service.update_alert(pile_id, required_int(data, "min_stock_alert"), g.actor)
    return jsonify(pile.to_dict()), 200
