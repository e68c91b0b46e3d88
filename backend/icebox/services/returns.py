# Overview: Restocking of returned goods, shared by trip and owner-sale settlement.

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from ..actor import Actor
from ..errors import NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import InventoryLine
from .inventory_service import PileKey, merge_add_stock
from .schemas import ReturnedItemInput

logger = get_logger("services.returns")


def resolve_provider_id(loaded_items: Sequence, product_id: int, flavor_id: int) -> int:
    """
    Find the provider a returned (product, flavor) originally came from.

    Order of preference:
    1. the current pile of a loaded line with the same key
    2. the provider recorded on that loaded line at load time
    3. any inventory row with the same (product, flavor), lowest id first

    Step 3 is a heuristic: when several providers supply the same
    product/flavor the pick is arbitrary. It is logged so it can be audited.
    """
    matches = [
        li for li in loaded_items
        if li.product_id == product_id and li.flavor_id == flavor_id
    ]

    for li in matches:
        pile = db.session.get(InventoryLine, li.inventory_id)
        if pile is not None:
            return pile.provider_id

    for li in matches:
        if li.provider_id is not None:
            return li.provider_id

    row = (
        db.session.query(InventoryLine.provider_id)
        .filter(
            InventoryLine.product_id == product_id,
            InventoryLine.flavor_id == flavor_id,
        )
        .order_by(InventoryLine.id)
        .first()
    )
    if row is None:
        raise NotFoundError(
            f"No provider found for product {product_id} flavor {flavor_id}",
            details={"product_id": product_id, "flavor_id": flavor_id},
        )

    logger.warning(
        "Provider resolved by inventory fallback",
        extra={"product_id": product_id, "flavor_id": flavor_id, "provider_id": row.provider_id},
    )
    return row.provider_id


def restock_returns(
    *,
    loaded_items: Sequence,
    returned_items: Iterable[ReturnedItemInput],
    build_row: Callable[[ReturnedItemInput], db.Model],
    deformed_owner_id: int,
    actor: Actor,
) -> list:
    """
    Record each returned line and put the goods back into inventory.

    Good units merge into the normal pile of the destination freezer.
    Deformed units merge into a pile scoped to deformed_owner_id (the worker,
    or the owner for owner sales) with min_stock_alert = 0.
    """
    rows = []
    for item in returned_items:
        row = build_row(item)
        db.session.add(row)
        db.session.flush()
        rows.append(row)

        provider_id = resolve_provider_id(loaded_items, item.product_id, item.flavor_id)
        key = PileKey(
            freezer_id=item.destination_freezer_id,
            product_id=item.product_id,
            flavor_id=item.flavor_id,
            provider_id=provider_id,
            is_deformed=item.is_deformed,
            worker_id=deformed_owner_id if item.is_deformed else None,
        )
        merge_add_stock(key, item.quantity, actor)

    return rows
