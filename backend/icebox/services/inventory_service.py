# Overview: Service-layer operations for inventory piles; encapsulates business logic and database work.

# backend/icebox/services/inventory_service.py

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..actor import Actor
from ..errors import BadRequestError, InsufficientStockError, NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import InventoryLine
from icebox.time_utils import utcnow
from .audit_service import record_audit
from .concurrency import run_in_transaction
"""
Inventory Ledger Invariants (authoritative)

Pile model:
- Stock is a mutable quantity per pile; a pile is identified by
  (freezer, product, flavor, provider, is_deformed, assigned_worker_id).
- quantity >= 0 at all times.

Subtract:
- One conditional UPDATE ... WHERE quantity >= :qty. The check and the
  decrement happen in the same statement, never read-then-write.
- Zero rows affected -> InsufficientStockError(pile_id). This also covers a
  pile that does not exist (or was already deleted).
- A deformed pile that reaches 0 is deleted; normal piles stay at 0 so their
  min_stock_alert is kept.

Merge-add:
- Increment-or-create keyed by the full pile identity.
- Deformed adds are always worker-scoped with min_stock_alert = 0.

Transactions:
- *_stock helpers participate in the caller's transaction (flush only).
- subtract_inventory / merge_add_inventory / add_stock / update_alert are
  standalone use cases and commit their own transaction.
"""

logger = get_logger("services.inventory")


@dataclass(frozen=True)
class PileKey:
    """Full identity of a pile; the merge key for merge_add."""
    freezer_id: int
    product_id: int
    flavor_id: int
    provider_id: int
    is_deformed: bool = False
    worker_id: int | None = None


def _default_min_stock_alert() -> int:
    return int(current_app.config.get("DEFAULT_MIN_STOCK_ALERT", 20))


def _pile_filters(key: PileKey) -> list:
    filters = [
        InventoryLine.freezer_id == key.freezer_id,
        InventoryLine.product_id == key.product_id,
        InventoryLine.flavor_id == key.flavor_id,
        InventoryLine.provider_id == key.provider_id,
        InventoryLine.is_deformed.is_(key.is_deformed),
    ]
    if key.worker_id is None:
        filters.append(InventoryLine.assigned_worker_id.is_(None))
    else:
        filters.append(InventoryLine.assigned_worker_id == key.worker_id)
    return filters


# =============================================================================
# IN-TRANSACTION PRIMITIVES
# =============================================================================

def subtract_stock(pile_id: int, quantity: int, actor: Actor) -> None:
    """Atomic conditional decrement inside the caller's transaction."""
    if quantity <= 0:
        raise BadRequestError("Quantity to subtract must be positive", details={"inventory_id": pile_id})

    rows = (
        db.session.query(InventoryLine)
        .filter(InventoryLine.id == pile_id, InventoryLine.quantity >= quantity)
        .update(
            {
                InventoryLine.quantity: InventoryLine.quantity - quantity,
                InventoryLine.last_updated: utcnow(),
                InventoryLine.updated_by: actor.actor_id,
            },
            synchronize_session="fetch",
        )
    )
    if rows == 0:
        raise InsufficientStockError(pile_id)

    # Deformed piles are ephemeral
    db.session.query(InventoryLine).filter(
        InventoryLine.id == pile_id,
        InventoryLine.quantity == 0,
        InventoryLine.is_deformed.is_(True),
    ).delete(synchronize_session="fetch")


def merge_add_stock(key: PileKey, quantity: int, actor: Actor) -> InventoryLine:
    """Increment the pile matching key, or create it, inside the caller's transaction."""
    if quantity <= 0:
        raise BadRequestError("Quantity to add must be positive")
    if key.is_deformed and key.worker_id is None:
        raise BadRequestError("Deformed stock must be assigned to a worker")

    filters = _pile_filters(key)
    now = utcnow()

    rows = (
        db.session.query(InventoryLine)
        .filter(*filters)
        .update(
            {
                InventoryLine.quantity: InventoryLine.quantity + quantity,
                InventoryLine.last_updated: now,
                InventoryLine.updated_by: actor.actor_id,
            },
            synchronize_session="fetch",
        )
    )
    if rows:
        return db.session.query(InventoryLine).filter(*filters).populate_existing().one()

    pile = InventoryLine(
        freezer_id=key.freezer_id,
        product_id=key.product_id,
        flavor_id=key.flavor_id,
        provider_id=key.provider_id,
        quantity=quantity,
        is_deformed=key.is_deformed,
        assigned_worker_id=key.worker_id,
        min_stock_alert=0 if key.is_deformed else _default_min_stock_alert(),
        last_updated=now,
        updated_by=actor.actor_id,
    )
    db.session.add(pile)
    db.session.flush()
    return pile


# =============================================================================
# STANDALONE USE CASES
# =============================================================================

def subtract_inventory(pile_id: int, quantity: int, actor: Actor) -> None:
    if quantity <= 0:
        raise BadRequestError("Quantity to subtract must be positive", details={"inventory_id": pile_id})

    def _op():
        subtract_stock(pile_id, quantity, actor)

    run_in_transaction(_op, operation="subtract_inventory")
    logger.info("Subtracted stock", extra={"inventory_id": pile_id, "quantity": quantity})


def merge_add_inventory(key: PileKey, quantity: int, actor: Actor) -> InventoryLine:
    if quantity <= 0:
        raise BadRequestError("Quantity to add must be positive")

    def _op():
        return merge_add_stock(key, quantity, actor)

    pile = run_in_transaction(_op, operation="merge_add_inventory")
    logger.info("Merged stock into pile", extra={"inventory_id": pile.id, "quantity": quantity})
    return pile


def add_stock(
    *,
    freezer_id: int,
    product_id: int,
    flavor_id: int,
    provider_id: int,
    quantity: int,
    actor: Actor,
) -> InventoryLine:
    """
    Purchase from a provider: merge-add into the normal pile and audit it.
    """
    if quantity <= 0:
        raise BadRequestError("Purchased quantity must be positive")

    key = PileKey(
        freezer_id=freezer_id,
        product_id=product_id,
        flavor_id=flavor_id,
        provider_id=provider_id,
    )

    def _op():
        before = db.session.query(InventoryLine).filter(*_pile_filters(key)).first()
        before_snapshot = before.to_dict() if before else None
        pile = merge_add_stock(key, quantity, actor)
        record_audit(
            action="update" if before_snapshot else "create",
            table_name="inventory",
            record_id=pile.id,
            before=before_snapshot,
            after=pile.to_dict(),
            actor=actor,
        )
        return pile

    pile = run_in_transaction(_op, operation="add_stock")
    logger.info(
        "Stock purchased",
        extra={"inventory_id": pile.id, "provider_id": provider_id, "quantity": quantity},
    )
    return pile


def update_alert(pile_id: int, min_stock_alert: int, actor: Actor) -> InventoryLine:
    if min_stock_alert < 0:
        raise BadRequestError("min_stock_alert cannot be negative")

    def _op():
        pile = db.session.get(InventoryLine, pile_id)
        if pile is None:
            raise NotFoundError(f"Inventory item {pile_id} not found")
        if pile.is_deformed:
            raise BadRequestError("Deformed stock is exempt from low-stock alerts")
        before = pile.to_dict()
        pile.min_stock_alert = min_stock_alert
        pile.last_updated = utcnow()
        pile.updated_by = actor.actor_id
        db.session.flush()
        record_audit(
            action="update",
            table_name="inventory",
            record_id=pile.id,
            before=before,
            after=pile.to_dict(),
            actor=actor,
        )
        return pile

    return run_in_transaction(_op, operation="update_alert")


# =============================================================================
# READ QUERIES
# =============================================================================

def get_pile(pile_id: int) -> InventoryLine:
    pile = db.session.get(InventoryLine, pile_id)
    if pile is None:
        raise NotFoundError(f"Inventory item {pile_id} not found")
    return pile


def list_all() -> list[InventoryLine]:
    return (
        db.session.query(InventoryLine)
        .order_by(InventoryLine.freezer_id, InventoryLine.product_id, InventoryLine.id)
        .all()
    )


def list_by_freezer(freezer_id: int) -> list[InventoryLine]:
    return (
        db.session.query(InventoryLine)
        .filter(InventoryLine.freezer_id == freezer_id)
        .order_by(InventoryLine.product_id, InventoryLine.id)
        .all()
    )


def list_sellable() -> list[InventoryLine]:
    return (
        db.session.query(InventoryLine)
        .filter(InventoryLine.is_deformed.is_(False))
        .order_by(InventoryLine.freezer_id, InventoryLine.product_id, InventoryLine.id)
        .all()
    )


def list_low_stock() -> list[InventoryLine]:
    """Normal piles at or below their alert threshold. Deformed piles never qualify."""
    return (
        db.session.query(InventoryLine)
        .filter(
            InventoryLine.is_deformed.is_(False),
            InventoryLine.quantity <= InventoryLine.min_stock_alert,
        )
        .order_by(InventoryLine.freezer_id, InventoryLine.product_id, InventoryLine.id)
        .all()
    )


def list_worker_deformed(worker_id: int) -> list[InventoryLine]:
    return (
        db.session.query(InventoryLine)
        .filter(
            InventoryLine.assigned_worker_id == worker_id,
            InventoryLine.is_deformed.is_(True),
        )
        .order_by(InventoryLine.id)
        .all()
    )
