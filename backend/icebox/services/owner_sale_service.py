# Overview: Owner sale lifecycle; the owner's own run, settled straight into a withdrawal.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..actor import Actor
from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import OwnerSale, OwnerSaleLoadedItem, OwnerSaleReturnedItem
from icebox.time_utils import normalize_datetime, utcnow
from .audit_service import record_audit
from .cash_service import ENTRY_OWNER_SALE, ENTRY_OWNER_WITHDRAWAL, EntryMetadata, append_entry
from .concurrency import lock_for_update, run_in_transaction
from .returns import restock_returns
from .schemas import (
    LoadedItemInput,
    ReturnedItemInput,
    validate_loaded_items,
    validate_returned_items,
)
from .settlement import calculate_settlement
from .trip_service import increment_route_usage, load_from_pile
"""
Owner sale invariants (authoritative)

- Open while return_time IS NULL; settling sets it and the sale is terminal.
- Loading subtracts every pile in the creating transaction, exactly as a
  worker trip does.
- Settlement posts owner_sale (+amount) then owner_withdrawal (-amount):
  the register balance is unchanged and auto_withdrawal_cents == total.
- Deformed returns land in piles scoped to the owner's actor id.
"""

logger = get_logger("services.owner_sales")


@dataclass
class OwnerSaleWithItems:
    sale: OwnerSale
    loaded_items: list[OwnerSaleLoadedItem]
    returned_items: list[OwnerSaleReturnedItem]

    def to_dict(self) -> dict:
        return {
            **self.sale.to_dict(),
            "loaded_items": [item.to_dict() for item in self.loaded_items],
            "returned_items": [item.to_dict() for item in self.returned_items],
        }


def create_owner_sale(
    departure_time: datetime,
    loaded_items: Iterable[LoadedItemInput],
    actor: Actor,
    route_id: int | None = None,
) -> OwnerSale:
    items = validate_loaded_items(loaded_items)
    departure_time = normalize_datetime(departure_time)

    def _op():
        sale = OwnerSale(
            owner_id=actor.actor_id,
            departure_time=departure_time,
            route_id=route_id,
            sold_quantity=0,
            total_amount_cents=0,
            auto_withdrawal_cents=0,
            created_at=utcnow(),
            created_by=actor.actor_id,
        )
        db.session.add(sale)
        db.session.flush()

        if route_id is not None:
            increment_route_usage(route_id)

        for item in items:
            line = OwnerSaleLoadedItem(
                sale_id=sale.id,
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
            table_name="owner_sales",
            record_id=sale.id,
            after=sale.to_dict(),
            actor=actor,
        )
        return sale

    sale = run_in_transaction(_op, operation="create_owner_sale")
    logger.info(
        "Owner sale created",
        extra={"owner_sale_id": sale.id, "owner_id": sale.owner_id, "loaded_lines": len(items)},
    )
    return sale


def complete_owner_sale(
    sale_id: int,
    returned_items: Iterable[ReturnedItemInput],
    actor: Actor,
) -> OwnerSale:
    """
    Settle an owner sale.

    Raises:
        NotFoundError: sale missing or already settled
        BadRequestError: a non-positive returned quantity
    """
    items = validate_returned_items(returned_items)

    def _op():
        sale = lock_for_update(
            db.session.query(OwnerSale).filter(
                OwnerSale.id == sale_id,
                OwnerSale.return_time.is_(None),
            )
        ).first()
        if sale is None:
            raise NotFoundError(f"Owner sale {sale_id} not found or already completed")
        before = sale.to_dict()

        loaded = (
            db.session.query(OwnerSaleLoadedItem)
            .filter(OwnerSaleLoadedItem.sale_id == sale.id)
            .order_by(OwnerSaleLoadedItem.id)
            .all()
        )

        restock_returns(
            loaded_items=loaded,
            returned_items=items,
            build_row=lambda item: OwnerSaleReturnedItem(
                sale_id=sale.id,
                product_id=item.product_id,
                flavor_id=item.flavor_id,
                quantity=item.quantity,
                is_deformed=item.is_deformed,
                destination_freezer_id=item.destination_freezer_id,
            ),
            deformed_owner_id=sale.owner_id,
            actor=actor,
        )

        result = calculate_settlement(loaded, items)
        if result.over_returned:
            logger.warning(
                "Returned more than loaded; excess ignored",
                extra={
                    "owner_sale_id": sale.id,
                    "over_returned": {f"{p}:{f}": q for (p, f), q in result.over_returned.items()},
                },
            )

        sale.return_time = utcnow()
        sale.sold_quantity = result.sold_quantity
        sale.total_amount_cents = result.amount_due_cents
        sale.auto_withdrawal_cents = result.amount_due_cents
        db.session.flush()

        append_entry(
            ENTRY_OWNER_SALE,
            result.amount_due_cents,
            actor,
            EntryMetadata(
                description=f"Owner sale {sale.id}",
                related_doc_type="owner_sales",
                related_doc_id=sale.id,
            ),
        )
        append_entry(
            ENTRY_OWNER_WITHDRAWAL,
            -result.amount_due_cents,
            actor,
            EntryMetadata(
                description=f"Automatic withdrawal for owner sale {sale.id}",
                related_doc_type="owner_sales",
                related_doc_id=sale.id,
            ),
        )

        record_audit(
            action="update",
            table_name="owner_sales",
            record_id=sale.id,
            before=before,
            after=sale.to_dict(),
            actor=actor,
        )
        return sale

    sale = run_in_transaction(_op, operation="complete_owner_sale")
    logger.info(
        "Owner sale settled",
        extra={
            "owner_sale_id": sale.id,
            "sold_quantity": sale.sold_quantity,
            "total_amount_cents": sale.total_amount_cents,
        },
    )
    return sale


def get_owner_sale(sale_id: int) -> OwnerSaleWithItems:
    sale = db.session.get(OwnerSale, sale_id)
    if sale is None:
        raise NotFoundError(f"Owner sale {sale_id} not found")
    return OwnerSaleWithItems(
        sale=sale,
        loaded_items=list(sale.loaded_items),
        returned_items=list(sale.returned_items),
    )


def list_owner_sales(limit: int = 50) -> list[OwnerSale]:
    if limit <= 0:
        raise BadRequestError("limit must be positive")
    return (
        db.session.query(OwnerSale)
        .order_by(OwnerSale.departure_time.desc(), OwnerSale.id.desc())
        .limit(limit)
        .all()
    )
