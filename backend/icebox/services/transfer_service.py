# Overview: Freezer-to-freezer stock transfers.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import or_

from ..actor import Actor
from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..logging_config import get_logger
from ..models import FreezerTransfer, FreezerTransferItem, InventoryLine
from icebox.time_utils import utcnow
from .audit_service import record_audit
from .concurrency import run_in_transaction
from .inventory_service import PileKey, merge_add_stock, subtract_stock
from .schemas import TransferItemInput, validate_transfer_items

logger = get_logger("services.transfers")


@dataclass
class TransferWithItems:
    transfer: FreezerTransfer
    items: list[FreezerTransferItem]

    def to_dict(self) -> dict:
        return {
            **self.transfer.to_dict(),
            "items": [item.to_dict() for item in self.items],
        }


def _source_pile(freezer_id: int, product_id: int, flavor_id: int) -> InventoryLine:
    # Only normal stock moves between freezers; lowest id wins when several providers match.
    pile = (
        db.session.query(InventoryLine)
        .filter(
            InventoryLine.freezer_id == freezer_id,
            InventoryLine.product_id == product_id,
            InventoryLine.flavor_id == flavor_id,
            InventoryLine.is_deformed.is_(False),
        )
        .order_by(InventoryLine.id)
        .first()
    )
    if pile is None:
        raise NotFoundError(
            f"No stock of product {product_id} flavor {flavor_id} in freezer {freezer_id}",
            details={"freezer_id": freezer_id, "product_id": product_id, "flavor_id": flavor_id},
        )
    return pile


def transfer(
    from_freezer_id: int,
    to_freezer_id: int,
    items: Iterable[TransferItemInput],
    actor: Actor,
    reason: str | None = None,
) -> FreezerTransfer:
    """
    Move stock between freezers atomically.

    Every item subtracts from the source's normal pile and merge-adds into
    the destination pile of the same provider. One short item rolls back the
    whole transfer.

    Raises:
        BadRequestError: empty items, non-positive quantity, same freezer
        NotFoundError: no source pile for an item
        InsufficientStockError: the source pile cannot cover an item
    """
    items = validate_transfer_items(items)
    if from_freezer_id == to_freezer_id:
        raise BadRequestError("Source and destination freezer must differ")

    def _op():
        record = FreezerTransfer(
            from_freezer_id=from_freezer_id,
            to_freezer_id=to_freezer_id,
            reason=reason,
            created_at=utcnow(),
            created_by=actor.actor_id,
        )
        db.session.add(record)
        db.session.flush()

        for item in items:
            db.session.add(
                FreezerTransferItem(
                    transfer_id=record.id,
                    product_id=item.product_id,
                    flavor_id=item.flavor_id,
                    quantity=item.quantity,
                )
            )
            source = _source_pile(from_freezer_id, item.product_id, item.flavor_id)
            provider_id = source.provider_id
            subtract_stock(source.id, item.quantity, actor)
            merge_add_stock(
                PileKey(
                    freezer_id=to_freezer_id,
                    product_id=item.product_id,
                    flavor_id=item.flavor_id,
                    provider_id=provider_id,
                ),
                item.quantity,
                actor,
            )

        db.session.flush()
        record_audit(
            action="create",
            table_name="freezer_transfers",
            record_id=record.id,
            after={**record.to_dict(), "items": [i.to_dict() for i in record.items]},
            actor=actor,
        )
        return record

    record = run_in_transaction(_op, operation="transfer")
    logger.info(
        "Transfer completed",
        extra={
            "transfer_id": record.id,
            "from_freezer_id": from_freezer_id,
            "to_freezer_id": to_freezer_id,
            "lines": len(items),
        },
    )
    return record


def get_transfer(transfer_id: int) -> TransferWithItems:
    record = db.session.get(FreezerTransfer, transfer_id)
    if record is None:
        raise NotFoundError(f"Transfer {transfer_id} not found")
    return TransferWithItems(transfer=record, items=list(record.items))


def list_transfers(limit: int = 50) -> list[FreezerTransfer]:
    if limit <= 0:
        raise BadRequestError("limit must be positive")
    return (
        db.session.query(FreezerTransfer)
        .order_by(FreezerTransfer.created_at.desc(), FreezerTransfer.id.desc())
        .limit(limit)
        .all()
    )


def list_transfers_by_freezer(freezer_id: int) -> list[FreezerTransfer]:
    """Transfers where the freezer was either source or destination."""
    return (
        db.session.query(FreezerTransfer)
        .filter(
            or_(
                FreezerTransfer.from_freezer_id == freezer_id,
                FreezerTransfer.to_freezer_id == freezer_id,
            )
        )
        .order_by(FreezerTransfer.created_at.desc(), FreezerTransfer.id.desc())
        .all()
    )
