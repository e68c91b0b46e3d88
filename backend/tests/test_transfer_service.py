"""
Freezer transfer tests.
"""

import pytest

from icebox.errors import BadRequestError, InsufficientStockError, NotFoundError
from icebox.models import AuditLogEntry, FreezerTransfer, InventoryLine
from icebox.services import transfer_service
from icebox.services.schemas import TransferItemInput


def test_transfer_moves_stock_preserving_provider(db_session, make_pile, actor):
    source = make_pile(freezer_id=1, quantity=20, provider_id=3000)
    record = transfer_service.transfer(
        from_freezer_id=1,
        to_freezer_id=2,
        items=[TransferItemInput(product_id=source.product_id, flavor_id=source.flavor_id, quantity=8)],
        actor=actor,
        reason="rebalance",
    )

    assert db_session.get(InventoryLine, source.id).quantity == 12
    dest = db_session.query(InventoryLine).filter_by(freezer_id=2).one()
    assert dest.quantity == 8
    assert dest.provider_id == 3000
    assert dest.is_deformed is False

    detail = transfer_service.get_transfer(record.id)
    assert detail.transfer.reason == "rebalance"
    assert [(i.product_id, i.quantity) for i in detail.items] == [(source.product_id, 8)]

    audit = db_session.query(AuditLogEntry).filter_by(table_name="freezer_transfers").one()
    assert audit.changes_after["items"][0]["quantity"] == 8


def test_transfer_merges_into_existing_destination_pile(db_session, make_pile, actor):
    make_pile(freezer_id=1, quantity=20)
    dest = make_pile(freezer_id=2, quantity=5)
    transfer_service.transfer(
        1, 2, [TransferItemInput(product_id=10, flavor_id=100, quantity=5)], actor
    )
    assert db_session.get(InventoryLine, dest.id).quantity == 10


def test_over_requesting_transfer_changes_nothing(db_session, make_pile, actor):
    a = make_pile(freezer_id=1, product_id=10, quantity=20)
    b = make_pile(freezer_id=1, product_id=11, quantity=3)

    with pytest.raises(InsufficientStockError):
        transfer_service.transfer(
            1,
            2,
            [
                TransferItemInput(product_id=10, flavor_id=100, quantity=5),
                TransferItemInput(product_id=11, flavor_id=100, quantity=4),
            ],
            actor,
        )

    assert db_session.get(InventoryLine, a.id).quantity == 20
    assert db_session.get(InventoryLine, b.id).quantity == 3
    assert db_session.query(InventoryLine).filter_by(freezer_id=2).count() == 0
    assert db_session.query(FreezerTransfer).count() == 0


def test_missing_source_pile(db_session, make_pile, actor):
    make_pile(freezer_id=1, is_deformed=True, assigned_worker_id=4, min_stock_alert=0)
    with pytest.raises(NotFoundError):
        transfer_service.transfer(1, 2, [TransferItemInput(product_id=10, flavor_id=100, quantity=1)], actor)


def test_validation(db_session, actor):
    with pytest.raises(BadRequestError):
        transfer_service.transfer(1, 2, [], actor)
    with pytest.raises(BadRequestError):
        transfer_service.transfer(1, 1, [TransferItemInput(product_id=10, flavor_id=100, quantity=1)], actor)
    with pytest.raises(BadRequestError):
        transfer_service.transfer(1, 2, [TransferItemInput(product_id=10, flavor_id=100, quantity=0)], actor)


def test_reads(db_session, make_pile, actor):
    make_pile(freezer_id=1, quantity=20)
    make_pile(freezer_id=3, quantity=20)
    one = transfer_service.transfer(1, 2, [TransferItemInput(product_id=10, flavor_id=100, quantity=1)], actor)
    two = transfer_service.transfer(3, 1, [TransferItemInput(product_id=10, flavor_id=100, quantity=1)], actor)
    three = transfer_service.transfer(3, 4, [TransferItemInput(product_id=10, flavor_id=100, quantity=1)], actor)

    assert {t.id for t in transfer_service.list_transfers_by_freezer(1)} == {one.id, two.id}
    assert len(transfer_service.list_transfers()) == 3
    assert len(transfer_service.list_transfers(limit=2)) == 2
    assert three.id in {t.id for t in transfer_service.list_transfers_by_freezer(4)}
    with pytest.raises(NotFoundError):
        transfer_service.get_transfer(99999)
