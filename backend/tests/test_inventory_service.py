"""
Inventory pile tests: atomic subtract, merge-add identity, alert queries.
"""

import pytest
from sqlalchemy import false
from sqlalchemy.exc import IntegrityError

from icebox.errors import BadRequestError, ConflictError, InsufficientStockError, NotFoundError
from icebox.models import AuditLogEntry, InventoryLine
from icebox.services import inventory_service
from icebox.services.inventory_service import PileKey
from icebox.time_utils import utcnow


def test_subtract_conserves_units(db_session, make_pile, actor):
    pile = make_pile(quantity=10)
    inventory_service.subtract_inventory(pile.id, 4, actor)
    assert db_session.get(InventoryLine, pile.id).quantity == 6


def test_over_subtract_fails_and_leaves_pile_unchanged(db_session, make_pile, actor):
    pile = make_pile(quantity=3)
    with pytest.raises(InsufficientStockError) as excinfo:
        inventory_service.subtract_inventory(pile.id, 4, actor)
    assert excinfo.value.inventory_id == pile.id
    assert excinfo.value.status_code == 409
    assert db_session.get(InventoryLine, pile.id).quantity == 3


def test_subtract_missing_pile_is_insufficient_stock(db_session, actor):
    with pytest.raises(InsufficientStockError):
        inventory_service.subtract_inventory(99999, 1, actor)


def test_subtract_rejects_non_positive_quantity(db_session, make_pile, actor):
    pile = make_pile(quantity=3)
    with pytest.raises(BadRequestError):
        inventory_service.subtract_inventory(pile.id, 0, actor)


def test_normal_pile_survives_at_zero(db_session, make_pile, actor):
    pile = make_pile(quantity=2)
    inventory_service.subtract_inventory(pile.id, 2, actor)
    remaining = db_session.get(InventoryLine, pile.id)
    assert remaining is not None
    assert remaining.quantity == 0
    assert remaining.min_stock_alert == 20


def test_deformed_pile_is_deleted_at_zero(db_session, make_pile, actor):
    pile = make_pile(quantity=2, is_deformed=True, assigned_worker_id=5, min_stock_alert=0)
    pile_id = pile.id
    inventory_service.subtract_inventory(pile_id, 2, actor)
    db_session.expunge_all()
    assert db_session.get(InventoryLine, pile_id) is None


def test_merge_add_increments_existing_pile(db_session, make_pile, actor):
    pile = make_pile(quantity=5)
    key = PileKey(freezer_id=1, product_id=10, flavor_id=100, provider_id=1000)
    merged = inventory_service.merge_add_inventory(key, 7, actor)
    assert merged.id == pile.id
    assert merged.quantity == 12
    assert db_session.query(InventoryLine).count() == 1


def test_merge_add_creates_pile_with_default_alert(db_session, actor):
    key = PileKey(freezer_id=2, product_id=10, flavor_id=100, provider_id=1000)
    pile = inventory_service.merge_add_inventory(key, 7, actor)
    assert pile.quantity == 7
    assert pile.min_stock_alert == 20
    assert pile.is_deformed is False
    assert pile.assigned_worker_id is None
    assert pile.updated_by == actor.actor_id


def test_merge_add_keeps_providers_apart(db_session, make_pile, actor):
    make_pile(quantity=5, provider_id=1000)
    key = PileKey(freezer_id=1, product_id=10, flavor_id=100, provider_id=2000)
    inventory_service.merge_add_inventory(key, 3, actor)
    assert db_session.query(InventoryLine).count() == 2


def test_duplicate_unassigned_pile_is_rejected_by_storage(db_session, make_pile):
    make_pile(quantity=5)
    db_session.add(InventoryLine(
        freezer_id=1, product_id=10, flavor_id=100, provider_id=1000,
        quantity=1, min_stock_alert=20, is_deformed=False, assigned_worker_id=None,
        last_updated=utcnow(), updated_by=1,
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
    assert db_session.query(InventoryLine).count() == 1


def test_merge_add_losing_insert_race_is_conflict(db_session, make_pile, actor, monkeypatch):
    pile = make_pile(quantity=5)
    # The increment misses, as if the pile appeared after our update ran.
    monkeypatch.setattr(inventory_service, "_pile_filters", lambda key: [false()])
    key = PileKey(freezer_id=1, product_id=10, flavor_id=100, provider_id=1000)

    with pytest.raises(ConflictError):
        inventory_service.merge_add_inventory(key, 3, actor)

    assert db_session.query(InventoryLine).count() == 1
    assert db_session.get(InventoryLine, pile.id).quantity == 5


def test_deformed_merge_add_is_worker_scoped(db_session, make_pile, actor):
    make_pile(quantity=5)
    key = PileKey(freezer_id=1, product_id=10, flavor_id=100, provider_id=1000, is_deformed=True, worker_id=5)
    first = inventory_service.merge_add_inventory(key, 2, actor)
    second = inventory_service.merge_add_inventory(key, 1, actor)
    other_worker = inventory_service.merge_add_inventory(
        PileKey(freezer_id=1, product_id=10, flavor_id=100, provider_id=1000, is_deformed=True, worker_id=6),
        1,
        actor,
    )

    assert first.id == second.id
    assert second.quantity == 3
    assert second.min_stock_alert == 0
    assert other_worker.id != first.id
    assert [p.id for p in inventory_service.list_worker_deformed(5)] == [first.id]


def test_deformed_merge_add_requires_worker(db_session, actor):
    key = PileKey(freezer_id=1, product_id=10, flavor_id=100, provider_id=1000, is_deformed=True)
    with pytest.raises(BadRequestError):
        inventory_service.merge_add_inventory(key, 1, actor)


def test_low_stock_excludes_deformed_piles(db_session, make_pile):
    low = make_pile(quantity=5, min_stock_alert=20)
    make_pile(quantity=50, min_stock_alert=20, freezer_id=2)
    make_pile(quantity=1, is_deformed=True, assigned_worker_id=5, min_stock_alert=0, freezer_id=3)

    assert [p.id for p in inventory_service.list_low_stock()] == [low.id]


def test_list_sellable_and_by_freezer(db_session, make_pile):
    a = make_pile(freezer_id=1)
    b = make_pile(freezer_id=2)
    deformed = make_pile(freezer_id=1, is_deformed=True, assigned_worker_id=5, min_stock_alert=0)

    assert {p.id for p in inventory_service.list_sellable()} == {a.id, b.id}
    assert {p.id for p in inventory_service.list_by_freezer(1)} == {a.id, deformed.id}
    assert len(inventory_service.list_all()) == 3


def test_add_stock_merges_and_audits(db_session, make_pile, actor):
    pile = make_pile(quantity=5)
    result = inventory_service.add_stock(
        freezer_id=1, product_id=10, flavor_id=100, provider_id=1000, quantity=10, actor=actor
    )
    assert result.id == pile.id
    assert result.quantity == 15

    audit = db_session.query(AuditLogEntry).filter_by(table_name="inventory").one()
    assert audit.action == "update"
    assert audit.changes_before["quantity"] == 5
    assert audit.changes_after["quantity"] == 15
    assert audit.created_by == actor.actor_id


def test_add_stock_new_pile_audits_create(db_session, actor):
    pile = inventory_service.add_stock(
        freezer_id=4, product_id=11, flavor_id=101, provider_id=1000, quantity=3, actor=actor
    )
    audit = db_session.query(AuditLogEntry).filter_by(record_id=pile.id).one()
    assert audit.action == "create"
    assert audit.changes_before is None


def test_update_alert(db_session, make_pile, actor):
    pile = make_pile(quantity=5, min_stock_alert=20)
    updated = inventory_service.update_alert(pile.id, 3, actor)
    assert updated.min_stock_alert == 3
    assert inventory_service.list_low_stock() == []


def test_update_alert_rejects_deformed_and_negative(db_session, make_pile, actor):
    deformed = make_pile(is_deformed=True, assigned_worker_id=5, min_stock_alert=0)
    with pytest.raises(BadRequestError):
        inventory_service.update_alert(deformed.id, 3, actor)
    with pytest.raises(BadRequestError):
        inventory_service.update_alert(deformed.id, -1, actor)
    with pytest.raises(NotFoundError):
        inventory_service.update_alert(99999, 3, actor)


def test_get_pile_missing(db_session):
    with pytest.raises(NotFoundError):
        inventory_service.get_pile(12345)
