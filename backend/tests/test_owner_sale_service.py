"""
Owner sale lifecycle tests.
"""

import pytest

from icebox.errors import BadRequestError, NotFoundError
from icebox.models import CashEntry, InventoryLine, OwnerSale, Route
from icebox.services import cash_service, owner_sale_service
from icebox.services.schemas import LoadedItemInput, ReturnedItemInput
from icebox.time_utils import utcnow


def _load(pile, quantity, price=250):
    return LoadedItemInput(
        inventory_id=pile.id,
        product_id=pile.product_id,
        flavor_id=pile.flavor_id,
        freezer_id=pile.freezer_id,
        quantity=quantity,
        unit_price_cents=price,
    )


def test_create_owner_sale(db_session, owner, route, make_pile):
    pile = make_pile(quantity=20)
    sale = owner_sale_service.create_owner_sale(
        departure_time=utcnow(), loaded_items=[_load(pile, 8)], actor=owner, route_id=route.id
    )

    assert sale.owner_id == owner.actor_id
    assert sale.is_open
    assert db_session.get(InventoryLine, pile.id).quantity == 12
    assert db_session.get(Route, route.id).usage_count == 1


def test_completion_posts_income_and_equal_withdrawal(db_session, owner, make_pile, actor):
    cash_service.add_cash_entry("local_sale", 1000, actor)
    pile = make_pile(quantity=20)
    sale = owner_sale_service.create_owner_sale(
        departure_time=utcnow(), loaded_items=[_load(pile, 8, price=250)], actor=owner
    )

    settled = owner_sale_service.complete_owner_sale(
        sale.id,
        [ReturnedItemInput(product_id=pile.product_id, flavor_id=pile.flavor_id, quantity=2, destination_freezer_id=1)],
        owner,
    )

    assert not settled.is_open
    assert settled.sold_quantity == 6
    assert settled.total_amount_cents == 1500
    assert settled.auto_withdrawal_cents == 1500

    entries = (
        db_session.query(CashEntry)
        .filter_by(related_doc_type="owner_sales", related_doc_id=sale.id)
        .order_by(CashEntry.id)
        .all()
    )
    assert [(e.type, e.amount_cents) for e in entries] == [("owner_sale", 1500), ("owner_withdrawal", -1500)]
    assert sum(e.amount_cents for e in entries) == 0
    assert cash_service.get_current_balance() == 1000
    assert cash_service.consistency_check().is_consistent
    assert db_session.get(InventoryLine, pile.id).quantity == 14


def test_owner_deformed_returns_scoped_to_owner(db_session, owner, make_pile):
    pile = make_pile(quantity=20)
    sale = owner_sale_service.create_owner_sale(departure_time=utcnow(), loaded_items=[_load(pile, 5)], actor=owner)
    owner_sale_service.complete_owner_sale(
        sale.id,
        [
            ReturnedItemInput(
                product_id=pile.product_id,
                flavor_id=pile.flavor_id,
                quantity=1,
                destination_freezer_id=1,
                is_deformed=True,
            )
        ],
        owner,
    )
    deformed = db_session.query(InventoryLine).filter_by(is_deformed=True).one()
    assert deformed.assigned_worker_id == owner.actor_id
    assert deformed.min_stock_alert == 0


def test_completing_twice_is_rejected(db_session, owner, make_pile):
    pile = make_pile(quantity=20)
    sale = owner_sale_service.create_owner_sale(departure_time=utcnow(), loaded_items=[_load(pile, 5)], actor=owner)
    owner_sale_service.complete_owner_sale(sale.id, [], owner)

    with pytest.raises(NotFoundError):
        owner_sale_service.complete_owner_sale(sale.id, [], owner)
    assert db_session.query(CashEntry).count() == 2


def test_validation(db_session, owner):
    with pytest.raises(BadRequestError):
        owner_sale_service.create_owner_sale(departure_time=utcnow(), loaded_items=[], actor=owner)
    assert db_session.query(OwnerSale).count() == 0


def test_reads(db_session, owner, make_pile):
    pile = make_pile(quantity=20)
    first = owner_sale_service.create_owner_sale(departure_time=utcnow(), loaded_items=[_load(pile, 1)], actor=owner)
    second = owner_sale_service.create_owner_sale(departure_time=utcnow(), loaded_items=[_load(pile, 1)], actor=owner)

    assert [s.id for s in owner_sale_service.list_owner_sales()] == [second.id, first.id]
    detail = owner_sale_service.get_owner_sale(first.id).to_dict()
    assert detail["loaded_items"][0]["quantity"] == 1
    assert detail["returned_items"] == []

    with pytest.raises(NotFoundError):
        owner_sale_service.get_owner_sale(424242)
