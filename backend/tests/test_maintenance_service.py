from icebox.models import Worker
from icebox.services import trip_service
from icebox.services.maintenance_service import recompute_worker_aggregates
from icebox.services.schemas import LoadedItemInput
from icebox.time_utils import utcnow


def _settle_trip(worker, pile, actor, quantity=4, price=100):
    trip = trip_service.create_trip(
        worker_id=worker.id,
        departure_time=utcnow(),
        loaded_items=[
            LoadedItemInput(
                inventory_id=pile.id,
                product_id=pile.product_id,
                flavor_id=pile.flavor_id,
                freezer_id=pile.freezer_id,
                quantity=quantity,
                unit_price_cents=price,
            )
        ],
        actor=actor,
    )
    return trip_service.complete_trip(trip.id, [], actor)


def test_no_drift_after_normal_settlement(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    _settle_trip(worker, pile, actor)
    _settle_trip(worker, pile, actor, quantity=2, price=300)

    assert recompute_worker_aggregates() == []


def test_drift_is_reported_and_applied(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    trip = _settle_trip(worker, pile, actor)

    w = db_session.get(Worker, worker.id)
    w.current_debt_cents = 1
    w.total_sales = 99
    db_session.commit()

    drifts = recompute_worker_aggregates(worker_id=worker.id)
    assert len(drifts) == 1
    assert drifts[0].stored.total_sales == 99
    assert drifts[0].recomputed.total_sales == 4
    assert drifts[0].recomputed.current_debt_cents == 400
    assert db_session.get(Worker, worker.id).total_sales == 99

    recompute_worker_aggregates(worker_id=worker.id, apply=True)
    w = db_session.get(Worker, worker.id)
    assert w.total_sales == 4
    assert w.current_debt_cents == 400
    assert w.last_sale == trip.return_time
    assert recompute_worker_aggregates() == []


def test_worker_without_trips_has_zero_aggregates(db_session, worker):
    assert recompute_worker_aggregates(worker_id=worker.id) == []
