import pytest

from icebox.errors import BadRequestError, ConflictError, NotFoundError
from icebox.models import AuditLogEntry, CashEntry, Worker, WorkerPayment
from icebox.services import cash_service, payment_service, trip_service
from icebox.services.maintenance_service import recompute_worker_aggregates
from icebox.services.schemas import LoadedItemInput
from icebox.time_utils import utcnow


def _start_trip(worker, pile, actor, quantity=4, price=100):
    return trip_service.create_trip(
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


def _settled_trip(worker, pile, actor, quantity=4, price=100):
    trip = _start_trip(worker, pile, actor, quantity=quantity, price=price)
    return trip_service.complete_trip(trip.id, [], actor)


def test_payment_clears_trip_debt(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    first = _settled_trip(worker, pile, actor)
    _settled_trip(worker, pile, actor, quantity=2, price=300)
    assert db_session.get(Worker, worker.id).current_debt_cents == 1000

    payment = payment_service.pay_worker(first.id, actor)

    assert payment.amount_cents == 400
    assert payment.previous_debt_cents == 1000
    assert payment.new_debt_cents == 600
    assert payment.created_by == actor.actor_id
    assert db_session.get(Worker, worker.id).current_debt_cents == 600

    audit = db_session.query(AuditLogEntry).filter_by(table_name="worker_payments").one()
    assert audit.action == "create"
    assert audit.record_id == payment.id


def test_payment_posts_no_cash_entry(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    trip = _settled_trip(worker, pile, actor)
    before = db_session.query(CashEntry).count()

    payment_service.pay_worker(trip.id, actor)

    assert db_session.query(CashEntry).count() == before
    assert cash_service.get_current_balance() == 400
    assert cash_service.consistency_check().is_consistent


def test_trip_in_progress_cannot_be_paid(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    trip = _start_trip(worker, pile, actor)

    with pytest.raises(BadRequestError):
        payment_service.pay_worker(trip.id, actor)

    assert db_session.query(WorkerPayment).count() == 0
    assert db_session.get(Worker, worker.id).current_debt_cents == 0


def test_trip_is_paid_at_most_once(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    trip = _settled_trip(worker, pile, actor)
    payment = payment_service.pay_worker(trip.id, actor)

    with pytest.raises(ConflictError) as exc:
        payment_service.pay_worker(trip.id, actor)

    assert exc.value.details == {"payment_id": payment.id}
    assert db_session.query(WorkerPayment).count() == 1
    assert db_session.get(Worker, worker.id).current_debt_cents == 0


def test_unknown_trip(db_session, actor):
    with pytest.raises(NotFoundError):
        payment_service.pay_worker(424242, actor)


def test_recompute_accounts_for_payments(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    paid_trip = _settled_trip(worker, pile, actor)
    _settled_trip(worker, pile, actor, quantity=2, price=300)
    payment_service.pay_worker(paid_trip.id, actor)

    assert recompute_worker_aggregates() == []

    w = db_session.get(Worker, worker.id)
    w.current_debt_cents = 1000
    db_session.commit()

    drifts = recompute_worker_aggregates(worker_id=worker.id, apply=True)
    assert drifts[0].recomputed.current_debt_cents == 600
    assert db_session.get(Worker, worker.id).current_debt_cents == 600


def test_reads(db_session, worker, make_pile, actor):
    pile = make_pile(quantity=20)
    first = _settled_trip(worker, pile, actor)
    second = _settled_trip(worker, pile, actor)
    p1 = payment_service.pay_worker(first.id, actor)
    p2 = payment_service.pay_worker(second.id, actor)

    assert payment_service.get_payment_by_trip(first.id).id == p1.id
    assert [p.id for p in payment_service.list_payments_by_worker(worker.id)] == [p2.id, p1.id]
    assert payment_service.list_payments_by_worker(worker.id, limit=1)[0].id == p2.id
    with pytest.raises(NotFoundError):
        payment_service.get_payment_by_trip(424242)
    with pytest.raises(BadRequestError):
        payment_service.list_payments_by_worker(worker.id, limit=0)
