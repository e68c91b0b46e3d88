"""
Cash ledger tests: embedded running balance, head row, consistency check.
"""

from datetime import timedelta

import pytest

from icebox.errors import BadRequestError
from icebox.models import AuditLogEntry, CashEntry, CashLedgerHead
from icebox.services import cash_service
from icebox.services.cash_service import (
    ENTRY_EXPENSE,
    ENTRY_LOCAL_SALE,
    ENTRY_OWNER_WITHDRAWAL,
    LEDGER_HEAD_ID,
    EntryMetadata,
)
from icebox.time_utils import utcnow


def test_empty_ledger_balance_is_zero(db_session):
    assert cash_service.get_current_balance() == 0
    info = cash_service.consistency_check()
    assert info.is_consistent
    assert info.entry_count == 0


def test_entries_embed_running_balance(db_session, actor):
    amounts = [1000, -250, 4000, -1]
    entries = [cash_service.add_cash_entry(ENTRY_LOCAL_SALE, a, actor) for a in amounts]

    running = 0
    for entry, amount in zip(entries, amounts):
        running += amount
        assert entry.balance_cents == running

    assert cash_service.get_current_balance() == sum(amounts)
    head = db_session.get(CashLedgerHead, LEDGER_HEAD_ID)
    assert head.balance_cents == sum(amounts)
    assert head.entry_count == len(amounts)
    assert head.last_entry_id == entries[-1].id


def test_sum_of_amounts_matches_latest_balance(db_session, actor):
    for amount in (500, 700, -300):
        cash_service.add_cash_entry(ENTRY_LOCAL_SALE, amount, actor)

    info = cash_service.consistency_check()
    assert info.is_consistent
    assert info.calculated_balance_cents == info.current_balance_cents == 900
    assert info.head_balance_cents == 900
    assert info.problems == []


def test_consistency_check_reports_tampering(db_session, actor, caplog):
    cash_service.add_cash_entry(ENTRY_LOCAL_SALE, 500, actor)
    entry = db_session.query(CashEntry).one()
    entry.balance_cents = 999
    db_session.commit()

    with caplog.at_level("ERROR", logger="icebox"):
        info = cash_service.consistency_check()

    assert not info.is_consistent
    assert info.calculated_balance_cents == 500
    assert info.current_balance_cents == 999
    assert len(info.problems) == 2
    assert "Cash ledger inconsistency detected" in caplog.text


def test_add_cash_entry_rejects_zero_and_unknown_type(db_session, actor):
    with pytest.raises(BadRequestError):
        cash_service.add_cash_entry(ENTRY_LOCAL_SALE, 0, actor)
    with pytest.raises(BadRequestError):
        cash_service.add_cash_entry("lottery", 100, actor)
    assert db_session.query(CashEntry).count() == 0


def test_add_cash_entry_records_metadata_and_audit(db_session, actor):
    entry = cash_service.add_cash_entry(
        ENTRY_LOCAL_SALE,
        1200,
        actor,
        EntryMetadata(description="counter sale", related_doc_type="receipts", related_doc_id=4),
    )
    assert entry.description == "counter sale"
    assert entry.related_doc_id == 4
    assert entry.created_by == actor.actor_id

    audit = db_session.query(AuditLogEntry).filter_by(table_name="cash_entries").one()
    assert audit.record_id == entry.id
    assert audit.changes_after["amount_cents"] == 1200


def test_expense_and_withdrawal_post_negative(db_session, actor):
    cash_service.add_cash_entry(ENTRY_LOCAL_SALE, 5000, actor)
    expense = cash_service.add_expense(1500, "fuel", actor, description="van")
    withdrawal = cash_service.add_withdrawal(500, actor)

    assert expense.type == ENTRY_EXPENSE
    assert expense.amount_cents == -1500
    assert expense.category == "fuel"
    assert withdrawal.type == ENTRY_OWNER_WITHDRAWAL
    assert withdrawal.amount_cents == -500
    assert cash_service.get_current_balance() == 3000


def test_expense_validation(db_session, actor):
    with pytest.raises(BadRequestError):
        cash_service.add_expense(0, "fuel", actor)
    with pytest.raises(BadRequestError):
        cash_service.add_expense(100, "  ", actor)
    with pytest.raises(BadRequestError):
        cash_service.add_expense(100, 5, actor)
    with pytest.raises(BadRequestError):
        cash_service.add_withdrawal(-5, actor)


def test_head_created_over_existing_entries_continues_chain(db_session, actor):
    db_session.add(CashEntry(type=ENTRY_LOCAL_SALE, amount_cents=300, balance_cents=300, created_by=1))
    db_session.commit()

    entry = cash_service.add_cash_entry(ENTRY_LOCAL_SALE, 200, actor)
    assert entry.balance_cents == 500
    head = db_session.get(CashLedgerHead, LEDGER_HEAD_ID)
    assert head.entry_count == 2
    assert cash_service.consistency_check().is_consistent


def test_entries_by_range_is_half_open(db_session, actor):
    now = utcnow()
    cash_service.add_cash_entry(ENTRY_LOCAL_SALE, 100, actor)

    assert len(cash_service.entries_by_range(now - timedelta(minutes=1), now + timedelta(minutes=1))) == 1
    assert cash_service.entries_by_range(now + timedelta(minutes=1), now + timedelta(minutes=2)) == []
    with pytest.raises(BadRequestError):
        cash_service.entries_by_range(now, now)


def test_todays_and_monthly_entries(db_session, actor):
    cash_service.add_cash_entry(ENTRY_LOCAL_SALE, 100, actor)
    today = utcnow().date()

    assert len(cash_service.todays_entries()) == 1
    assert cash_service.todays_entries(today - timedelta(days=1)) == []
    assert len(cash_service.monthly_entries(today.year, today.month)) == 1
    with pytest.raises(BadRequestError):
        cash_service.monthly_entries(today.year, 13)
