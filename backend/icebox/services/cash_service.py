# Overview: Service-layer operations for the cash balance ledger.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func

from ..actor import Actor
from ..errors import BadRequestError
from ..extensions import db
from ..logging_config import get_logger
from ..models import CashEntry, CashLedgerHead
from icebox.time_utils import day_bounds, month_bounds, utcnow
from .audit_service import record_audit
from .concurrency import lock_for_update, run_in_transaction
"""
Cash Ledger Invariants (authoritative)

- Append-only: entries are never updated or deleted.
- Every entry embeds the resulting balance: balance_n = balance_{n-1} + amount_n.
- SUM(amount_cents) over all entries == latest entry's balance_cents
  == CashLedgerHead.balance_cents.
- The head row is the only serialization point. append_entry locks it
  FOR UPDATE inside the caller's transaction and advances it together with
  the insert; "latest" is never re-derived by sorting entries.
- Reading the current balance does not take the lock.
"""

logger = get_logger("services.cash")

LEDGER_HEAD_ID = 1

ENTRY_WORKER_TRIP = "worker_trip"
ENTRY_WORKER_PAYMENT = "worker_payment"
ENTRY_LOCAL_SALE = "local_sale"
ENTRY_OWNER_SALE = "owner_sale"
ENTRY_OWNER_WITHDRAWAL = "owner_withdrawal"
ENTRY_EXPENSE = "expense"

ENTRY_TYPES = (
    ENTRY_WORKER_TRIP,
    ENTRY_WORKER_PAYMENT,
    ENTRY_LOCAL_SALE,
    ENTRY_OWNER_SALE,
    ENTRY_OWNER_WITHDRAWAL,
    ENTRY_EXPENSE,
)


@dataclass(frozen=True)
class EntryMetadata:
    description: Optional[str] = None
    category: Optional[str] = None
    related_doc_type: Optional[str] = None
    related_doc_id: Optional[int] = None


@dataclass
class BalanceInfo:
    current_balance_cents: int
    calculated_balance_cents: int
    head_balance_cents: int
    entry_count: int
    is_consistent: bool
    problems: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "current_balance_cents": self.current_balance_cents,
            "calculated_balance_cents": self.calculated_balance_cents,
            "head_balance_cents": self.head_balance_cents,
            "entry_count": self.entry_count,
            "is_consistent": self.is_consistent,
            "problems": list(self.problems),
        }


def _latest_entry() -> CashEntry | None:
    return db.session.query(CashEntry).order_by(CashEntry.id.desc()).first()


def _lock_head() -> CashLedgerHead:
    """
    Lock the ledger head, creating it on first use.

    A head created over pre-existing entries starts from the latest
    materialized balance so the chain continues unbroken.
    """
    head = lock_for_update(
        db.session.query(CashLedgerHead).filter_by(id=LEDGER_HEAD_ID)
    ).first()
    if head is not None:
        return head

    latest = _latest_entry()
    count = db.session.query(func.count(CashEntry.id)).scalar() or 0
    head = CashLedgerHead(
        id=LEDGER_HEAD_ID,
        balance_cents=latest.balance_cents if latest else 0,
        last_entry_id=latest.id if latest else None,
        entry_count=int(count),
    )
    db.session.add(head)
    db.session.flush()
    return head


def append_entry(
    entry_type: str,
    amount_cents: int,
    actor: Actor,
    metadata: EntryMetadata | None = None,
) -> CashEntry:
    """
    Append one signed entry inside the caller's open transaction.

    The caller commits. Two appenders racing for the head either queue on the
    row lock or, where the database ignores FOR UPDATE, the loser fails on the
    head's version check and its whole transaction rolls back.
    """
    if entry_type not in ENTRY_TYPES:
        raise BadRequestError(f"Unknown cash entry type {entry_type!r}")
    metadata = metadata or EntryMetadata()

    head = _lock_head()
    new_balance = head.balance_cents + amount_cents

    entry = CashEntry(
        type=entry_type,
        amount_cents=amount_cents,
        balance_cents=new_balance,
        description=metadata.description,
        category=metadata.category,
        related_doc_type=metadata.related_doc_type,
        related_doc_id=metadata.related_doc_id,
        created_at=utcnow(),
        created_by=actor.actor_id,
    )
    db.session.add(entry)
    db.session.flush()

    head.balance_cents = new_balance
    head.last_entry_id = entry.id
    head.entry_count = head.entry_count + 1
    head.updated_at = entry.created_at
    db.session.flush()

    return entry


def add_cash_entry(
    entry_type: str,
    amount_cents: int,
    actor: Actor,
    metadata: EntryMetadata | None = None,
) -> CashEntry:
    """Standalone append: its own transaction plus an audit record."""
    if entry_type not in ENTRY_TYPES:
        raise BadRequestError(f"Unknown cash entry type {entry_type!r}")
    if amount_cents == 0:
        raise BadRequestError("Cash entry amount cannot be zero")

    def _op():
        entry = append_entry(entry_type, amount_cents, actor, metadata)
        record_audit(
            action="create",
            table_name="cash_entries",
            record_id=entry.id,
            after=entry.to_dict(),
            actor=actor,
        )
        return entry

    entry = run_in_transaction(_op, operation="add_cash_entry")
    logger.info(
        "Cash entry appended",
        extra={"cash_entry_id": entry.id, "entry_type": entry_type, "amount_cents": amount_cents},
    )
    return entry


def add_expense(
    amount_cents: int,
    category: str,
    actor: Actor,
    description: str | None = None,
) -> CashEntry:
    """Expenses are entered as positive amounts and posted negative."""
    if amount_cents <= 0:
        raise BadRequestError("Expense amount must be positive")
    if not isinstance(category, str) or not category.strip():
        raise BadRequestError("Expense category is required")
    return add_cash_entry(
        ENTRY_EXPENSE,
        -amount_cents,
        actor,
        EntryMetadata(description=description, category=category.strip()),
    )


def add_withdrawal(amount_cents: int, actor: Actor, description: str | None = None) -> CashEntry:
    if amount_cents <= 0:
        raise BadRequestError("Withdrawal amount must be positive")
    return add_cash_entry(
        ENTRY_OWNER_WITHDRAWAL,
        -amount_cents,
        actor,
        EntryMetadata(description=description),
    )


def get_current_balance() -> int:
    """Latest materialized balance, read without locking."""
    head = db.session.get(CashLedgerHead, LEDGER_HEAD_ID)
    if head is not None:
        return head.balance_cents
    latest = _latest_entry()
    return latest.balance_cents if latest else 0


def consistency_check() -> BalanceInfo:
    """
    Recompute the balance from zero and compare it to the materialized ones.

    A mismatch means corruption, not a user error: it is reported and
    logged, never raised.
    """
    calculated = int(
        db.session.query(func.coalesce(func.sum(CashEntry.amount_cents), 0)).scalar() or 0
    )
    entry_count = int(db.session.query(func.count(CashEntry.id)).scalar() or 0)
    latest = _latest_entry()
    current = latest.balance_cents if latest else 0

    head = db.session.get(CashLedgerHead, LEDGER_HEAD_ID)
    head_balance = head.balance_cents if head is not None else current

    problems = []
    if current != calculated:
        problems.append(
            f"latest balance {current} differs from sum of amounts {calculated}"
        )
    if head_balance != current:
        problems.append(
            f"ledger head balance {head_balance} differs from latest entry balance {current}"
        )
    if head is not None and head.entry_count != entry_count:
        problems.append(
            f"ledger head counts {head.entry_count} entries, table holds {entry_count}"
        )

    info = BalanceInfo(
        current_balance_cents=current,
        calculated_balance_cents=calculated,
        head_balance_cents=head_balance,
        entry_count=entry_count,
        is_consistent=not problems,
        problems=problems,
    )
    if problems:
        logger.error("Cash ledger inconsistency detected", extra={"problems": problems})
    return info


def entries_by_range(start: datetime, end: datetime) -> list[CashEntry]:
    """Entries with start <= created_at < end, newest first."""
    if end <= start:
        raise BadRequestError("Range end must be after range start")
    return (
        db.session.query(CashEntry)
        .filter(CashEntry.created_at >= start, CashEntry.created_at < end)
        .order_by(CashEntry.id.desc())
        .all()
    )


def todays_entries(today: date | None = None) -> list[CashEntry]:
    start, end = day_bounds(today or utcnow().date())
    return entries_by_range(start, end)


def monthly_entries(year: int, month: int) -> list[CashEntry]:
    try:
        start, end = month_bounds(year, month)
    except ValueError as exc:
        raise BadRequestError("Invalid year/month") from exc
    return entries_by_range(start, end)
