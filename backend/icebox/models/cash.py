from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class CashEntry(db.Model):
    """
    Append-only cash register entry.

    Each row embeds the running balance after it was applied:
        balance_n = balance_{n-1} + amount_n
    so SUM(amount_cents) over all rows must equal the latest balance_cents.
    Rows are never updated or deleted.
    """
    __tablename__ = "cash_entries"
    __table_args__ = (
        db.Index("ix_cash_entries_created", "created_at"),
        db.Index("ix_cash_entries_related_doc", "related_doc_type", "related_doc_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False, index=True)

    # Signed: positive is money in, negative is money out
    amount_cents = db.Column(db.Integer, nullable=False)
    balance_cents = db.Column(db.Integer, nullable=False)

    description = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(64), nullable=True)

    related_doc_type = db.Column(db.String(64), nullable=True)
    related_doc_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<CashEntry id={self.id} type={self.type!r} amount={self.amount_cents} balance={self.balance_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "amount_cents": self.amount_cents,
            "balance_cents": self.balance_cents,
            "description": self.description,
            "category": self.category,
            "related_doc_type": self.related_doc_type,
            "related_doc_id": self.related_doc_id,
            "created_at": to_utc_z(self.created_at),
            "created_by": self.created_by,
        }


class CashLedgerHead(db.Model):
    """
    Singleton row (id=1) that owns the ledger's serialization point.

    Appenders lock this row FOR UPDATE before computing the next balance.
    version_id turns a writer that slipped past the lock (SQLite ignores
    FOR UPDATE) into a StaleDataError instead of a diverging balance.
    """
    __tablename__ = "cash_ledger_head"

    id = db.Column(db.Integer, primary_key=True)
    balance_cents = db.Column(db.Integer, nullable=False, default=0)
    last_entry_id = db.Column(db.Integer, db.ForeignKey("cash_entries.id"), nullable=True)
    entry_count = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "balance_cents": self.balance_cents,
            "last_entry_id": self.last_entry_id,
            "entry_count": self.entry_count,
            "version_id": self.version_id,
            "updated_at": to_utc_z(self.updated_at),
        }
