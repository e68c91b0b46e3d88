from __future__ import annotations

from ..extensions import db
from icebox.time_utils import to_utc_z, utcnow


class AuditLogEntry(db.Model):
    """
    Append-only audit record written in the same transaction as the mutation.

    changes_before / changes_after hold to_dict() snapshots of the record.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_table_record", "table_name", "record_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(16), nullable=False)  # create, update, delete
    table_name = db.Column(db.String(64), nullable=False)
    record_id = db.Column(db.Integer, nullable=False)

    changes_before = db.Column(db.JSON, nullable=True)
    changes_after = db.Column(db.JSON, nullable=True)

    created_by = db.Column(db.Integer, nullable=False)
    actor_role = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "changes_before": self.changes_before,
            "changes_after": self.changes_after,
            "created_by": self.created_by,
            "actor_role": self.actor_role,
            "created_at": to_utc_z(self.created_at),
        }
