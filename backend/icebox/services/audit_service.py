# Overview: Service-layer operations for the audit log; written inside the caller's transaction.

from __future__ import annotations

from typing import Optional

from ..actor import Actor
from ..errors import BadRequestError
from ..extensions import db
from ..models import AuditLogEntry
"""
Audit log invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- Entries are written inside the same DB transaction as the mutation they
  record; record_audit only flushes, the use case commits.
- No domain logic here.
"""

AUDIT_ACTIONS = ("create", "update", "delete")


def record_audit(
    *,
    action: str,
    table_name: str,
    record_id: int,
    actor: Actor,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
) -> AuditLogEntry:
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"unknown audit action {action!r}")

    entry = AuditLogEntry(
        action=action,
        table_name=table_name,
        record_id=record_id,
        changes_before=before,
        changes_after=after,
        created_by=actor.actor_id,
        actor_role=actor.role,
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def list_audit_entries(
    *,
    table_name: str | None = None,
    record_id: int | None = None,
    limit: int = 100,
) -> list[AuditLogEntry]:
    if limit <= 0:
        raise BadRequestError("limit must be positive")

    q = db.session.query(AuditLogEntry)
    if table_name is not None:
        q = q.filter(AuditLogEntry.table_name == table_name)
    if record_id is not None:
        q = q.filter(AuditLogEntry.record_id == record_id)
    return q.order_by(AuditLogEntry.id.desc()).limit(limit).all()
