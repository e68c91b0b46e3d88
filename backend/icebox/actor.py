from __future__ import annotations

from dataclasses import dataclass


ROLE_ADMIN = "admin"
ROLE_OWNER = "owner"
ROLE_WORKER = "worker"


@dataclass(frozen=True)
class Actor:
    """
    Identity attached to every mutating call.

    Supplied by the upstream identity provider; actor_id is written verbatim
    into created_by / updated_by columns and the audit log.
    """
    actor_id: int
    role: str

    @property
    def is_owner(self) -> bool:
        return self.role in (ROLE_OWNER, ROLE_ADMIN)


# Roles allowed to move stock, money and settlements.
MANAGER_ROLES = (ROLE_ADMIN, ROLE_OWNER)
