"""
Error taxonomy for the settlement engine.

- NotFoundError: missing trip/sale/transfer/pile, or settling a document that
  is no longer open.
- BadRequestError: input validation; always raised before a transaction opens.
- ConflictError: storage-detected business conflicts (lock contention,
  duplicate pile insert). InsufficientStockError is the common case.
- InternalError: storage, transaction or serialization failure.

Routes render every IceboxError through a single error handler.
"""
from __future__ import annotations

from typing import Any


class IceboxError(Exception):
    """Base class. Carries an HTTP status and optional structured details."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(IceboxError):
    status_code = 404


class BadRequestError(IceboxError):
    status_code = 400


class ConflictError(IceboxError):
    status_code = 409


class InsufficientStockError(ConflictError):
    """Raised when a conditional decrement matched no row."""

    def __init__(self, inventory_id: int):
        super().__init__(
            f"Insufficient stock for inventory item {inventory_id}",
            details={"inventory_id": inventory_id},
        )
        self.inventory_id = inventory_id


class InternalError(IceboxError):
    status_code = 500
