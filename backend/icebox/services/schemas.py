"""
Input line items for the settlement use cases.

Routes build these from JSON with from_dict(); services validate them with
validate_*() before opening a transaction.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from ..errors import BadRequestError
from icebox.time_utils import normalize_datetime, parse_iso_datetime


def _require(payload: dict, key: str) -> Any:
    if not isinstance(payload, dict):
        raise BadRequestError("Each item must be a JSON object")
    if key not in payload or payload[key] is None:
        raise BadRequestError(f"Missing required field: {key}")
    return payload[key]


def to_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects bools, floats and decimal strings."""
    if isinstance(value, bool):
        raise BadRequestError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise BadRequestError(f"{field} must be an integer")


def to_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise BadRequestError(f"{field} must be a string")
    return value


def to_bool(value: Any, field: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise BadRequestError(f"{field} must be a boolean")


def to_datetime(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            dt = None
        if dt is not None:
            return dt
    raise BadRequestError(f"{field} must be an ISO-8601 datetime")


@dataclass(frozen=True)
class LoadedItemInput:
    inventory_id: int
    product_id: int
    flavor_id: int
    freezer_id: int
    quantity: int
    unit_price_cents: int
    is_deformed: bool = False

    @classmethod
    def from_dict(cls, payload: dict) -> "LoadedItemInput":
        return cls(
            inventory_id=to_int(_require(payload, "inventory_id"), "inventory_id"),
            product_id=to_int(_require(payload, "product_id"), "product_id"),
            flavor_id=to_int(_require(payload, "flavor_id"), "flavor_id"),
            freezer_id=to_int(_require(payload, "freezer_id"), "freezer_id"),
            quantity=to_int(_require(payload, "quantity"), "quantity"),
            unit_price_cents=to_int(_require(payload, "unit_price_cents"), "unit_price_cents"),
            is_deformed=to_bool(payload.get("is_deformed"), "is_deformed"),
        )


@dataclass(frozen=True)
class ReturnedItemInput:
    product_id: int
    flavor_id: int
    quantity: int
    destination_freezer_id: int
    is_deformed: bool = False

    @classmethod
    def from_dict(cls, payload: dict) -> "ReturnedItemInput":
        return cls(
            product_id=to_int(_require(payload, "product_id"), "product_id"),
            flavor_id=to_int(_require(payload, "flavor_id"), "flavor_id"),
            quantity=to_int(_require(payload, "quantity"), "quantity"),
            destination_freezer_id=to_int(
                _require(payload, "destination_freezer_id"), "destination_freezer_id"
            ),
            is_deformed=to_bool(payload.get("is_deformed"), "is_deformed"),
        )


@dataclass(frozen=True)
class TransferItemInput:
    product_id: int
    flavor_id: int
    quantity: int

    @classmethod
    def from_dict(cls, payload: dict) -> "TransferItemInput":
        return cls(
            product_id=to_int(_require(payload, "product_id"), "product_id"),
            flavor_id=to_int(_require(payload, "flavor_id"), "flavor_id"),
            quantity=to_int(_require(payload, "quantity"), "quantity"),
        )


def parse_items(raw: Any, item_cls, field: str) -> list:
    if raw is None:
        raise BadRequestError(f"Missing required field: {field}")
    if not isinstance(raw, list):
        raise BadRequestError(f"{field} must be a list")
    return [item_cls.from_dict(entry) for entry in raw]


def validate_loaded_items(items: Iterable[LoadedItemInput]) -> list[LoadedItemInput]:
    items = list(items)
    if not items:
        raise BadRequestError("At least one loaded item is required")
    for item in items:
        if item.quantity <= 0:
            raise BadRequestError(
                "Loaded quantity must be positive",
                details={"inventory_id": item.inventory_id, "quantity": item.quantity},
            )
        if item.unit_price_cents < 0:
            raise BadRequestError(
                "Unit price cannot be negative",
                details={"inventory_id": item.inventory_id, "unit_price_cents": item.unit_price_cents},
            )
    return items


def validate_returned_items(items: Iterable[ReturnedItemInput]) -> list[ReturnedItemInput]:
    # An empty list is valid: everything loaded was sold.
    items = list(items)
    for item in items:
        if item.quantity <= 0:
            raise BadRequestError(
                "Returned quantity must be positive",
                details={"product_id": item.product_id, "flavor_id": item.flavor_id},
            )
    return items


def validate_transfer_items(items: Iterable[TransferItemInput]) -> list[TransferItemInput]:
    items = list(items)
    if not items:
        raise BadRequestError("At least one item must be transferred")
    for item in items:
        if item.quantity <= 0:
            raise BadRequestError(
                "Transfer quantity must be positive",
                details={"product_id": item.product_id, "flavor_id": item.flavor_id},
            )
    return items
