"""
Settlement math: reconcile what left on a trip against what came back.

Pure functions, no database access.

RULES:
- Returns are grouped by (product_id, flavor_id); matching is by key, never
  by position, so item order does not matter.
- sold = max(loaded - returned_for_key, 0) per loaded line.
- When a key has more returned than loaded the excess is ignored (floored at
  zero) and the key is reported in over_returned so callers can flag it.
- A key loaded on several lines has its returns applied to each line
  independently.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Protocol


class LoadedLine(Protocol):
    product_id: int
    flavor_id: int
    quantity: int
    unit_price_cents: int


class ReturnedLine(Protocol):
    product_id: int
    flavor_id: int
    quantity: int


@dataclass(frozen=True)
class SettlementResult:
    sold_quantity: int
    amount_due_cents: int
    over_returned: dict[tuple[int, int], int] = field(default_factory=dict)


def group_returns(returned: Iterable[ReturnedLine]) -> dict[tuple[int, int], int]:
    totals: dict[tuple[int, int], int] = defaultdict(int)
    for item in returned:
        totals[(item.product_id, item.flavor_id)] += item.quantity
    return dict(totals)


def calculate_settlement(
    loaded: Iterable[LoadedLine],
    returned: Iterable[ReturnedLine],
) -> SettlementResult:
    returned_by_key = group_returns(returned)

    total_sold = 0
    total_amount = 0
    loaded_by_key: dict[tuple[int, int], int] = defaultdict(int)

    for item in loaded:
        key = (item.product_id, item.flavor_id)
        loaded_by_key[key] += item.quantity
        sold = max(item.quantity - returned_by_key.get(key, 0), 0)
        total_sold += sold
        total_amount += sold * item.unit_price_cents

    over_returned = {
        key: qty - loaded_by_key.get(key, 0)
        for key, qty in returned_by_key.items()
        if qty > loaded_by_key.get(key, 0)
    }

    return SettlementResult(
        sold_quantity=total_sold,
        amount_due_cents=total_amount,
        over_returned=over_returned,
    )
