"""
costing_engines.pricing -- total price derivation for line items.

Responsibility:
    Compute a line item's ``total_price`` from the cost inputs it will hold
    after a create or update:

        quantity and unit_price both present  ->  quantity * unit_price
        else planned_cost present              ->  planned_cost
        else                                   ->  previous total_price
                                                   (None on create)

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Called by LineItemService.

Failure modes:
    None.  Numeric validation happens before values reach this module.

Usage:
    from costing_engines.pricing import PriceInputs, derive_total_price

    derive_total_price(None, {"quantity": Decimal("2"), "unit_price": Decimal("1500")})
    # Decimal("3000")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

PRICE_FIELDS: frozenset[str] = frozenset({"quantity", "unit_price", "planned_cost"})


@dataclass(frozen=True)
class PriceInputs:
    """Cost inputs a line item currently holds."""

    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    planned_cost: Decimal | None = None
    total_price: Decimal | None = None

    @classmethod
    def of(cls, item: Any) -> PriceInputs:
        """Snapshot the price fields of any object carrying them (e.g. a LineItem row)."""
        return cls(
            quantity=item.quantity,
            unit_price=item.unit_price,
            planned_cost=item.planned_cost,
            total_price=item.total_price,
        )


def touches_price(changes: Mapping[str, Any]) -> bool:
    """True when an update changes any input of the price derivation."""
    return not PRICE_FIELDS.isdisjoint(changes)


def derive_total_price(
    current: PriceInputs | None,
    incoming: Mapping[str, Any],
) -> Decimal | None:
    """
    Derive ``total_price`` from the end state of a create or update.

    Args:
        current: The item's stored price inputs, or None on create.
        incoming: Fields being written.  Absent keys keep their current
            value; a present key with value None clears the field.
    """
    base = current or PriceInputs()

    def end_state(name: str) -> Decimal | None:
        if name in incoming:
            return incoming[name]
        return getattr(base, name)

    quantity = end_state("quantity")
    unit_price = end_state("unit_price")
    if quantity is not None and unit_price is not None:
        return Decimal(quantity) * Decimal(unit_price)

    planned_cost = end_state("planned_cost")
    if planned_cost is not None:
        return Decimal(planned_cost)

    return base.total_price
