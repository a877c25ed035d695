"""
Finance Domain Models (``costing_modules.finance.models``).

Responsibility
--------------
The summary returned by FinanceService and the per-item detail rows of the
finance listing.  ``to_dict()`` renders the camelCase payload the request
layer serves, with Decimal amounts as plain decimal strings.

Invariants enforced
-------------------
* An empty summary is all zeros with empty collections, never None.
* ``variance == total_actual - total_estimated`` and
  ``remaining == total_budget - total_spent - total_committed``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from costing_engines.rollup import (
    GroupNode,
    ResolvedCosts,
    finance_item_to_dict,
    format_money,
)
from costing_kernel.domain.finance import FinanceLineItem

_ZERO = Decimal("0")


def _nodes(nodes: tuple[GroupNode, ...]) -> list[dict[str, Any]]:
    return [n.to_dict() for n in nodes]


@dataclass(frozen=True)
class FinanceSummary:
    total_estimated: Decimal = _ZERO
    total_actual: Decimal = _ZERO
    total_budget: Decimal = _ZERO
    variance: Decimal = _ZERO
    total_spent: Decimal = _ZERO
    total_committed: Decimal = _ZERO
    remaining: Decimal = _ZERO
    line_item_count: int = 0
    by_module: tuple[GroupNode, ...] = ()
    by_category: tuple[GroupNode, ...] = ()
    by_status: tuple[GroupNode, ...] = ()
    by_event: tuple[GroupNode, ...] = ()
    groups: tuple[GroupNode, ...] = ()

    @classmethod
    def empty(cls) -> FinanceSummary:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEstimated": format_money(self.total_estimated),
            "totalActual": format_money(self.total_actual),
            "totalBudget": format_money(self.total_budget),
            "variance": format_money(self.variance),
            "totalSpent": format_money(self.total_spent),
            "totalCommitted": format_money(self.total_committed),
            "remaining": format_money(self.remaining),
            "lineItemCount": self.line_item_count,
            "byModule": _nodes(self.by_module),
            "byCategory": _nodes(self.by_category),
            "byStatus": _nodes(self.by_status),
            "byEvent": _nodes(self.by_event),
            "groups": _nodes(self.groups),
        }


@dataclass(frozen=True)
class FinanceLineItemDetail:
    """One row of the finance listing: the item plus its resolved costs."""

    item: FinanceLineItem
    costs: ResolvedCosts

    @property
    def variance(self) -> Decimal:
        return self.costs.variance

    def to_dict(self) -> dict[str, Any]:
        return finance_item_to_dict(self.item)
