"""
costing_engines.rollup -- Finance rollup across events, modules, categories,
statuses and line items.

Responsibility:
    Transform a flat collection of FinanceLineItem records (top-level items
    and, optionally, sub-items) into scalar summary totals and a grouped
    tree with estimated/actual/variance/budget sums at every node.  Spent
    and committed amounts (total price of items whose status name matches
    the CommitmentRules keywords) are carried alongside, with
    remaining = budget - spent - committed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Consumed by
    FinanceService in costing_modules.finance.

Per-item cost resolution (applied everywhere, including inside groups):

    planned  = planned_cost ?? total_price ?? 0
    actual   = actual_cost ?? 0
    total    = total_price ?? planned ?? 0
    variance = actual - planned

    An item without a planned cost borrows its total price as the estimate,
    which keeps records that only ever had quantity x unit price usable.

Invariants enforced:
    - Conservation: the leaf totals under any grouping sum to the ungrouped
      totals.  Sub-items are counted as items in their own right; nothing
      is subtracted from their parents.
    - Non-leaf nodes are summed from their children (post-order), never by
      re-scanning items.
    - Group keys are identities (ids, or a per-dimension fallback key),
      never labels: two categories sharing a name stay separate.
    - Siblings sort by label (case-sensitive), ties broken by key.
    - Determinism: identical inputs produce identical outputs.

Failure modes:
    None.  An empty input yields all-zero totals and no groups.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from costing_kernel.domain.finance import FinanceLineItem, GroupDimension
from costing_kernel.logging_config import get_logger
from costing_engines.tracer import traced_engine

logger = get_logger("engines.rollup")

_ZERO = Decimal("0")

NO_EVENT = ("noevent", "No Event")
UNCATEGORIZED = ("uncategorized", "Uncategorized")
NO_STATUS = ("nostatus", "No Status")


@dataclass(frozen=True)
class ResolvedCosts:
    """Null-free costs of one item after the fallback chain."""

    planned: Decimal
    actual: Decimal
    total: Decimal

    @property
    def variance(self) -> Decimal:
        return self.actual - self.planned


def resolve_costs(item: FinanceLineItem) -> ResolvedCosts:
    if item.planned_cost is not None:
        planned = item.planned_cost
    elif item.total_price is not None:
        planned = item.total_price
    else:
        planned = _ZERO
    actual = item.actual_cost if item.actual_cost is not None else _ZERO
    total = item.total_price if item.total_price is not None else planned
    return ResolvedCosts(planned=planned, actual=actual, total=total)


def group_identity(item: FinanceLineItem, dimension: GroupDimension) -> tuple[str, str]:
    """(key, label) of the group an item falls into for one dimension."""
    dimension = GroupDimension(dimension)

    if dimension is GroupDimension.EVENT:
        if item.event_id is None:
            return NO_EVENT
        return str(item.event_id), item.event_name or str(item.event_id)

    if dimension is GroupDimension.MODULE:
        return item.module_type.value, item.module_type.display_name

    if dimension is GroupDimension.CATEGORY:
        if item.category_id is None:
            return UNCATEGORIZED
        return str(item.category_id), item.category_name or str(item.category_id)

    if dimension is GroupDimension.STATUS:
        if item.status_id is None:
            return NO_STATUS
        return str(item.status_id), item.status_name or str(item.status_id)

    # LINE_ITEM: sub-items group under their top-level parent.
    if item.is_sub_line_item and item.parent_line_item_id is not None:
        return (
            str(item.parent_line_item_id),
            item.parent_line_item_name or str(item.parent_line_item_id),
        )
    return str(item.id), item.name


def format_money(value: Decimal | None) -> str | None:
    """Render an amount in plain decimal notation, never exponent form."""
    if value is None:
        return None
    return format(value, "f")


def _status_matches(status_name: str | None, keywords: Iterable[str]) -> bool:
    if not status_name:
        return False
    lowered = status_name.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


@dataclass(frozen=True)
class CommitmentRules:
    """
    Status-name keywords marking an item's total price as spent or committed.

    Matching is a case-insensitive substring test.  The two keyword lists
    are applied independently, so a status matching both counts toward both.
    """

    spent_keywords: tuple[str, ...] = ()
    committed_keywords: tuple[str, ...] = ()

    def is_spent(self, item: FinanceLineItem) -> bool:
        return _status_matches(item.status_name, self.spent_keywords)

    def is_committed(self, item: FinanceLineItem) -> bool:
        return _status_matches(item.status_name, self.committed_keywords)


def finance_item_to_dict(item: FinanceLineItem) -> dict[str, Any]:
    """camelCase view of one item with its resolved costs."""
    costs = resolve_costs(item)
    return {
        "id": str(item.id),
        "name": item.name,
        "moduleType": item.module_type.value,
        "moduleName": item.module_type.display_name,
        "eventId": str(item.event_id) if item.event_id else None,
        "eventName": item.event_name,
        "categoryId": str(item.category_id) if item.category_id else None,
        "categoryName": item.category_name,
        "statusId": str(item.status_id) if item.status_id else None,
        "statusName": item.status_name,
        "statusColor": item.status_color,
        "quantity": format_money(item.quantity),
        "unitPrice": format_money(item.unit_price),
        "plannedCost": format_money(costs.planned),
        "actualCost": format_money(costs.actual),
        "totalPrice": format_money(costs.total),
        "variance": format_money(costs.variance),
        "isSubLineItem": item.is_sub_line_item,
        "parentLineItemId": (
            str(item.parent_line_item_id) if item.parent_line_item_id else None
        ),
        "parentLineItemName": item.parent_line_item_name,
        "tags": list(item.tag_names),
    }


@dataclass
class GroupNode:
    """One group in the rollup tree."""

    dimension: GroupDimension
    key: str
    label: str
    estimated: Decimal = _ZERO
    actual: Decimal = _ZERO
    variance: Decimal = _ZERO
    budget: Decimal = _ZERO
    spent: Decimal = _ZERO
    committed: Decimal = _ZERO
    line_item_count: int = 0
    items: list[FinanceLineItem] = field(default_factory=list)
    children: list[GroupNode] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent - self.committed

    def add_item(self, item: FinanceLineItem, rules: CommitmentRules) -> None:
        costs = resolve_costs(item)
        self.items.append(item)
        self.estimated += costs.planned
        self.actual += costs.actual
        self.variance += costs.variance
        self.budget += costs.total
        if rules.is_spent(item):
            self.spent += costs.total
        if rules.is_committed(item):
            self.committed += costs.total
        self.line_item_count += 1

    def absorb(self, child: GroupNode) -> None:
        self.estimated += child.estimated
        self.actual += child.actual
        self.variance += child.variance
        self.budget += child.budget
        self.spent += child.spent
        self.committed += child.committed
        self.line_item_count += child.line_item_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "dimension": self.dimension.value,
            "key": self.key,
            "label": self.label,
            "estimated": format_money(self.estimated),
            "actual": format_money(self.actual),
            "variance": format_money(self.variance),
            "budget": format_money(self.budget),
            "spent": format_money(self.spent),
            "committed": format_money(self.committed),
            "remaining": format_money(self.remaining),
            "lineItemCount": self.line_item_count,
            "items": [finance_item_to_dict(i) for i in self.items],
            "children": [c.to_dict() for c in self.children],
        }


@dataclass(frozen=True)
class RollupTotals:
    """Scalar totals over an item collection."""

    total_estimated: Decimal = _ZERO
    total_actual: Decimal = _ZERO
    total_budget: Decimal = _ZERO
    total_spent: Decimal = _ZERO
    total_committed: Decimal = _ZERO
    line_item_count: int = 0

    @property
    def variance(self) -> Decimal:
        return self.total_actual - self.total_estimated

    @property
    def remaining(self) -> Decimal:
        return self.total_budget - self.total_spent - self.total_committed


@dataclass(frozen=True)
class RollupResult:
    totals: RollupTotals
    groups: tuple[GroupNode, ...] = ()


def _sort_siblings(nodes: Iterable[GroupNode]) -> list[GroupNode]:
    return sorted(nodes, key=lambda n: (n.label, n.key))


class FinanceRollupEngine:
    """
    Stateless rollup calculator.

    ``compute`` is the traced entry point; ``summarize``, ``group`` and
    ``breakdown`` are its building blocks and are usable on their own.
    Spent and committed amounts follow the CommitmentRules given at
    construction; without rules nothing is classified.
    """

    def __init__(self, rules: CommitmentRules | None = None):
        self._rules = rules or CommitmentRules()

    @traced_engine("finance_rollup", "1.0", fingerprint_fields=("items", "group_by"))
    def compute(
        self,
        items: Sequence[FinanceLineItem],
        group_by: Sequence[GroupDimension] = (),
    ) -> RollupResult:
        dimensions = [GroupDimension(d) for d in group_by]
        totals = self.summarize(items)
        groups = self.group(items, dimensions) if dimensions else []

        logger.debug(
            "rollup_computed",
            extra={
                "line_item_count": totals.line_item_count,
                "group_by": [d.value for d in dimensions],
                "top_level_groups": len(groups),
            },
        )
        return RollupResult(totals=totals, groups=tuple(groups))

    def summarize(self, items: Iterable[FinanceLineItem]) -> RollupTotals:
        estimated = actual = budget = spent = committed = _ZERO
        count = 0
        for item in items:
            costs = resolve_costs(item)
            estimated += costs.planned
            actual += costs.actual
            budget += costs.total
            if self._rules.is_spent(item):
                spent += costs.total
            if self._rules.is_committed(item):
                committed += costs.total
            count += 1
        return RollupTotals(
            total_estimated=estimated,
            total_actual=actual,
            total_budget=budget,
            total_spent=spent,
            total_committed=committed,
            line_item_count=count,
        )

    def group(
        self,
        items: Sequence[FinanceLineItem],
        dimensions: Sequence[GroupDimension],
    ) -> list[GroupNode]:
        if not dimensions:
            return []
        return self._build_level(list(items), list(dimensions), 0)

    def breakdown(
        self,
        items: Sequence[FinanceLineItem],
        dimension: GroupDimension,
    ) -> list[GroupNode]:
        """Single-level grouping (by module, by category, ...)."""
        return self.group(items, [GroupDimension(dimension)])

    def _build_level(
        self,
        items: list[FinanceLineItem],
        dimensions: list[GroupDimension],
        depth: int,
    ) -> list[GroupNode]:
        dimension = dimensions[depth]
        is_leaf = depth == len(dimensions) - 1

        buckets: dict[str, tuple[str, list[FinanceLineItem]]] = {}
        for item in items:
            key, label = group_identity(item, dimension)
            if key not in buckets:
                buckets[key] = (label, [])
            buckets[key][1].append(item)

        nodes: list[GroupNode] = []
        for key, (label, members) in buckets.items():
            node = GroupNode(dimension=dimension, key=key, label=label)
            if is_leaf:
                for item in members:
                    node.add_item(item, self._rules)
            else:
                node.children = self._build_level(members, dimensions, depth + 1)
                for child in node.children:
                    node.absorb(child)
            nodes.append(node)

        return _sort_siblings(nodes)
