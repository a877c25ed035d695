"""
TotalRecalculationService -- keeps parent cost fields equal to sub-item sums.

Responsibility:
    Given a parent line item id, recompute the parent's ``actual_cost``,
    ``total_price`` and (unless a manual budget is being preserved)
    ``planned_cost`` from the current state of its direct sub-items.

Architecture position:
    Kernel > Services -- imperative shell.  Called by LineItemService after
    every sub-item create, update and delete, inside the same transaction.

Invariants enforced:
    - Full replace, never a delta: the result depends only on the sub-items
      present at fetch time, so redundant or out-of-order calls converge.
    - Null costs count as zero in every sum.
    - A zero sum is written back as NULL ("zero means absent").
    - Manual planned cost: with ``preserve_planned_cost`` set, a parent whose
      planned cost is positive AND was entered by hand keeps it.  Planned
      costs written by an earlier recalculation are not preserved, so a
      parent created with no budget keeps tracking its sub-items.
    - The parent row is locked (SELECT ... FOR UPDATE) before sub-items are
      read, serializing concurrent recalculations of one parent on
      PostgreSQL.

Failure modes:
    - Missing parent: logged and ignored.  Deletes may race with
      recalculation triggers, so this is not an error.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from costing_kernel.domain.clock import Clock, SystemClock
from costing_kernel.logging_config import get_logger
from costing_kernel.models.line_item import LineItem
from costing_kernel.selectors.line_item_selector import LineItemSelector
from costing_kernel.services.base import BaseService

logger = get_logger("services.recalculation")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class SubItemTotals:
    """Null-safe sums over a parent's direct sub-items."""

    planned: Decimal
    actual: Decimal
    total: Decimal
    count: int


@dataclass(frozen=True)
class RecalculationResult:
    """Parent state written by one recalculation."""

    parent_id: UUID
    planned_cost: Decimal | None
    actual_cost: Decimal | None
    total_price: Decimal | None
    sub_item_count: int
    planned_cost_preserved: bool


def sum_sub_items(sub_items: Iterable[LineItem]) -> SubItemTotals:
    planned = actual = total = _ZERO
    count = 0
    for item in sub_items:
        planned += item.planned_cost or _ZERO
        actual += item.actual_cost or _ZERO
        total += item.total_price or _ZERO
        count += 1
    return SubItemTotals(planned=planned, actual=actual, total=total, count=count)


def positive_or_none(value: Decimal) -> Decimal | None:
    return value if value > 0 else None


class TotalRecalculationService(BaseService[LineItem]):
    """
    Recalculates parent aggregates from sub-items.

    Contract:
        ``recalculate_parent`` is idempotent and flush-only.  It returns the
        written state, or None when the parent no longer exists.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._selector = LineItemSelector(session)

    def recalculate_parent(
        self,
        parent_id: UUID,
        preserve_planned_cost: bool = True,
        actor_id: UUID | None = None,
    ) -> RecalculationResult | None:
        parent = self._selector.get_for_update(parent_id)
        if parent is None:
            logger.info(
                "parent_recalculation_skipped",
                extra={"parent_id": str(parent_id), "reason": "parent_not_found"},
            )
            return None

        totals = sum_sub_items(self._selector.list_sub_items(parent_id))

        preserved = (
            preserve_planned_cost
            and parent.planned_cost_manual
            and parent.planned_cost is not None
            and parent.planned_cost > 0
        )

        parent.actual_cost = positive_or_none(totals.actual)
        parent.total_price = positive_or_none(totals.total)
        if not preserved:
            parent.planned_cost = positive_or_none(totals.planned)
            parent.planned_cost_manual = False

        parent.updated_at = self._clock.now()
        if actor_id is not None:
            parent.updated_by_id = actor_id

        self.session.flush()

        logger.info(
            "parent_totals_recalculated",
            extra={
                "parent_id": str(parent_id),
                "sub_item_count": totals.count,
                "planned_cost": parent.planned_cost,
                "actual_cost": parent.actual_cost,
                "total_price": parent.total_price,
                "planned_cost_preserved": preserved,
            },
        )

        return RecalculationResult(
            parent_id=parent.id,
            planned_cost=parent.planned_cost,
            actual_cost=parent.actual_cost,
            total_price=parent.total_price,
            sub_item_count=totals.count,
            planned_cost_preserved=preserved,
        )
