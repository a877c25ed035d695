"""
Finance Module Service (``costing_modules.finance.service``).

Responsibility
--------------
Answer finance queries: cross-event summaries with caller-chosen grouping,
single-event summaries, and the detailed finance listing.  Item selection
is delegated to ``FinanceSelector``; all arithmetic to
``FinanceRollupEngine``.

Architecture position
---------------------
**Modules layer** -- read-only facade.  Never writes, never commits.

Invariants enforced
-------------------
* Filters that match nothing (including a date range matching no event)
  produce an all-zero summary with empty breakdowns.
* ``total_spent`` / ``total_committed`` classify items by status name
  (case-insensitive substring match on the configured keywords).  The two
  lists are independent; an item matching both counts toward both.

Failure modes
-------------
* ``EventNotFoundError`` -- ``get_event_summary`` for an unknown event.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from costing_config.schema import CostingConfig
from costing_engines.rollup import CommitmentRules, FinanceRollupEngine, resolve_costs
from costing_kernel.domain.finance import FinanceFilters, FinanceLineItem, GroupDimension
from costing_kernel.exceptions import EventNotFoundError
from costing_kernel.logging_config import get_logger
from costing_kernel.models.event import Event
from costing_kernel.selectors.finance_selector import FinanceSelector
from costing_modules.finance.models import FinanceLineItemDetail, FinanceSummary

logger = get_logger("modules.finance.service")


class FinanceService:
    """Finance rollups over line items."""

    def __init__(
        self,
        session: Session,
        config: CostingConfig | None = None,
        engine: FinanceRollupEngine | None = None,
    ):
        self._session = session
        self._config = config or CostingConfig()
        self._selector = FinanceSelector(session)
        self._engine = engine or FinanceRollupEngine(CommitmentRules(
            spent_keywords=self._config.finance.spent_status_keywords,
            committed_keywords=self._config.finance.committed_status_keywords,
        ))

    def _include_sub_items(self, filters: FinanceFilters) -> bool:
        if filters.include_sub_items is not None:
            return filters.include_sub_items
        return self._config.finance.include_sub_items

    def get_summary(
        self,
        filters: FinanceFilters | None = None,
        group_by: Sequence[GroupDimension | str] = (),
    ) -> FinanceSummary:
        filters = filters or FinanceFilters()
        items = self._selector.list_finance_items(
            filters, self._include_sub_items(filters),
        )
        summary = self.summarize(items, group_by)

        logger.info(
            "finance_summary_computed",
            extra={
                "event_filter_count": len(filters.event_ids),
                "module_filter": [m.value for m in filters.module_types],
                "has_date_range": filters.has_date_range,
                "line_item_count": summary.line_item_count,
                "total_estimated": summary.total_estimated,
                "total_actual": summary.total_actual,
            },
        )
        return summary

    def get_event_summary(
        self,
        event_id: UUID,
        group_by: Sequence[GroupDimension | str] = (),
        include_sub_items: bool | None = None,
    ) -> FinanceSummary:
        if self._session.get(Event, event_id) is None:
            raise EventNotFoundError(str(event_id))
        return self.get_summary(
            FinanceFilters(event_ids=(event_id,), include_sub_items=include_sub_items),
            group_by,
        )

    def get_line_items(
        self, filters: FinanceFilters | None = None,
    ) -> list[FinanceLineItemDetail]:
        """Flat listing, newest top-level items first, sub-items after their parent."""
        filters = filters or FinanceFilters()
        items = self._selector.list_finance_items(
            filters, self._include_sub_items(filters),
        )
        return [FinanceLineItemDetail(item=i, costs=resolve_costs(i)) for i in items]

    def summarize(
        self,
        items: Sequence[FinanceLineItem],
        group_by: Sequence[GroupDimension | str] = (),
    ) -> FinanceSummary:
        """Build a FinanceSummary from an already-selected item collection."""
        result = self._engine.compute(items, [GroupDimension(d) for d in group_by])
        totals = result.totals
        return FinanceSummary(
            total_estimated=totals.total_estimated,
            total_actual=totals.total_actual,
            total_budget=totals.total_budget,
            variance=totals.variance,
            total_spent=totals.total_spent,
            total_committed=totals.total_committed,
            remaining=totals.remaining,
            line_item_count=totals.line_item_count,
            by_module=tuple(self._engine.breakdown(items, GroupDimension.MODULE)),
            by_category=tuple(self._engine.breakdown(items, GroupDimension.CATEGORY)),
            by_status=tuple(self._engine.breakdown(items, GroupDimension.STATUS)),
            by_event=tuple(self._engine.breakdown(items, GroupDimension.EVENT)),
            groups=result.groups,
        )
