"""
Module: costing_kernel.selectors.finance_selector
Responsibility: Turn FinanceFilters into the flat collection of
    FinanceLineItem DTOs that the rollup engine consumes.
Architecture position: Kernel > Selectors.  Returns frozen DTOs only.

Filter semantics:
    - event_ids and the date range are intersected.  The date range selects
      events whose [start_date, end_date] span overlaps the requested range.
    - Once any event or date criterion is present, items without an event
      are excluded.  If no event qualifies, the result is empty.
    - module_types restricts top-level items; sub-items follow their parent.
    - Sub-items are only fetched when asked for, and are returned alongside
      their parents (flagged is_sub_line_item).

Failure modes:
    - None beyond database errors; an empty match is an empty list.
"""

from uuid import UUID

from sqlalchemy import select

from costing_kernel.domain.finance import FinanceFilters, FinanceLineItem
from costing_kernel.domain.modules import ModuleType
from costing_kernel.models.event import Event
from costing_kernel.models.line_item import LineItem
from costing_kernel.selectors.base import BaseSelector


class FinanceSelector(BaseSelector[LineItem]):
    """Selector for finance rollup inputs."""

    def matching_event_ids(self, filters: FinanceFilters) -> list[UUID] | None:
        """
        Event ids admitted by the filters.

        Returns None when the filters place no restriction on events, and a
        (possibly empty) list otherwise.
        """
        if not filters.scopes_events:
            return None

        stmt = select(Event.id)
        if filters.event_ids:
            stmt = stmt.where(Event.id.in_(filters.event_ids))
        if filters.start_date is not None:
            stmt = stmt.where(Event.end_date >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(Event.start_date <= filters.end_date)

        return list(self.session.execute(stmt).scalars())

    def list_finance_items(
        self,
        filters: FinanceFilters,
        include_sub_items: bool,
    ) -> list[FinanceLineItem]:
        """Top-level items (newest first), each followed by its sub-items."""
        event_ids = self.matching_event_ids(filters)
        if event_ids is not None and not event_ids:
            return []

        stmt = (
            select(LineItem, Event.name)
            .outerjoin(Event, LineItem.event_id == Event.id)
            .where(LineItem.parent_id.is_(None))
        )
        if event_ids is not None:
            stmt = stmt.where(LineItem.event_id.in_(event_ids))
        if filters.module_types:
            stmt = stmt.where(
                LineItem.module_type.in_([m.value for m in filters.module_types])
            )
        stmt = stmt.order_by(LineItem.created_at.desc(), LineItem.id.asc())

        parents = self.session.execute(stmt).unique().all()
        if not include_sub_items:
            return [_to_finance_item(item, event_name) for item, event_name in parents]

        subs_by_parent = self._sub_items_by_parent([item.id for item, _ in parents])

        result: list[FinanceLineItem] = []
        for item, event_name in parents:
            result.append(_to_finance_item(item, event_name))
            for sub, sub_event_name in subs_by_parent.get(item.id, []):
                result.append(_to_finance_item(sub, sub_event_name, parent=item))
        return result

    def _sub_items_by_parent(
        self, parent_ids: list[UUID],
    ) -> dict[UUID, list[tuple[LineItem, str | None]]]:
        if not parent_ids:
            return {}
        stmt = (
            select(LineItem, Event.name)
            .outerjoin(Event, LineItem.event_id == Event.id)
            .where(LineItem.parent_id.in_(parent_ids))
            .order_by(LineItem.created_at.asc(), LineItem.id.asc())
        )
        grouped: dict[UUID, list[tuple[LineItem, str | None]]] = {}
        for sub, event_name in self.session.execute(stmt).unique().all():
            grouped.setdefault(sub.parent_id, []).append((sub, event_name))
        return grouped


def _to_finance_item(
    item: LineItem,
    event_name: str | None,
    parent: LineItem | None = None,
) -> FinanceLineItem:
    return FinanceLineItem(
        id=item.id,
        name=item.name,
        module_type=ModuleType(item.module_type),
        quantity=item.quantity,
        unit_price=item.unit_price,
        planned_cost=item.planned_cost,
        actual_cost=item.actual_cost,
        total_price=item.total_price,
        event_id=item.event_id,
        event_name=event_name,
        category_id=item.category_id,
        category_name=item.category.name if item.category is not None else None,
        status_id=item.status_id,
        status_name=item.status.name if item.status is not None else None,
        status_color=item.status.color if item.status is not None else None,
        is_sub_line_item=parent is not None,
        parent_line_item_id=parent.id if parent is not None else None,
        parent_line_item_name=parent.name if parent is not None else None,
        created_at=item.created_at,
        tag_names=tuple(tag.name for tag in item.tags),
    )
