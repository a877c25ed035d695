"""
Module: costing_kernel.selectors.line_item_selector
Responsibility: Read paths over line items and their one-level hierarchy.
    Returns attached ORM rows; callers in the kernel services and modules
    layer mutate them inside their own transaction.
Architecture position: Kernel > Selectors.

Ordering contract:
    - Sub-items: oldest first (created_at ASC, id ASC).
    - Top-level items of an event: newest first (created_at DESC, id ASC).
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select

from costing_kernel.models.line_item import LineItem
from costing_kernel.selectors.base import BaseSelector


class LineItemSelector(BaseSelector[LineItem]):
    """Line item lookups."""

    def get(self, item_id: UUID) -> LineItem | None:
        return self.session.get(LineItem, item_id)

    def get_for_update(self, item_id: UUID) -> LineItem | None:
        """
        Fetch a line item and lock its row until the transaction ends.

        The lock is scoped to the line_items table so the eager outer joins
        to status/category do not take part in it.  On SQLite the clause is
        dropped and the call behaves like get().
        """
        stmt = (
            select(LineItem)
            .where(LineItem.id == item_id)
            .with_for_update(of=LineItem)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).unique().scalar_one_or_none()

    def list_sub_items(self, parent_id: UUID) -> list[LineItem]:
        stmt = (
            select(LineItem)
            .where(LineItem.parent_id == parent_id)
            .order_by(LineItem.created_at.asc(), LineItem.id.asc())
        )
        return list(self.session.execute(stmt).unique().scalars())

    def count_sub_items(self, parent_id: UUID) -> int:
        stmt = select(func.count()).select_from(LineItem).where(
            LineItem.parent_id == parent_id
        )
        return self.session.execute(stmt).scalar_one()

    def list_sub_items_for_parents(
        self, parent_ids: Iterable[UUID],
    ) -> dict[UUID, list[LineItem]]:
        """Sub-items grouped by parent id, each list oldest first."""
        ids = list(parent_ids)
        grouped: dict[UUID, list[LineItem]] = {pid: [] for pid in ids}
        if not ids:
            return grouped
        stmt = (
            select(LineItem)
            .where(LineItem.parent_id.in_(ids))
            .order_by(LineItem.created_at.asc(), LineItem.id.asc())
        )
        for item in self.session.execute(stmt).unique().scalars():
            grouped[item.parent_id].append(item)
        return grouped

    def list_top_level_for_event(self, event_id: UUID) -> list[LineItem]:
        stmt = (
            select(LineItem)
            .where(LineItem.event_id == event_id)
            .where(LineItem.parent_id.is_(None))
            .order_by(LineItem.created_at.desc(), LineItem.id.asc())
        )
        return list(self.session.execute(stmt).unique().scalars())
