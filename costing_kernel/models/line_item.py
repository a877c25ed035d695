"""
LineItem model -- the atomic cost-bearing record.

Hierarchy is capped at one level: a sub-item's ``parent_id`` references a
top-level item, and a top-level item's ``parent_id`` is NULL.  The cap is
enforced by LineItemService on every write; the table only guarantees that
the referenced parent exists.

Cost fields
-----------
``quantity`` and ``unit_price`` drive ``total_price`` (see
costing_engines.pricing).  ``planned_cost`` is the budget estimate and
``actual_cost`` the realized spend.  On a parent, ``actual_cost`` and
``total_price`` mirror the sums of its sub-items; ``planned_cost`` does too
unless it was entered by hand (``planned_cost_manual``), in which case it
acts as a budget ceiling that recalculation leaves alone.

Metadata is stored as JSON text in the ``metadata`` column (the attribute is
``metadata_json`` because ``metadata`` is reserved on declarative classes).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from costing_kernel.db.base import TrackedBase
from costing_kernel.models.taxonomy import Category, Status, Tag, line_item_tags


def _planned_cost_is_manual(context) -> bool:
    planned = context.get_current_parameters().get("planned_cost")
    return planned is not None and planned > 0


class LineItem(TrackedBase):
    """A budgeted cost within one module, optionally nested under a parent."""

    __tablename__ = "line_items"

    __table_args__ = (
        Index("idx_line_item_event_module", "event_id", "module_type"),
        Index("idx_line_item_parent", "parent_id"),
        Index("idx_line_item_status", "status_id"),
        Index("idx_line_item_category", "category_id"),
    )

    module_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=True,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("line_items.id"), nullable=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    planned_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    actual_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    planned_cost_manual: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=_planned_cost_is_manual,
    )

    status_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True,
    )
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True,
    )

    metadata_json: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)

    # Relationships
    parent: Mapped["LineItem | None"] = relationship(
        "LineItem",
        remote_side="LineItem.id",
    )
    status: Mapped[Status | None] = relationship(Status, lazy="joined")
    category: Mapped[Category | None] = relationship(Category, lazy="joined")
    tags: Mapped[list[Tag]] = relationship(
        Tag,
        secondary=line_item_tags,
        back_populates="line_items",
        lazy="selectin",
        order_by=Tag.name,
    )

    @property
    def is_sub_item(self) -> bool:
        return self.parent_id is not None

    def __repr__(self) -> str:
        return f"<LineItem {self.module_type} {self.name}>"
