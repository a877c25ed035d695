"""
Finance DTOs -- immutable records exchanged between the finance selector,
the rollup engine and the finance module.

Responsibility:
    Defines the filter criteria of a finance query, the grouping dimensions
    a caller may request, and the flat FinanceLineItem record the rollup
    engine consumes.  FinanceLineItem carries the raw (nullable) cost fields;
    resolution of planned/actual/total happens in the rollup engine.

Architecture position:
    Kernel > Domain -- pure data, zero I/O, no ORM imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from costing_kernel.domain.modules import ModuleType, parse_module_type


class GroupDimension(str, Enum):
    """Dimension a finance rollup can be grouped by."""

    EVENT = "event"
    MODULE = "module"
    CATEGORY = "category"
    STATUS = "status"
    LINE_ITEM = "lineItem"


@dataclass(frozen=True)
class FinanceFilters:
    """
    Criteria selecting the line items of a finance rollup.

    Empty tuples mean "no restriction".  The date range is matched against
    the owning event's span, not the line item's own timestamps.
    ``include_sub_items`` of ``None`` defers to the configured default.
    """

    event_ids: tuple[UUID, ...] = ()
    start_date: date | None = None
    end_date: date | None = None
    module_types: tuple[ModuleType, ...] = ()
    include_sub_items: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_ids", tuple(self.event_ids))
        object.__setattr__(
            self,
            "module_types",
            tuple(parse_module_type(m) for m in self.module_types),
        )

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @property
    def scopes_events(self) -> bool:
        """True when the filter restricts which events qualify."""
        return bool(self.event_ids) or self.has_date_range


@dataclass(frozen=True)
class FinanceLineItem:
    """One line item as seen by the finance rollup (top-level or sub-item)."""

    id: UUID
    name: str
    module_type: ModuleType
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    planned_cost: Decimal | None = None
    actual_cost: Decimal | None = None
    total_price: Decimal | None = None
    event_id: UUID | None = None
    event_name: str | None = None
    category_id: UUID | None = None
    category_name: str | None = None
    status_id: UUID | None = None
    status_name: str | None = None
    status_color: str | None = None
    is_sub_line_item: bool = False
    parent_line_item_id: UUID | None = None
    parent_line_item_name: str | None = None
    created_at: datetime | None = None
    tag_names: tuple[str, ...] = field(default_factory=tuple)
