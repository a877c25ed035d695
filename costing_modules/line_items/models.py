"""
Line Item Domain Models (``costing_modules.line_items.models``).

Responsibility
--------------
Frozen dataclasses crossing the line item service boundary: the draft a
caller submits to create an item, and the view returned for every read and
write.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``LineItemView.metadata`` is always a dict; stored documents that fail to
  parse surface as ``{}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from costing_engines.rollup import format_money
from costing_kernel.domain.modules import ModuleType

# Keys accepted by LineItemService.update_line_item.
UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "name",
    "description",
    "quantity",
    "unit_price",
    "planned_cost",
    "actual_cost",
    "status_id",
    "category_id",
    "parent_id",
    "tag_ids",
    "metadata",
})


@dataclass(frozen=True)
class LineItemDraft:
    """Input for creating a line item."""

    module_type: ModuleType | str
    name: str
    event_id: UUID | None = None
    parent_id: UUID | None = None
    description: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    planned_cost: Decimal | None = None
    actual_cost: Decimal | None = None
    status_id: UUID | None = None
    category_id: UUID | None = None
    tag_ids: tuple[UUID, ...] = ()
    metadata: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class TaxonomyRef:
    """Status, category or tag as shown on a line item."""

    id: UUID
    name: str
    color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": str(self.id), "name": self.name, "color": self.color}


@dataclass(frozen=True)
class ParentSummary:
    id: UUID
    name: str


@dataclass(frozen=True)
class LineItemView:
    """A line item as returned to callers."""

    id: UUID
    module_type: ModuleType
    name: str
    event_id: UUID | None = None
    parent_id: UUID | None = None
    description: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    planned_cost: Decimal | None = None
    actual_cost: Decimal | None = None
    planned_cost_manual: bool = False
    status: TaxonomyRef | None = None
    category: TaxonomyRef | None = None
    tags: tuple[TaxonomyRef, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    parent: ParentSummary | None = None
    sub_items: tuple[LineItemView, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_sub_item(self) -> bool:
        return self.parent_id is not None

    @property
    def status_id(self) -> UUID | None:
        return self.status.id if self.status is not None else None

    @property
    def category_id(self) -> UUID | None:
        return self.category.id if self.category is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "moduleType": self.module_type.value,
            "eventId": str(self.event_id) if self.event_id else None,
            "parentLineItemId": str(self.parent_id) if self.parent_id else None,
            "name": self.name,
            "description": self.description,
            "quantity": format_money(self.quantity),
            "unitPrice": format_money(self.unit_price),
            "totalPrice": format_money(self.total_price),
            "plannedCost": format_money(self.planned_cost),
            "actualCost": format_money(self.actual_cost),
            "status": self.status.to_dict() if self.status else None,
            "category": self.category.to_dict() if self.category else None,
            "tags": [t.to_dict() for t in self.tags],
            "metadata": dict(self.metadata),
            "parentLineItem": (
                {"id": str(self.parent.id), "name": self.parent.name}
                if self.parent else None
            ),
            "subLineItems": [s.to_dict() for s in self.sub_items],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
