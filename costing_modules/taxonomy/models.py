"""
Taxonomy Domain Models (``costing_modules.taxonomy.models``).

Frozen read models for statuses, categories and tags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from costing_kernel.domain.modules import ItemKind, ModuleType

STATUS_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "color", "sort_order", "is_default"}
)
LABEL_UPDATABLE_FIELDS: frozenset[str] = frozenset({"name", "description", "color"})


@dataclass(frozen=True)
class StatusInfo:
    id: UUID
    module_type: ModuleType
    item_type: ItemKind
    name: str
    color: str
    sort_order: int
    is_default: bool
    event_id: UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "moduleType": self.module_type.value,
            "itemType": self.item_type.value,
            "name": self.name,
            "color": self.color,
            "order": self.sort_order,
            "isDefault": self.is_default,
            "eventId": str(self.event_id) if self.event_id else None,
        }


@dataclass(frozen=True)
class LabelInfo:
    """A category or tag."""

    id: UUID
    module_type: ModuleType
    name: str
    description: str | None = None
    color: str | None = None
    event_id: UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "moduleType": self.module_type.value,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "eventId": str(self.event_id) if self.event_id else None,
        }


CategoryInfo = LabelInfo
TagInfo = LabelInfo
