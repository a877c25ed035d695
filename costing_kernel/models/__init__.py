"""ORM models for the costing kernel."""

from costing_kernel.models.event import Event
from costing_kernel.models.line_item import LineItem
from costing_kernel.models.taxonomy import (
    DEFAULT_COLOR,
    Category,
    Status,
    Tag,
    line_item_tags,
)

__all__ = [
    "Event",
    "LineItem",
    "Status",
    "Category",
    "Tag",
    "line_item_tags",
    "DEFAULT_COLOR",
]
