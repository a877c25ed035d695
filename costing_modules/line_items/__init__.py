"""
Line Items Module (``costing_modules.line_items``).

Create, update, delete and read line items; every write keeps parent
totals consistent with their sub-items.
"""

from costing_modules.line_items.models import (
    UPDATABLE_FIELDS,
    LineItemDraft,
    LineItemView,
    ParentSummary,
    TaxonomyRef,
)
from costing_modules.line_items.service import LineItemService

__all__ = [
    "UPDATABLE_FIELDS",
    "LineItemDraft",
    "LineItemService",
    "LineItemView",
    "ParentSummary",
    "TaxonomyRef",
]
