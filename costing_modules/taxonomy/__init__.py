"""
Taxonomy Module (``costing_modules.taxonomy``).

Module-scoped statuses (split into main/sub pools), categories and tags.
"""

from costing_modules.taxonomy.models import (
    CategoryInfo,
    LabelInfo,
    StatusInfo,
    TagInfo,
)
from costing_modules.taxonomy.service import TaxonomyService

__all__ = [
    "CategoryInfo",
    "LabelInfo",
    "StatusInfo",
    "TagInfo",
    "TaxonomyService",
]
