"""Kernel services (flush-only; callers own the transaction)."""

from costing_kernel.services.base import BaseService
from costing_kernel.services.recalculation_service import (
    RecalculationResult,
    SubItemTotals,
    TotalRecalculationService,
)
from costing_kernel.services.status_resolver import (
    DefaultStatusResolver,
    StatusScope,
)

__all__ = [
    "BaseService",
    "DefaultStatusResolver",
    "RecalculationResult",
    "StatusScope",
    "SubItemTotals",
    "TotalRecalculationService",
]
