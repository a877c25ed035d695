"""
Finance Module (``costing_modules.finance``).

Cross-event and per-event cost rollups: estimated vs actual spend, variance,
spent/committed/remaining, single-dimension breakdowns and caller-defined
grouping trees.
"""

from costing_modules.finance.models import FinanceLineItemDetail, FinanceSummary
from costing_modules.finance.service import FinanceService

__all__ = [
    "FinanceLineItemDetail",
    "FinanceService",
    "FinanceSummary",
]
