"""Read-only query selectors."""

from costing_kernel.selectors.base import BaseSelector
from costing_kernel.selectors.finance_selector import FinanceSelector
from costing_kernel.selectors.line_item_selector import LineItemSelector

__all__ = [
    "BaseSelector",
    "FinanceSelector",
    "LineItemSelector",
]
