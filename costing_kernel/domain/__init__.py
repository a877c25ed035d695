"""
Pure domain layer.

Data transfer objects and enums with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (beyond the injectable Clock abstraction)
"""

from costing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from costing_kernel.domain.finance import (
    FinanceFilters,
    FinanceLineItem,
    GroupDimension,
)
from costing_kernel.domain.metadata import parse_metadata, serialize_metadata
from costing_kernel.domain.modules import (
    ItemKind,
    ModuleType,
    parse_module_type,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "FinanceFilters",
    "FinanceLineItem",
    "GroupDimension",
    "parse_metadata",
    "serialize_metadata",
    "ItemKind",
    "ModuleType",
    "parse_module_type",
]
