"""
Module: costing_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import costing_kernel.domain and costing_kernel.logging_config only.
    MUST NOT import costing_modules.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only arithmetic.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from costing_engines import FinanceRollupEngine, derive_total_price
"""

from costing_engines.pricing import (
    PRICE_FIELDS,
    PriceInputs,
    derive_total_price,
    touches_price,
)
from costing_engines.rollup import (
    NO_EVENT,
    NO_STATUS,
    UNCATEGORIZED,
    CommitmentRules,
    FinanceRollupEngine,
    GroupNode,
    ResolvedCosts,
    RollupResult,
    RollupTotals,
    finance_item_to_dict,
    format_money,
    group_identity,
    resolve_costs,
)
from costing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "PRICE_FIELDS",
    "PriceInputs",
    "derive_total_price",
    "touches_price",
    "NO_EVENT",
    "NO_STATUS",
    "UNCATEGORIZED",
    "CommitmentRules",
    "FinanceRollupEngine",
    "GroupNode",
    "ResolvedCosts",
    "RollupResult",
    "RollupTotals",
    "finance_item_to_dict",
    "format_money",
    "group_identity",
    "resolve_costs",
    "compute_input_fingerprint",
    "traced_engine",
]
