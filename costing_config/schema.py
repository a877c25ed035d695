"""
CostingConfig schema.

Frozen dataclasses the YAML configuration is parsed into.  Each section of
the YAML file maps to one dataclass; defaults here are the values used when
a section or key is omitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class FinanceConfig:
    """Finance rollup settings."""

    # Status names containing one of these count toward total_spent.
    spent_status_keywords: tuple[str, ...] = ("paid", "completed")
    # Status names containing one of these count toward total_committed.
    committed_status_keywords: tuple[str, ...] = ("confirmed", "committed")
    include_sub_items: bool = False


@dataclass(frozen=True)
class RecalculationConfig:
    preserve_planned_cost: bool = True


@dataclass(frozen=True)
class CostingConfig:
    """Root configuration object returned by get_active_config()."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    finance: FinanceConfig = field(default_factory=FinanceConfig)
    recalculation: RecalculationConfig = field(default_factory=RecalculationConfig)
    source: str | None = None
