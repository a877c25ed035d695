"""
Configuration Loader (``costing_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses each section into the typed
``costing_config.schema`` dataclasses.  Callers use
``costing_config.get_active_config()``; this module is its machinery.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Invalid values raise ``ConfigurationError`` naming the offending key;
  nothing is silently coerced.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or out-of-range values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from costing_config.schema import (
    CostingConfig,
    DatabaseConfig,
    FinanceConfig,
    LoggingConfig,
    RecalculationConfig,
)
from costing_kernel.exceptions import CostingKernelError

DATABASE_URL_ENV = "COSTING_DATABASE_URL"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigurationError(CostingKernelError):
    """Configuration file content is invalid."""

    code: str = "CONFIGURATION_INVALID"

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Invalid configuration value for '{key}': {message}")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("<root>", "document must be a mapping")
    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(name, "section must be a mapping")
    return value


def _bool(section: Mapping[str, Any], key: str, path: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{path}.{key}", f"expected a boolean, got {value!r}")
    return value


def _non_negative_int(section: Mapping[str, Any], key: str, path: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(
            f"{path}.{key}", f"expected a non-negative integer, got {value!r}"
        )
    return value


def _keywords(section: Mapping[str, Any], key: str, path: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ConfigurationError(
            f"{path}.{key}", f"expected a list of non-empty strings, got {value!r}"
        )
    return tuple(v.lower() for v in value)


def parse_database(data: Mapping[str, Any], environ: Mapping[str, str]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    url = environ.get(DATABASE_URL_ENV) or data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ConfigurationError("database.url", f"expected a URL string, got {url!r}")
    return DatabaseConfig(
        url=url,
        echo=_bool(data, "echo", "database", defaults.echo),
        pool_size=_non_negative_int(data, "pool_size", "database", defaults.pool_size),
        max_overflow=_non_negative_int(data, "max_overflow", "database", defaults.max_overflow),
    )


def parse_logging(data: Mapping[str, Any]) -> LoggingConfig:
    level = str(data.get("level", LoggingConfig().level)).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown log level {level!r}")
    return LoggingConfig(level=level)


def parse_finance(data: Mapping[str, Any]) -> FinanceConfig:
    defaults = FinanceConfig()
    return FinanceConfig(
        spent_status_keywords=_keywords(
            data, "spent_status_keywords", "finance", defaults.spent_status_keywords
        ),
        committed_status_keywords=_keywords(
            data, "committed_status_keywords", "finance", defaults.committed_status_keywords
        ),
        include_sub_items=_bool(
            data, "include_sub_items", "finance", defaults.include_sub_items
        ),
    )


def parse_recalculation(data: Mapping[str, Any]) -> RecalculationConfig:
    return RecalculationConfig(
        preserve_planned_cost=_bool(
            data,
            "preserve_planned_cost",
            "recalculation",
            RecalculationConfig().preserve_planned_cost,
        ),
    )


def parse_config(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
    source: str | None = None,
) -> CostingConfig:
    """Parse a full configuration document."""
    environ = environ if environ is not None else {}
    return CostingConfig(
        database=parse_database(_section(data, "database"), environ),
        logging=parse_logging(_section(data, "logging")),
        finance=parse_finance(_section(data, "finance")),
        recalculation=parse_recalculation(_section(data, "recalculation")),
        source=source,
    )


def log_level_number(config: CostingConfig) -> int:
    return logging.getLevelName(config.logging.level)
