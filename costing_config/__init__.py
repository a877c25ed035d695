"""
costing_config -- single public entrypoint for costing configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  It reads a YAML file (``sets/default.yaml`` unless a
    path is given), applies the ``COSTING_DATABASE_URL`` override, and
    returns a frozen ``CostingConfig``.

Architecture position:
    Configuration -- sits above ``costing_kernel`` and below
    ``costing_modules``.  The kernel MUST NEVER import from this package.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- a value has the wrong type or range.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from costing_config.loader import (
    DATABASE_URL_ENV,
    ConfigurationError,
    load_yaml_file,
    log_level_number,
    parse_config,
)
from costing_config.schema import (
    CostingConfig,
    DatabaseConfig,
    FinanceConfig,
    LoggingConfig,
    RecalculationConfig,
)

_logger = logging.getLogger("costing_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "default.yaml"


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> CostingConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: YAML file to read.  Defaults to costing_config/sets/default.yaml.
        environ: Environment used for overrides.  Defaults to os.environ.

    Returns:
        Frozen CostingConfig.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(config_path)
    config = parse_config(
        data,
        environ=os.environ if environ is None else environ,
        source=str(config_path),
    )

    _logger.info(
        "COSTING_CONFIG_TRACE",
        extra={
            "trace_type": "COSTING_CONFIG_TRACE",
            "source": config.source,
            "database_dialect": config.database.url.split(":", 1)[0],
            "log_level": config.logging.level,
            "preserve_planned_cost": config.recalculation.preserve_planned_cost,
            "include_sub_items": config.finance.include_sub_items,
        },
    )
    return config


__all__ = [
    "DATABASE_URL_ENV",
    "DEFAULT_CONFIG_PATH",
    "ConfigurationError",
    "CostingConfig",
    "DatabaseConfig",
    "FinanceConfig",
    "LoggingConfig",
    "RecalculationConfig",
    "get_active_config",
    "log_level_number",
]
