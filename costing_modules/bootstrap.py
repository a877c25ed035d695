"""
Process bootstrap for the costing stack.

Reads the active configuration, configures structured logging at the
configured level and initializes the database engine.  Request layers call
``bootstrap()`` once at start-up and then build services per request from
``costing_kernel.db.engine.session_scope()`` or ``get_session()``.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine

from costing_config import CostingConfig, get_active_config, log_level_number
from costing_kernel.db.engine import create_tables, init_engine_from_url
from costing_kernel.logging_config import configure_logging


def bootstrap(
    config: CostingConfig | None = None,
    config_path: Path | str | None = None,
    create_schema: bool = False,
) -> Engine:
    """Initialize logging and the module-level engine from configuration."""
    config = config or get_active_config(config_path)
    configure_logging(level=log_level_number(config))
    engine = init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    if create_schema:
        create_tables(engine)
    return engine
