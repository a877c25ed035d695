"""
Pytest fixtures for the costing test suite.

Provides:
- A fresh in-memory SQLite database per test (foreign keys on)
- A session bound to it
- A deterministic clock and a test actor id
- Service factories and small data builders
- Captured structured logs
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from costing_config import CostingConfig
from costing_kernel.db.engine import build_engine, create_tables
from costing_kernel.domain.clock import DeterministicClock
from costing_kernel.domain.modules import ItemKind, ModuleType
from costing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from costing_kernel.models.event import Event
from costing_modules.finance import FinanceService
from costing_modules.line_items import LineItemDraft, LineItemService
from costing_modules.taxonomy import TaxonomyService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture costing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, line_items):
            line_items.create_line_item(...)
            assert any(r["message"] == "line_item_created" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("costing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """A fresh in-memory SQLite engine with all tables created."""
    eng = build_engine("sqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine) -> Session:
    s = Session(bind=engine)
    yield s
    s.close()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def config() -> CostingConfig:
    return CostingConfig()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def line_items(session, clock, config) -> LineItemService:
    return LineItemService(session, clock=clock, config=config)


@pytest.fixture
def taxonomy(session, clock) -> TaxonomyService:
    return TaxonomyService(session, clock=clock)


@pytest.fixture
def finance(session, config) -> FinanceService:
    return FinanceService(session, config=config)


# =============================================================================
# Data builders
# =============================================================================


@pytest.fixture
def make_event(session, test_actor_id):
    """Insert an event and return its id."""

    def _make(
        name: str = "Summer Festival",
        start: date = date(2024, 7, 1),
        end: date = date(2024, 7, 3),
    ):
        event = Event(
            id=uuid4(),
            name=name,
            start_date=start,
            end_date=end,
            created_by_id=test_actor_id,
        )
        session.add(event)
        session.commit()
        return event.id

    return _make


@pytest.fixture
def event_id(make_event):
    return make_event()


@pytest.fixture
def create_item(line_items, clock, test_actor_id, event_id):
    """
    Create a line item through the service.

    Advances the clock one second per call so creation order is observable.
    """

    def _create(name: str = "Item", module_type=ModuleType.PRODUCTION, **fields):
        fields.setdefault("event_id", event_id)
        for key in ("quantity", "unit_price", "planned_cost", "actual_cost"):
            if fields.get(key) is not None:
                fields[key] = Decimal(str(fields[key]))
        clock.advance(1)
        return line_items.create_line_item(
            LineItemDraft(module_type=module_type, name=name, **fields),
            actor_id=test_actor_id,
        )

    return _create


@pytest.fixture
def make_status(taxonomy, test_actor_id):
    def _make(
        name: str,
        module_type=ModuleType.PRODUCTION,
        item_type=ItemKind.MAIN,
        **kwargs,
    ):
        return taxonomy.create_status(
            module_type, item_type, name, actor_id=test_actor_id, **kwargs,
        )

    return _make
