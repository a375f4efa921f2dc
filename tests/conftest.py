"""
Pytest fixtures for the budget tracking test suite.

Provides:
- An in-memory SQLite session per test (tables created fresh each time)
- A deterministic clock and actors for each role family
- Service fixtures wired to the shared session and clock
- Captured structured logs for assertions on audit events
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from budget_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from budget_kernel.domain.clock import DeterministicClock
from budget_kernel.domain.identity import Actor, Role
from budget_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from budget_modules.building.service import BuildingBudgetService
from budget_modules.milestone.models import CostBreakdown, ProjectStatus
from budget_modules.milestone.service import MilestoneService
from budget_modules.payment.service import PaymentRequestService
from budget_modules.risk.service import RiskService
from budget_modules.weekly.service import WeeklyUpdateService
from budget_services.aggregation import AggregationService


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
    Capture budget_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, payment_service):
            payment_service.submit_payment_request(...)
            logs = captured_logs()
            assert any(r["message"] == "payment_request_submitted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("budget_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running tests")
    config.addinivalue_line("markers", "concurrency: tests that use real threads")


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory database with every module's tables."""
    init_engine_from_url("sqlite://")
    create_tables()
    sess = get_session()
    try:
        yield sess
    finally:
        sess.close()
        drop_tables()
        reset_engine()


# =============================================================================
# Clock and actor fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Pinned to 2025-03-15 09:00 UTC."""
    return DeterministicClock(datetime(2025, 3, 15, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(actor_id=uuid4(), role=Role.SENIOR_ADMIN)


@pytest.fixture
def manager_actor() -> Actor:
    return Actor(actor_id=uuid4(), role=Role.PROPERTY_MANAGER)


@pytest.fixture
def contractor_actor() -> Actor:
    return Actor(actor_id=uuid4(), role=Role.CONTRACTOR)


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def milestone_service(session, deterministic_clock) -> MilestoneService:
    return MilestoneService(session, clock=deterministic_clock)


@pytest.fixture
def weekly_service(session, deterministic_clock) -> WeeklyUpdateService:
    return WeeklyUpdateService(session, clock=deterministic_clock)


@pytest.fixture
def payment_service(session, deterministic_clock) -> PaymentRequestService:
    return PaymentRequestService(session, clock=deterministic_clock)


@pytest.fixture
def risk_service(session) -> RiskService:
    return RiskService(session)


@pytest.fixture
def building_service(session, deterministic_clock) -> BuildingBudgetService:
    return BuildingBudgetService(session, clock=deterministic_clock)


@pytest.fixture
def aggregation_service(session, deterministic_clock) -> AggregationService:
    return AggregationService(session, clock=deterministic_clock)


# =============================================================================
# Data fixtures
# =============================================================================


@pytest.fixture
def project(milestone_service, admin_actor):
    """An in-progress project running through 2025."""
    return milestone_service.create_project(
        "Riverside Renovation",
        admin_actor,
        status=ProjectStatus.IN_PROGRESS,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
    )


@pytest.fixture
def milestone(milestone_service, project, admin_actor):
    """Milestone with 10,000 allocated against 3,000 labour and 2,000 materials."""
    return milestone_service.create_milestone(
        project.id,
        "Foundation",
        admin_actor,
        budget_allocated=Decimal("10000"),
        costs=CostBreakdown(labour_cost=Decimal("3000"), material_cost=Decimal("2000")),
        start_date=date(2025, 2, 1),
        end_date=date(2025, 4, 30),
    )
