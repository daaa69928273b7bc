"""
Pytest fixtures for the incentive engine test suite.

Provides:
- Structured logging configuration and capture
- A deterministic clock
- A sample scheme and data snapshot covering every rule type
"""

import json
import logging
from io import StringIO

import pytest

from incentive_kernel.domain.clock import DeterministicClock
from incentive_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

BASE_FILE = "SCH1_Example.csv"
HIERARCHY_FILE = "MH_DEC24_Example.csv"
RUN_AS_OF = "2024-12-31"


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
    Capture incentive_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            run_scheme(...)
            logs = captured_logs()
            assert any(r["message"] == "scheme_run_started" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("incentive_kernel")
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
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Scheme and data fixtures
# =============================================================================


def _kpi(field_id, name, source_field, data_type="String", level="Per Record", **extra):
    entry = {
        "id": field_id,
        "name": name,
        "sourceField": source_field,
        "dataType": data_type,
        "evaluationLevel": level,
        "sourceFile": BASE_FILE,
    }
    entry.update(extra)
    return entry


def make_scheme(**overrides) -> dict:
    """
    Authored scheme in the camelCase shape the authoring UI saves.

    Tiers: 0-25000 @3%, 25000-125000 @7%, 125000+ @10%.
    """
    scheme = {
        "name": "NA_SO_DEC_24V3_Example",
        "description": "North America Dec 24 V3 Example Run",
        "effectiveFrom": "2024-12-01",
        "effectiveTo": "2024-12-31",
        "quotaAmount": 350000,
        "revenueBase": "Sales Orders",
        "baseMapping": {
            "sourceFile": BASE_FILE,
            "agentField": "Sales Employee",
            "amountField": "Net Value",
            "transactionDateField": "Document Date",
        },
        "qualificationRules": [
            {"id": "q1", "field": "SalesOrg", "operator": "=", "value": "1810"},
            {"id": "q2", "field": "MinSales", "operator": ">=", "value": "70000"},
        ],
        "adjustmentRules": [
            {
                "id": "a1",
                "condition": {"field": "DeliveryStat", "operator": "CONTAINS", "value": "Fully"},
                "adjustment": {"target": "Rate", "type": "percentage", "value": 200},
            },
        ],
        "exclusionRules": [
            {"id": "e1", "field": "Payer", "operator": "=", "value": "17100002"},
        ],
        "creditRules": [],
        "creditSplits": [
            {"id": "cs1", "role": "L1", "percentage": 90},
            {"id": "cs2", "role": "L2", "percentage": 10},
        ],
        "creditHierarchyFile": HIERARCHY_FILE,
        "payoutTiers": [
            {"id": "t1", "from": 0, "to": 25000, "rate": 3, "isPercentage": True},
            {"id": "t2", "from": 25000, "to": 125000, "rate": 7, "isPercentage": True},
            {"id": "t3", "from": 125000, "to": None, "rate": 10, "isPercentage": True},
        ],
        "customRules": [],
        "kpiConfig": {
            "baseData": [
                _kpi("k_agent", "Agent", "Sales Employee"),
                _kpi("k_amount", "Amount", "Net Value", "Number"),
                _kpi("k_date", "TransactionDate", "Document Date", "Date"),
            ],
            "qualificationFields": [
                _kpi("k_salesorg", "SalesOrg", "Sales Organization"),
                _kpi("k_minsales", "MinSales", "Net Value", "Number", "Agent", aggregation="Sum"),
            ],
            "adjustmentFields": [
                _kpi("k_delivstat", "DeliveryStat", "Delivery Status"),
            ],
            "exclusionFields": [
                _kpi("k_payer", "Payer", "Payer"),
            ],
            "creditFields": [],
        },
    }
    scheme.update(overrides)
    return scheme


def _row(agent, amount, doc_date, org="1810", payer="CUST001", status="Partially"):
    return {
        "Sales Employee": agent,
        "Net Value": amount,
        "Document Date": doc_date,
        "Sales Organization": org,
        "Payer": payer,
        "Delivery Status": status,
    }


def make_datasets() -> dict:
    """
    Base rows and hierarchy for the sample scheme.

    - 101: 50000 fully delivered (rate x2) + 30000 -> credited 130000, pays 8250.00
    - 102: excluded by payer -> 0.00
    - 103: 40000, below the 70000 minimum -> 0.00
    - 104: wrong sales org -> never selected
    - two 101 rows outside the date window
    """
    return {
        BASE_FILE: [
            _row("101", 50000, "2024-12-05", status="Fully Delivered"),
            _row("101", 30000, "2024-12-15", payer="CUST003"),
            _row("102", 90000, "2024-12-10", payer="17100002", status="Fully Delivered"),
            _row("103", 40000, "2024-12-20", payer="CUST004"),
            _row("104", 80000, "2024-12-22", org="1910", payer="CUST005", status="Fully Delivered"),
            _row("101", 10000, "2024-11-30", payer="CUST006"),
            _row("101", 10000, "2025-01-01", payer="CUST007"),
        ],
        HIERARCHY_FILE: [
            {"AgentID": "101", "Level": "L1", "ManagerID": "MGR_A",
             "ReportsFrom": "2024-01-01", "ReportsToEnd": "2024-12-31"},
            {"AgentID": "101", "Level": "L2", "ManagerID": "MGR_B",
             "ReportsFrom": "2024-01-01", "ReportsToEnd": "2024-12-31"},
            {"AgentID": "103", "Level": "L1", "ManagerID": "MGR_C",
             "ReportsFrom": "2024-01-01", "ReportsToEnd": "2024-12-31"},
            {"AgentID": "101", "Level": "L1", "ManagerID": "MGR_OLD",
             "ReportsFrom": "2023-01-01", "ReportsToEnd": "2023-12-31"},
        ],
    }


@pytest.fixture
def sample_scheme() -> dict:
    return make_scheme()


@pytest.fixture
def sample_datasets() -> dict:
    return make_datasets()
