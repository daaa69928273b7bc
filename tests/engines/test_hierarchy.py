"""
Tests for HierarchyResolver: time-valid manager lookup.
"""

from datetime import date

import pytest

from incentive_engines.hierarchy import find_manager, is_active, load_hierarchy
from incentive_kernel.domain.types import HierarchyRecord

SCHEME_START = date(2024, 12, 1)
RUN_AS_OF = date(2024, 12, 31)


def _row(agent, level, manager, start, end):
    return {
        "AgentID": agent,
        "Level": level,
        "ManagerID": manager,
        "ReportsFrom": start,
        "ReportsToEnd": end,
    }


class TestIsActive:

    @pytest.mark.parametrize("start,end,expected", [
        ("2024-01-01", "2024-12-31", True),
        ("2024-12-31", "2025-06-30", True),
        ("2024-06-01", "2024-12-01", True),
        ("2023-01-01", "2024-11-30", False),
        ("2025-01-01", "2025-12-31", False),
        ("2024-01-01", None, False),
        ("garbage", "2024-12-31", False),
    ])
    def test_overlap_with_run_window(self, start, end, expected):
        record = HierarchyRecord.from_row(_row("101", "L1", "M", start, end))
        assert is_active(record, SCHEME_START, RUN_AS_OF) is expected


class TestFindManager:

    def setup_method(self):
        self.hierarchy = load_hierarchy([
            _row("101", "L1", "MGR_OLD", "2023-01-01", "2023-12-31"),
            _row("101", "L1", "MGR_A", "2024-01-01", "2024-12-31"),
            _row("101", "l2", "MGR_B", "2024-01-01", "2024-12-31"),
            _row("101", "L1", "MGR_LATER", "2024-06-01", "2025-06-30"),
            _row("102", "L1", "", "2024-01-01", "2024-12-31"),
        ])

    def test_active_row_wins_over_expired(self):
        assert find_manager("101", "L1", self.hierarchy, SCHEME_START, RUN_AS_OF) == "MGR_A"

    def test_first_active_row_in_input_order(self):
        assert find_manager("101", "L1", self.hierarchy[2:], SCHEME_START, RUN_AS_OF) == (
            "MGR_LATER"
        )

    def test_level_is_case_insensitive(self):
        assert find_manager("101", "L2", self.hierarchy, SCHEME_START, RUN_AS_OF) == "MGR_B"

    def test_agent_id_trimmed(self):
        assert find_manager(" 101 ", "L1", self.hierarchy, SCHEME_START, RUN_AS_OF) == "MGR_A"

    def test_numeric_agent_ids_in_hierarchy_rows(self):
        hierarchy = load_hierarchy([
            _row(101.0, "L1", 9001.0, "2024-01-01", "2024-12-31"),
        ])
        assert hierarchy[0].agent_id == "101"
        assert find_manager("101", "L1", hierarchy, SCHEME_START, RUN_AS_OF) == "9001"

    def test_empty_manager_never_matches(self):
        assert find_manager("102", "L1", self.hierarchy, SCHEME_START, RUN_AS_OF) is None

    def test_unknown_agent_or_role(self):
        assert find_manager("999", "L1", self.hierarchy, SCHEME_START, RUN_AS_OF) is None
        assert find_manager("101", "L3", self.hierarchy, SCHEME_START, RUN_AS_OF) is None

    def test_empty_inputs(self):
        assert find_manager("", "L1", self.hierarchy, SCHEME_START, RUN_AS_OF) is None
        assert find_manager("101", "L1", (), SCHEME_START, RUN_AS_OF) is None


class TestLoadHierarchy:

    def test_non_mapping_rows_dropped(self, captured_logs):
        records = load_hierarchy([_row("101", "L1", "M", "2024-01-01", "2024-12-31"), 42])

        assert len(records) == 1
        assert any(r["message"] == "hierarchy_row_not_a_mapping" for r in captured_logs())
