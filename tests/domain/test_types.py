"""
Tests for the shared domain types and their wire shapes.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from incentive_kernel.domain.clock import DeterministicClock, SystemClock
from incentive_kernel.domain.types import (
    CreditDistributionEntry,
    DataType,
    EvaluationLevel,
    HierarchyRecord,
    ProcessedRecord,
    ProcessingStatus,
    RuleLogEntry,
    RuleType,
    RunResult,
    SourceRecord,
)
from incentive_kernel.exceptions import (
    BaseDatasetNotFoundError,
    ConfigurationError,
    DatasetError,
    IncentiveEngineError,
    InvalidRunDateError,
    RuleDefinitionError,
    UnsupportedDatasetFormatError,
)


class TestDataType:

    def test_parse_known_and_unknown(self):
        assert DataType.parse("Number") is DataType.NUMBER
        assert DataType.parse("Date") is DataType.DATE
        assert DataType.parse("Currency") is DataType.STRING
        assert DataType.parse(None) is DataType.STRING

    def test_coerce_number(self):
        assert DataType.NUMBER.coerce("70000") == Decimal("70000")

    def test_coerce_date(self):
        assert DataType.DATE.coerce("2024-12-01") == date(2024, 12, 1)

    def test_coerce_keeps_blank(self):
        assert DataType.NUMBER.coerce("") == ""
        assert DataType.DATE.coerce(None) is None

    def test_coerce_string_is_raw(self):
        assert DataType.STRING.coerce(" 1810 ") == " 1810 "

    @pytest.mark.parametrize("data_type,value", [
        (DataType.NUMBER, "seventy"),
        (DataType.DATE, "12/01/2024"),
    ])
    def test_coerce_malformed_raises(self, data_type, value):
        with pytest.raises(ValueError):
            data_type.coerce(value)

    def test_operator_sets(self):
        assert "CONTAINS" in DataType.STRING.operators
        assert ">=" not in DataType.STRING.operators
        assert ">=" in DataType.NUMBER.operators
        assert "CONTAINS" not in DataType.DATE.operators


class TestEvaluationLevel:

    @pytest.mark.parametrize("raw,expected", [
        (None, EvaluationLevel.PER_RECORD),
        ("", EvaluationLevel.PER_RECORD),
        ("Per Record", EvaluationLevel.PER_RECORD),
        ("PerRecord", EvaluationLevel.PER_RECORD),
        ("agent", EvaluationLevel.AGENT),
        ("Team", EvaluationLevel.TEAM),
        ("Region", EvaluationLevel.REGION),
    ])
    def test_parse(self, raw, expected):
        assert EvaluationLevel.parse(raw) is expected

    def test_unknown_is_none(self):
        assert EvaluationLevel.parse("Galaxy") is None


class TestSourceRecord:

    def test_record_id_and_read_only_fields(self):
        row = {"Net Value": "10"}
        record = SourceRecord("SCH1.csv", 3, row)
        assert record.record_id == "SCH1.csv-3"
        with pytest.raises(TypeError):
            record.fields["Net Value"] = "20"

    def test_source_row_is_not_mutated(self):
        row = {"Net Value": "10"}
        record = SourceRecord("SCH1.csv", 0, row)
        record.to_dict()
        assert row == {"Net Value": "10"}

    def test_to_dict_adds_identity(self):
        data = SourceRecord("SCH1.csv", 2, {"a": 1}).to_dict()
        assert data == {"a": 1, "_originalIndex": 2, "_recordId": "SCH1.csv-2"}


class TestHierarchyRecord:

    def test_from_row_trims_and_parses(self):
        record = HierarchyRecord.from_row({
            "AgentID": " 101 ",
            "Level": "L1",
            "ManagerID": "MGR_A",
            "ReportsFrom": "2024-01-01",
            "ReportsToEnd": "not a date",
        })
        assert record.agent_id == "101"
        assert record.reports_from == date(2024, 1, 1)
        assert record.reports_to_end is None

    def test_numeric_agent_id_becomes_string(self):
        assert HierarchyRecord.from_row({"AgentID": 101}).agent_id == "101"


class TestWireShapes:

    def test_rule_log_entry_omits_absent_optionals(self):
        entry = RuleLogEntry(
            rule_type=RuleType.QUALIFICATION,
            rule_id="q2",
            agent_id="103",
            message="failed",
            timestamp="2024-01-01T12:00:00.000Z",
        )
        data = entry.to_dict()
        assert data["ruleType"] == "Qualification"
        assert "recordId" not in data
        assert "details" not in data

    def test_run_result_to_dict(self):
        status = ProcessingStatus("10.00", "1.0000", "10.00")
        processed = ProcessedRecord(
            record=SourceRecord("f.csv", 0, {"x": 1}),
            agent_id="101",
            adjusted_amount=Decimal("10"),
            status=status,
        )
        credit = CreditDistributionEntry(
            from_agent="101",
            role="L1",
            amount="0.90",
            split_rule_id="cs1",
            base_payout_from_agent="1.00",
            percentage_applied="90.0000",
            timestamp="t",
        )
        result = RunResult(
            agent_payouts={"101": "1.00"},
            credit_distributions={"MGR_A": [credit]},
            raw_record_level_data=[processed],
        )
        data = result.to_dict()
        assert data["agentPayouts"] == {"101": "1.00"}
        assert data["ruleHitLogs"] == {}
        assert data["creditDistributions"]["MGR_A"][0]["splitRuleId"] == "cs1"
        raw = data["rawRecordLevelData"][0]
        assert raw["_recordId"] == "f.csv-0"
        assert raw["_processingStatus"]["isExcluded"] is False
        assert raw["_processingStatus"]["adjustmentNote"] is None


class TestClock:

    def test_deterministic_clock_is_stable(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        assert clock.isoformat() == "2024-01-01T12:00:00.000Z"

    def test_advance(self):
        clock = DeterministicClock(datetime(2024, 12, 31, tzinfo=timezone.utc))
        clock.advance(90)
        assert clock.isoformat() == "2024-12-31T00:01:30.000Z"

    def test_system_clock_is_utc(self):
        assert SystemClock().isoformat().endswith("Z")


class TestExceptionHierarchy:

    def test_codes_and_bases(self):
        assert issubclass(InvalidRunDateError, ConfigurationError)
        assert issubclass(RuleDefinitionError, ConfigurationError)
        assert issubclass(BaseDatasetNotFoundError, DatasetError)
        assert issubclass(DatasetError, IncentiveEngineError)
        assert InvalidRunDateError("x").code == "INVALID_RUN_DATE"

    def test_structured_attributes(self):
        error = RuleDefinitionError("t1", "rate", "abc", "Invalid number")
        assert error.rule_id == "t1"
        assert "t1" in str(error)

    def test_unsupported_format_message(self):
        error = UnsupportedDatasetFormatError("data/file", "")
        assert "(none)" in str(error)
        assert error.code == "UNSUPPORTED_DATASET_FORMAT"
