"""
Domain types shared by the config layer, the engines, and the orchestrator.

All types here are frozen dataclasses or string enums. Output entities
(``RuleLogEntry``, ``CreditDistributionEntry``, ``ProcessingStatus``) carry
monetary figures already formatted as fixed-precision strings, which is the
wire contract; ``ProcessedRecord.adjusted_amount`` keeps the exact Decimal
for aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from incentive_kernel.domain.values import is_blank, parse_decimal, parse_iso_date, to_text

AGGREGATION_SUM = "Sum"
AGGREGATION_NOT_APPLICABLE = "NotApplicable"

ORDERED_OPERATORS: frozenset[str] = frozenset({"=", "!=", ">", ">=", "<", "<="})
STRING_OPERATORS: frozenset[str] = frozenset(
    {"=", "!=", "CONTAINS", "STARTSWITH", "ENDSWITH", "NOT CONTAINS"}
)


class DataType(str, Enum):
    """Declared type of a mapped field; drives typed comparison."""

    STRING = "String"
    NUMBER = "Number"
    DATE = "Date"

    @classmethod
    def parse(cls, value: Any) -> DataType:
        """Unknown or missing types compare as strings."""
        for member in cls:
            if member.value == value:
                return member
        return cls.STRING

    @property
    def operators(self) -> frozenset[str]:
        if self is DataType.STRING:
            return STRING_OPERATORS
        return ORDERED_OPERATORS

    def coerce(self, value: Any) -> Any:
        """
        Parse a rule value into this type.

        Blank values (None, "") are returned unchanged so the null-handling
        policy still sees them. Strings are kept raw.

        Raises:
            ValueError: if a Number or Date value cannot be parsed.
        """
        if is_blank(value):
            return value
        if self is DataType.NUMBER:
            return parse_decimal(value)
        if self is DataType.DATE:
            parsed = parse_iso_date(value if isinstance(value, date) else str(value))
            if parsed is None:
                raise ValueError(f"Invalid date: {value!r}, expected YYYY-MM-DD")
            return parsed
        return value


class EvaluationLevel(str, Enum):
    """Where a rule on the field is evaluated."""

    PER_RECORD = "Per Record"
    AGENT = "Agent"
    TEAM = "Team"
    REGION = "Region"

    @classmethod
    def parse(cls, value: Any) -> EvaluationLevel | None:
        """Missing means Per Record; unrecognised values return None."""
        if value is None or value == "":
            return cls.PER_RECORD
        normalized = str(value).replace(" ", "").lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == normalized:
                return member
        return None


class RuleType(str, Enum):
    """Category of a rule hit log entry."""

    EXCLUSION = "Exclusion"
    ADJUSTMENT = "Adjustment"
    QUALIFICATION = "Qualification"
    CREDIT_SPLIT = "CreditSplit"


@dataclass(frozen=True)
class FieldMapping:
    """A logical field name bound to a physical column of a dataset."""

    logical_name: str
    source_field: str
    data_type: DataType = DataType.STRING
    evaluation_level: EvaluationLevel | None = EvaluationLevel.PER_RECORD
    aggregation: str = AGGREGATION_NOT_APPLICABLE
    source_file: str | None = None


@dataclass(frozen=True)
class SourceRecord:
    """
    One row of an uploaded dataset with a stable identity.

    ``fields`` is a read-only view; the row is never mutated.
    """

    source_file: str
    index: int
    fields: Mapping[str, Any]

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def record_id(self) -> str:
        return f"{self.source_file}-{self.index}"

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.fields.get(field_name, default)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.fields)
        data["_originalIndex"] = self.index
        data["_recordId"] = self.record_id
        return data


@dataclass(frozen=True)
class ProcessingStatus:
    """Formatted outcome of exclusion/adjustment processing for one record."""

    original_amount: str
    rate_multiplier: str
    adjusted_amount: str
    is_excluded: bool = False
    exclusion_reason: str | None = None
    adjustment_note: str | None = None
    custom_rule_note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalAmount": self.original_amount,
            "rateMultiplier": self.rate_multiplier,
            "adjustedAmount": self.adjusted_amount,
            "isExcluded": self.is_excluded,
            "exclusionReason": self.exclusion_reason,
            "adjustmentNote": self.adjustment_note,
            "customRuleNote": self.custom_rule_note,
        }


@dataclass(frozen=True)
class ProcessedRecord:
    """A source record plus the result of record-level rule processing."""

    record: SourceRecord
    agent_id: str
    adjusted_amount: Decimal
    status: ProcessingStatus

    @property
    def record_id(self) -> str:
        return self.record.record_id

    @property
    def is_excluded(self) -> bool:
        return self.status.is_excluded

    def to_dict(self) -> dict[str, Any]:
        data = self.record.to_dict()
        data["_processingStatus"] = self.status.to_dict()
        return data


@dataclass(frozen=True)
class HierarchyRecord:
    """A time-bounded reporting relationship: agent reports to manager at level."""

    agent_id: str
    level: str
    manager_id: str
    reports_from: date | None
    reports_to_end: date | None

    AGENT_COLUMN = "AgentID"
    LEVEL_COLUMN = "Level"
    MANAGER_COLUMN = "ManagerID"
    FROM_COLUMN = "ReportsFrom"
    TO_COLUMN = "ReportsToEnd"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> HierarchyRecord:
        """Build from an uploaded hierarchy row; unparseable dates become None."""
        return cls(
            agent_id=to_text(row.get(cls.AGENT_COLUMN)),
            level=to_text(row.get(cls.LEVEL_COLUMN)),
            manager_id=to_text(row.get(cls.MANAGER_COLUMN)),
            reports_from=parse_iso_date(row.get(cls.FROM_COLUMN)),
            reports_to_end=parse_iso_date(row.get(cls.TO_COLUMN)),
        )


@dataclass(frozen=True)
class RuleLogEntry:
    """One entry of the append-only rule hit log."""

    rule_type: RuleType
    rule_id: str
    agent_id: str
    message: str
    timestamp: str
    record_id: str | None = None
    details: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "ruleType": self.rule_type.value,
            "ruleId": self.rule_id,
        }
        if self.record_id is not None:
            data["recordId"] = self.record_id
        data["agentId"] = self.agent_id
        data["message"] = self.message
        if self.details is not None:
            data["details"] = dict(self.details)
        data["timestamp"] = self.timestamp
        return data


@dataclass(frozen=True)
class CreditDistributionEntry:
    """Credit flowing from an agent's base payout to one manager."""

    from_agent: str
    role: str
    amount: str
    split_rule_id: str
    base_payout_from_agent: str
    percentage_applied: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "fromAgent": self.from_agent,
            "role": self.role,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "splitRuleId": self.split_rule_id,
            "basePayoutFromAgent": self.base_payout_from_agent,
            "percentageApplied": self.percentage_applied,
        }


@dataclass(frozen=True)
class RunResult:
    """Everything one scheme run produced."""

    agent_payouts: dict[str, str] = field(default_factory=dict)
    rule_hit_logs: dict[str, list[RuleLogEntry]] = field(default_factory=dict)
    credit_distributions: dict[str, list[CreditDistributionEntry]] = field(
        default_factory=dict
    )
    raw_record_level_data: list[ProcessedRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready wire shape."""
        return {
            "agentPayouts": dict(self.agent_payouts),
            "ruleHitLogs": {
                agent: [entry.to_dict() for entry in entries]
                for agent, entries in self.rule_hit_logs.items()
            },
            "creditDistributions": {
                manager: [entry.to_dict() for entry in entries]
                for manager, entries in self.credit_distributions.items()
            },
            "rawRecordLevelData": [r.to_dict() for r in self.raw_record_level_data],
        }
