"""Pure domain layer: clock, value primitives, and shared types."""

from incentive_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from incentive_kernel.domain.types import (
    AGGREGATION_NOT_APPLICABLE,
    AGGREGATION_SUM,
    ORDERED_OPERATORS,
    STRING_OPERATORS,
    CreditDistributionEntry,
    DataType,
    EvaluationLevel,
    FieldMapping,
    HierarchyRecord,
    ProcessedRecord,
    ProcessingStatus,
    RuleLogEntry,
    RuleType,
    RunResult,
    SourceRecord,
)
from incentive_kernel.domain.values import (
    DEFAULT_POLICY,
    DecimalPolicy,
    format_decimal,
    is_blank,
    parse_decimal,
    parse_iso_date,
    to_text,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "AGGREGATION_NOT_APPLICABLE",
    "AGGREGATION_SUM",
    "ORDERED_OPERATORS",
    "STRING_OPERATORS",
    "CreditDistributionEntry",
    "DataType",
    "EvaluationLevel",
    "FieldMapping",
    "HierarchyRecord",
    "ProcessedRecord",
    "ProcessingStatus",
    "RuleLogEntry",
    "RuleType",
    "RunResult",
    "SourceRecord",
    "DEFAULT_POLICY",
    "DecimalPolicy",
    "format_decimal",
    "is_blank",
    "parse_decimal",
    "parse_iso_date",
    "to_text",
]
