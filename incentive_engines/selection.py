"""
RecordSelector -- which base records take part in a run.

Two filters, in order:

1. Date window: the record's transaction date must parse as ``YYYY-MM-DD``
   and lie in ``[scheme.effective_from, run_as_of]``, both ends inclusive.
   Records with a missing or malformed date are dropped without a log entry.
2. Per-record qualification: every compiled record-level qualification
   rule must hold (logical AND, stops at the first failure). Failing
   records are dropped without a log entry.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from incentive_config.compiler import CompiledScheme
from incentive_engines.conditions import evaluate_condition
from incentive_kernel.domain.types import SourceRecord
from incentive_kernel.domain.values import parse_iso_date
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.selection")


def to_source_records(source_file: str, rows: Iterable[Any]) -> tuple[SourceRecord, ...]:
    """Wrap raw dataset rows with their stable ``<file>-<index>`` identity."""
    records = []
    for index, row in enumerate(rows):
        fields = row if isinstance(row, Mapping) else {}
        if not isinstance(row, Mapping):
            logger.warning("dataset_row_not_a_mapping", extra={
                "source_file": source_file,
                "row_index": index,
            })
        records.append(SourceRecord(source_file=source_file, index=index, fields=fields))
    return tuple(records)


def in_date_window(record: SourceRecord, date_field: str, start: date, end: date) -> bool:
    transaction_date = parse_iso_date(record.get(date_field))
    if transaction_date is None:
        return False
    return start <= transaction_date <= end


def passes_record_qualification(record: SourceRecord, compiled: CompiledScheme) -> bool:
    for condition in compiled.record_qualifications:
        if not evaluate_condition(
            record.get(condition.source_field),
            condition.operator,
            condition.value,
            condition.data_type,
        ):
            return False
    return True


def select_records(
    records: Sequence[SourceRecord],
    compiled: CompiledScheme,
    run_as_of: date,
) -> tuple[SourceRecord, ...]:
    """Apply the date window, then per-record qualification."""
    start = compiled.scheme.effective_from
    date_field = compiled.transaction_date_field

    in_window = [
        r for r in records if in_date_window(r, date_field, start, run_as_of)
    ]
    selected = tuple(r for r in in_window if passes_record_qualification(r, compiled))

    logger.info("records_selected", extra={
        "source_file": compiled.base_file,
        "total_records": len(records),
        "in_date_window": len(in_window),
        "qualified_records": len(selected),
        "window_start": start.isoformat(),
        "window_end": run_as_of.isoformat(),
    })
    return selected
