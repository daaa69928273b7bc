"""
FieldResolver -- logical field names to physical dataset columns.

Rules refer to fields by logical name (``Region``, ``Product``); records are
keyed by the column names of the uploaded files. The field map built here
is the single translation table, resolved once per run.

Merge order is baseData, qualificationFields, adjustmentFields,
exclusionFields, creditFields; a later definition of the same logical name
replaces an earlier one. ``Agent``, ``Amount`` and ``TransactionDate`` are
always present, defaulted from ``baseMapping`` when not defined explicitly.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from incentive_config.schema import SchemeDefinition
from incentive_kernel.domain.types import DataType, EvaluationLevel, FieldMapping
from incentive_kernel.logging_config import get_logger

logger = get_logger("config.fields")

AGENT_FIELD = "Agent"
AMOUNT_FIELD = "Amount"
TRANSACTION_DATE_FIELD = "TransactionDate"


def resolve_field_map(scheme: SchemeDefinition) -> Mapping[str, FieldMapping]:
    """Build the read-only logical-name -> FieldMapping table for a scheme."""
    field_map: dict[str, FieldMapping] = {}

    for section, entries in scheme.kpi_config.sections():
        for entry in entries:
            if not entry.name or not entry.source_field:
                logger.warning("kpi_field_incomplete", extra={
                    "section": section,
                    "field_name": entry.name,
                    "source_field": entry.source_field,
                })
                continue
            evaluation_level = EvaluationLevel.parse(entry.evaluation_level)
            if evaluation_level is None:
                logger.warning("kpi_field_unknown_evaluation_level", extra={
                    "section": section,
                    "field_name": entry.name,
                    "evaluation_level": entry.evaluation_level,
                })
            field_map[entry.name] = FieldMapping(
                logical_name=entry.name,
                source_field=entry.source_field,
                data_type=DataType.parse(entry.data_type),
                evaluation_level=evaluation_level,
                aggregation=entry.aggregation,
                source_file=entry.source_file,
            )

    base = scheme.base_mapping
    defaults = (
        (AGENT_FIELD, base.agent_field, DataType.STRING),
        (AMOUNT_FIELD, base.amount_field, DataType.NUMBER),
        (TRANSACTION_DATE_FIELD, base.transaction_date_field, DataType.DATE),
    )
    for logical_name, source_field, data_type in defaults:
        if logical_name not in field_map:
            field_map[logical_name] = FieldMapping(
                logical_name=logical_name,
                source_field=source_field,
                data_type=data_type,
                evaluation_level=EvaluationLevel.PER_RECORD,
                source_file=base.source_file,
            )

    logger.debug("field_map_resolved", extra={
        "scheme": scheme.name,
        "field_count": len(field_map),
    })
    return MappingProxyType(field_map)
