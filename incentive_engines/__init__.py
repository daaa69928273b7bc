"""
Module: incentive_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines. This is the import surface for
    ``incentive_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import incentive_kernel and incentive_config (compiled schemes).
    MUST NOT import incentive_services or incentive_ingestion.

Invariants enforced:
    - Purity: engines never call ``datetime.now()``; timestamps come from
      an injected ``Clock``.
    - Decimal-only arithmetic under an explicit ``DecimalPolicy``.
    - Determinism: identical inputs always produce identical outputs.
    - Recoverable problems never raise; they become warnings or rule hit
      log entries.

Audit relevance:
    Tier calculation is traced via ``@traced_engine`` (see
    ``incentive_engines.tracer``), emitting INCENTIVE_ENGINE_TRACE records.
"""

import logging

from incentive_engines.aggregation import (
    AgentAggregate,
    AgentPartition,
    aggregate_agent,
    partition_by_agent,
)
from incentive_engines.conditions import evaluate_condition
from incentive_engines.credit_split import ManagerCredit, SplitOutcome, distribute_credit
from incentive_engines.hierarchy import find_manager, load_hierarchy
from incentive_engines.qualification import (
    QualificationOutcome,
    evaluate_agent_qualification,
)
from incentive_engines.record_processing import process_record
from incentive_engines.selection import select_records, to_source_records
from incentive_engines.tiers import compute_marginal_payout
from incentive_engines.tracer import traced_engine

__all__ = [
    "AgentAggregate",
    "AgentPartition",
    "aggregate_agent",
    "partition_by_agent",
    "evaluate_condition",
    "ManagerCredit",
    "SplitOutcome",
    "distribute_credit",
    "find_manager",
    "load_hierarchy",
    "QualificationOutcome",
    "evaluate_agent_qualification",
    "process_record",
    "select_records",
    "to_source_records",
    "compute_marginal_payout",
    "traced_engine",
]

logging.getLogger("incentive_kernel.engines").debug("incentive_engines_loaded")
