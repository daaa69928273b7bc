"""
AgentAggregator -- group selected records by agent and total their credit.

Agent identity is the trimmed string form of the base mapping's agent
field. Groups keep the order in which agents first appear in the input, so
every downstream collection is ordered deterministically.

Records whose agent identity is missing or empty are set aside as
unattributed: they are never processed, never paid and never logged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Sequence

from incentive_config.compiler import CompiledScheme
from incentive_engines.record_processing import process_record
from incentive_kernel.domain.clock import Clock
from incentive_kernel.domain.types import ProcessedRecord, RuleLogEntry, SourceRecord
from incentive_kernel.domain.values import DEFAULT_POLICY, ZERO, DecimalPolicy, to_text
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")


@dataclass(frozen=True)
class AgentPartition:
    """Records grouped by agent, plus the ones no agent can be attributed to."""

    groups: dict[str, tuple[SourceRecord, ...]] = field(default_factory=dict)
    unattributed: tuple[SourceRecord, ...] = ()

    @property
    def agent_ids(self) -> tuple[str, ...]:
        return tuple(self.groups)


@dataclass(frozen=True)
class AgentAggregate:
    """One agent's processed records and credited total."""

    agent_id: str
    records: tuple[ProcessedRecord, ...]
    log_entries: tuple[RuleLogEntry, ...]
    total_credited_amount: Decimal


def agent_identity(record: SourceRecord, agent_field: str) -> str:
    return to_text(record.get(agent_field))


def partition_by_agent(
    records: Sequence[SourceRecord],
    agent_field: str,
) -> AgentPartition:
    """Group records by agent in first-appearance order."""
    groups: dict[str, list[SourceRecord]] = {}
    unattributed: list[SourceRecord] = []
    for record in records:
        agent_id = agent_identity(record, agent_field)
        if not agent_id:
            unattributed.append(record)
            continue
        groups.setdefault(agent_id, []).append(record)

    if unattributed:
        logger.warning("records_without_agent", extra={
            "agent_field": agent_field,
            "record_count": len(unattributed),
            "record_ids": [r.record_id for r in unattributed],
        })
    logger.info("records_grouped", extra={"agent_count": len(groups)})

    return AgentPartition(
        groups={agent_id: tuple(group) for agent_id, group in groups.items()},
        unattributed=tuple(unattributed),
    )


def aggregate_agent(
    agent_id: str,
    records: Sequence[SourceRecord],
    compiled: CompiledScheme,
    *,
    policy: DecimalPolicy = DEFAULT_POLICY,
    clock: Clock | None = None,
) -> AgentAggregate:
    """Process each of the agent's records and sum the non-excluded adjusted amounts."""
    processed: list[ProcessedRecord] = []
    log_entries: list[RuleLogEntry] = []
    total = ZERO
    for record in records:
        result, entries = process_record(
            record, agent_id, compiled, policy=policy, clock=clock,
        )
        processed.append(result)
        log_entries.extend(entries)
        if not result.is_excluded:
            with localcontext(policy.context()):
                total = total + result.adjusted_amount

    logger.debug("agent_aggregated", extra={
        "record_count": len(processed),
        "total_credited_amount": policy.money(total),
    })
    return AgentAggregate(
        agent_id=agent_id,
        records=tuple(processed),
        log_entries=tuple(log_entries),
        total_credited_amount=total,
    )
