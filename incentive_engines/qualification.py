"""
QualificationGate -- agent-level qualification against the credited total.

An agent with a zero or negative credited total never qualifies and gets
no Qualification log entry. Otherwise the compiled agent-level rules are
checked in declaration order; the first failing rule disqualifies the
agent and is the only one logged.

Only rules on the primary amount field with ``Sum`` aggregation can be
evaluated at agent level. Any other agent-level rule is skipped with a
warning and does not affect the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from incentive_config.compiler import CompiledScheme
from incentive_engines.conditions import evaluate_condition
from incentive_kernel.domain.clock import Clock, SystemClock
from incentive_kernel.domain.types import RuleLogEntry, RuleType
from incentive_kernel.domain.values import DEFAULT_POLICY, ZERO, DecimalPolicy
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.qualification")


@dataclass(frozen=True)
class QualificationOutcome:
    qualified: bool
    log_entries: tuple[RuleLogEntry, ...] = ()


def evaluate_agent_qualification(
    agent_id: str,
    total: Decimal,
    compiled: CompiledScheme,
    *,
    policy: DecimalPolicy = DEFAULT_POLICY,
    clock: Clock | None = None,
) -> QualificationOutcome:
    """Gate an agent's payout on the agent-level qualification rules."""
    if total <= ZERO:
        return QualificationOutcome(qualified=False)

    clock = clock or SystemClock()
    for rule in compiled.agent_qualifications:
        condition = rule.condition
        if not rule.supported:
            logger.warning("agent_rule_not_supported", extra={
                "rule_id": rule.rule_id,
                "field": condition.field,
                "source_field": condition.source_field,
                "aggregation": condition.mapping.aggregation,
            })
            continue
        if evaluate_condition(total, condition.operator, condition.value, condition.data_type):
            continue

        message = (
            f"Agent failed qualification rule {rule.rule_id}: "
            f"Check ({condition.describe()}) failed with value {policy.money(total)}."
        )
        entry = RuleLogEntry(
            rule_type=RuleType.QUALIFICATION,
            rule_id=rule.rule_id,
            agent_id=agent_id,
            message=message,
            timestamp=clock.isoformat(),
        )
        return QualificationOutcome(qualified=False, log_entries=(entry,))

    return QualificationOutcome(qualified=True)
