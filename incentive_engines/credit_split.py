"""
CreditSplitDistributor -- credit an agent's base payout to its managers.

Responsibility:
    For an agent with a positive base payout, apply each configured credit
    split: find the manager at the split's role who was active during the
    run window and credit ``base_payout * percentage / 100`` to them.

Architecture position:
    Engines -- pure, zero I/O. Manager lookup is delegated to
    ``incentive_engines.hierarchy``.

Invariants enforced:
    - Distribution is additive bookkeeping: the agent's own payout is never
      reduced.
    - A distribution is recorded only for a positive split amount.
    - Splits are applied in declaration order; the distributions for a
      manager keep that order.

Failure modes:
    - Split with no role or a non-positive percentage -> warning, skipped.
    - No manager found -> CreditSplit log entry explaining the miss, no
      distribution.
    - Splits configured but the hierarchy is missing or empty -> one
      explanatory CreditSplit entry (rule id ``N/A``) and no splits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, localcontext
from typing import Sequence

from incentive_config.schema import SchemeDefinition
from incentive_engines.hierarchy import find_manager
from incentive_kernel.domain.clock import Clock, SystemClock
from incentive_kernel.domain.types import (
    CreditDistributionEntry,
    HierarchyRecord,
    RuleLogEntry,
    RuleType,
)
from incentive_kernel.domain.values import DEFAULT_POLICY, HUNDRED, ZERO, DecimalPolicy
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.credit_split")

NO_HIERARCHY_RULE_ID = "N/A"


@dataclass(frozen=True)
class ManagerCredit:
    """A distribution entry and the manager it is credited to."""

    manager_id: str
    entry: CreditDistributionEntry


@dataclass(frozen=True)
class SplitOutcome:
    distributions: tuple[ManagerCredit, ...] = ()
    log_entries: tuple[RuleLogEntry, ...] = ()


def _plain(value: Decimal) -> str:
    """Authored percentage without trailing zeros or exponent (``90``, ``12.5``)."""
    return f"{value.normalize():f}"


def distribute_credit(
    agent_id: str,
    base_payout: Decimal,
    scheme: SchemeDefinition,
    hierarchy: Sequence[HierarchyRecord],
    run_as_of: date,
    *,
    policy: DecimalPolicy = DEFAULT_POLICY,
    clock: Clock | None = None,
) -> SplitOutcome:
    """Apply the scheme's credit splits to one agent's base payout."""
    if base_payout <= ZERO or not scheme.credit_splits:
        return SplitOutcome()

    clock = clock or SystemClock()
    if not hierarchy:
        entry = RuleLogEntry(
            rule_type=RuleType.CREDIT_SPLIT,
            rule_id=NO_HIERARCHY_RULE_ID,
            agent_id=agent_id,
            message=(
                "Splits defined but hierarchy data missing or empty. "
                f"Cannot distribute payout {policy.money(base_payout)}."
            ),
            timestamp=clock.isoformat(),
        )
        return SplitOutcome(log_entries=(entry,))

    scheme_start = scheme.effective_from
    distributions: list[ManagerCredit] = []
    log_entries: list[RuleLogEntry] = []

    for split in scheme.credit_splits:
        if not split.role or split.percentage <= ZERO:
            logger.warning("credit_split_invalid", extra={
                "split_rule_id": split.id,
                "role": split.role,
                "percentage": str(split.percentage),
            })
            continue

        manager_id = find_manager(agent_id, split.role, hierarchy, scheme_start, run_as_of)
        if manager_id is None:
            log_entries.append(RuleLogEntry(
                rule_type=RuleType.CREDIT_SPLIT,
                rule_id=split.id,
                agent_id=agent_id,
                message=(
                    f"Agent {agent_id}: Could not find a valid Manager for role "
                    f"{split.role} (Split Rule ID: {split.id}) active between "
                    f"{scheme_start.isoformat()} and {run_as_of.isoformat()}."
                ),
                details={
                    "role": split.role,
                    "percentage": policy.ratio(split.percentage),
                },
                timestamp=clock.isoformat(),
            ))
            continue

        with localcontext(policy.context()):
            split_amount = base_payout * split.percentage / HUNDRED
        if split_amount <= ZERO:
            continue

        timestamp = clock.isoformat()
        distributions.append(ManagerCredit(
            manager_id=manager_id,
            entry=CreditDistributionEntry(
                from_agent=agent_id,
                role=split.role,
                amount=policy.money(split_amount),
                split_rule_id=split.id,
                base_payout_from_agent=policy.money(base_payout),
                percentage_applied=policy.ratio(split.percentage),
                timestamp=timestamp,
            ),
        ))
        log_entries.append(RuleLogEntry(
            rule_type=RuleType.CREDIT_SPLIT,
            rule_id=split.id,
            agent_id=agent_id,
            message=(
                f"Distributed {policy.money(split_amount)} ({_plain(split.percentage)}%) "
                f"to {split.role} Manager {manager_id}."
            ),
            details={
                "managerId": manager_id,
                "role": split.role,
                "percentage": policy.ratio(split.percentage),
                "splitAmount": policy.money(split_amount),
                "basePayout": policy.money(base_payout),
            },
            timestamp=timestamp,
        ))

    return SplitOutcome(distributions=tuple(distributions), log_entries=tuple(log_entries))
