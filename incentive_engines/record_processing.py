"""
RecordProcessor -- exclusion, then adjustment, for one base record.

Responsibility:
    Turn one selected record into a ``ProcessedRecord`` whose adjusted
    amount is the record's contribution to its agent's credited total, and
    report every rule that fired.

Architecture position:
    Engines -- pure, zero I/O. Timestamps come from the injected Clock.

Invariants enforced:
    - Exclusion is first-match: rules are tried in declaration order and
      the first that holds excludes the record; no further exclusion or
      adjustment rule is evaluated.
    - Adjustment is all-match: every rule whose condition holds applies,
      in declaration order, and effects compound.
    - An excluded record contributes exactly zero.
    - Arithmetic runs under the caller's ``DecimalPolicy`` in a local
      decimal context.

Failure modes:
    - A missing amount counts as zero. An amount that is not a number
      counts as zero and logs a warning; the run continues.
    - An adjustment with an unknown target/type pair is logged as an
      Adjustment hit with no numeric effect, plus a warning.
"""

from __future__ import annotations

from decimal import Decimal, localcontext

from incentive_config.compiler import CompiledAdjustment, CompiledScheme
from incentive_engines.conditions import evaluate_condition
from incentive_kernel.domain.clock import Clock, SystemClock
from incentive_kernel.domain.types import (
    ProcessedRecord,
    ProcessingStatus,
    RuleLogEntry,
    RuleType,
    SourceRecord,
)
from incentive_kernel.domain.values import (
    DEFAULT_POLICY,
    HUNDRED,
    ONE,
    ZERO,
    DecimalPolicy,
    is_blank,
    parse_decimal,
)
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.record_processing")

CUSTOM_RULE_NOTE = "Custom rules present but not executed."


def record_amount(record: SourceRecord, amount_field: str) -> Decimal:
    """The record's amount as a Decimal; missing or non-numeric counts as zero."""
    raw = record.get(amount_field)
    if is_blank(raw):
        return ZERO
    try:
        amount = parse_decimal(raw)
    except ValueError:
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning("record_amount_not_numeric", extra={
            "record_id": record.record_id,
            "amount_field": amount_field,
            "value": str(raw),
        })
        return ZERO
    return amount


def process_record(
    record: SourceRecord,
    agent_id: str,
    compiled: CompiledScheme,
    *,
    policy: DecimalPolicy = DEFAULT_POLICY,
    clock: Clock | None = None,
) -> tuple[ProcessedRecord, list[RuleLogEntry]]:
    """Apply exclusion then adjustment rules to one record."""
    clock = clock or SystemClock()
    log_entries: list[RuleLogEntry] = []

    with localcontext(policy.context()):
        original_amount = record_amount(record, compiled.amount_field)
        amount = original_amount
        multiplier = ONE

        exclusion_reason = None
        for condition in compiled.exclusions:
            if evaluate_condition(
                record.get(condition.source_field),
                condition.operator,
                condition.value,
                condition.data_type,
            ):
                exclusion_reason = (
                    f"Excluded by rule {condition.rule_id} ({condition.describe()})"
                )
                log_entries.append(RuleLogEntry(
                    rule_type=RuleType.EXCLUSION,
                    rule_id=condition.rule_id,
                    record_id=record.record_id,
                    agent_id=agent_id,
                    message=exclusion_reason,
                    timestamp=clock.isoformat(),
                ))
                break
        is_excluded = exclusion_reason is not None

        applied: list[str] = []
        if not is_excluded:
            for rule in compiled.adjustments:
                condition_value = record.get(rule.condition.source_field)
                if not evaluate_condition(
                    condition_value,
                    rule.condition.operator,
                    rule.condition.value,
                    rule.condition.data_type,
                ):
                    continue
                amount_before, multiplier_before = amount, multiplier
                amount, multiplier, message = _apply_adjustment(
                    rule, amount, multiplier, policy,
                )
                applied.append(rule.rule_id)
                log_entries.append(RuleLogEntry(
                    rule_type=RuleType.ADJUSTMENT,
                    rule_id=rule.rule_id,
                    record_id=record.record_id,
                    agent_id=agent_id,
                    message=message,
                    details={
                        "conditionField": rule.condition.field,
                        "conditionValue": condition_value,
                        "adjustment": rule.adjustment.to_dict(),
                        "originalAmount": policy.money(original_amount),
                        "amountBeforeAdj": policy.money(amount_before),
                        "rateMultiplierBeforeAdj": policy.ratio(multiplier_before),
                    },
                    timestamp=clock.isoformat(),
                ))

        custom_rule_note = None
        if not is_excluded and compiled.scheme.custom_rules:
            logger.warning("custom_rules_not_executed", extra={
                "record_id": record.record_id,
                "custom_rule_count": len(compiled.scheme.custom_rules),
            })
            custom_rule_note = CUSTOM_RULE_NOTE

        adjusted = ZERO if is_excluded else amount * multiplier

    status = ProcessingStatus(
        original_amount=policy.money(original_amount),
        rate_multiplier=policy.ratio(multiplier),
        adjusted_amount=policy.money(adjusted),
        is_excluded=is_excluded,
        exclusion_reason=exclusion_reason,
        adjustment_note=f"Adjusted by rule {', '.join(applied)}" if applied else None,
        custom_rule_note=custom_rule_note,
    )
    processed = ProcessedRecord(
        record=record,
        agent_id=agent_id,
        adjusted_amount=adjusted,
        status=status,
    )
    return processed, log_entries


def _apply_adjustment(
    rule: CompiledAdjustment,
    amount: Decimal,
    multiplier: Decimal,
    policy: DecimalPolicy,
) -> tuple[Decimal, Decimal, str]:
    adj = rule.adjustment
    message = f"Adjustment Rule {rule.rule_id} triggered: "
    kind = (adj.target, adj.type)

    if kind == ("Rate", "percentage"):
        multiplier = multiplier * (adj.value / HUNDRED)
        message += f"Rate multiplier updated to {policy.ratio(multiplier)}"
    elif kind == ("Amount", "percentage"):
        amount = amount + amount * adj.value / HUNDRED
        message += f"Amount adjusted by {policy.money(adj.value)}% to {policy.money(amount)}"
    elif kind == ("Amount", "fixed"):
        amount = amount + adj.value
        message += f"Amount adjusted by fixed {policy.money(adj.value)} to {policy.money(amount)}"
    else:
        message += f"Unknown adjustment target/type: {adj.target}/{adj.type}"
        logger.warning("adjustment_kind_unknown", extra={
            "rule_id": rule.rule_id,
            "target": adj.target,
            "adjustment_type": adj.type,
        })
    return amount, multiplier, message
