"""
Scheme Compiler -- SchemeDefinition -> CompiledScheme.

The compiler resolves the field map once and binds every rule to the
mapping of the field it names, producing the frozen artifact the engines
consume. Nothing downstream looks up a logical field name again.

Compilation:
  - Routes qualification rules by evaluation level: Per Record rules on
    base-dataset fields gate individual records, Agent rules gate the
    agent's credited total.
  - Binds exclusion and adjustment rules whose condition field lives in
    the base dataset.
  - Normalizes operators (trimmed, upper-cased).
  - Parses each condition value once into the field's declared type.

Rules that cannot be bound (unmapped field, field from another dataset,
Team/Region level) are recorded in ``skipped_rules`` with a warning and
never evaluated.

Raises:
    RuleDefinitionError: a Number or Date condition value does not parse.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from incentive_config.fields import resolve_field_map
from incentive_config.schema import (
    AdjustmentDef,
    ConditionDef,
    SchemeDefinition,
)
from incentive_kernel.domain.types import (
    AGGREGATION_SUM,
    DataType,
    EvaluationLevel,
    FieldMapping,
    RuleType,
)
from incentive_kernel.exceptions import RuleDefinitionError
from incentive_kernel.logging_config import get_logger

logger = get_logger("config.compiler")


# ---------------------------------------------------------------------------
# Compiled types (frozen, runtime-ready)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundCondition:
    """A rule condition bound to its field mapping with a typed value."""

    rule_id: str
    condition: ConditionDef
    mapping: FieldMapping
    data_type: DataType
    operator: str
    value: Any

    @property
    def field(self) -> str:
        return self.condition.field

    @property
    def source_field(self) -> str:
        return self.mapping.source_field

    def describe(self) -> str:
        """``<field> <op> <value>`` as authored."""
        return self.condition.describe()


@dataclass(frozen=True)
class CompiledAdjustment:
    """Adjustment rule with its bound condition."""

    rule_id: str
    condition: BoundCondition
    adjustment: AdjustmentDef


@dataclass(frozen=True)
class AgentQualificationRule:
    """
    Agent-level qualification rule.

    Only rules on the primary amount field with ``Sum`` aggregation can be
    evaluated against the agent's credited total; ``supported`` is False for
    all others and they are skipped with a warning at run time.
    """

    condition: BoundCondition
    supported: bool

    @property
    def rule_id(self) -> str:
        return self.condition.rule_id


@dataclass(frozen=True)
class SkippedRule:
    """A rule that compiles to nothing, and why."""

    rule_type: RuleType
    rule_id: str
    field: str
    reason: str


@dataclass(frozen=True)
class CompiledScheme:
    """Frozen runtime artifact. The only scheme shape the engines accept."""

    scheme: SchemeDefinition
    field_map: Mapping[str, FieldMapping]
    record_qualifications: tuple[BoundCondition, ...] = ()
    agent_qualifications: tuple[AgentQualificationRule, ...] = ()
    exclusions: tuple[BoundCondition, ...] = ()
    adjustments: tuple[CompiledAdjustment, ...] = ()
    skipped_rules: tuple[SkippedRule, ...] = ()

    @property
    def name(self) -> str:
        return self.scheme.name

    @property
    def base_file(self) -> str:
        return self.scheme.base_file

    @property
    def agent_field(self) -> str:
        return self.scheme.base_mapping.agent_field

    @property
    def amount_field(self) -> str:
        return self.scheme.base_mapping.amount_field

    @property
    def transaction_date_field(self) -> str:
        return self.scheme.base_mapping.transaction_date_field


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


def compile_scheme(scheme: SchemeDefinition) -> CompiledScheme:
    """Resolve fields, bind rules, and parse typed rule values."""
    field_map = resolve_field_map(scheme)
    base_file = scheme.base_file
    skipped: list[SkippedRule] = []

    def skip(rule_type: RuleType, rule_id: str, field: str, reason: str) -> None:
        logger.warning("rule_skipped", extra={
            "rule_type": rule_type.value,
            "rule_id": rule_id,
            "field": field,
            "reason": reason,
        })
        skipped.append(SkippedRule(rule_type, rule_id, field, reason))

    record_quals: list[BoundCondition] = []
    agent_quals: list[AgentQualificationRule] = []
    for rule in scheme.qualification_rules:
        mapping = field_map.get(rule.condition.field)
        if mapping is None:
            skip(RuleType.QUALIFICATION, rule.id, rule.condition.field, "field is not mapped")
        elif mapping.evaluation_level is EvaluationLevel.PER_RECORD:
            if mapping.source_file != base_file:
                skip(RuleType.QUALIFICATION, rule.id, rule.condition.field,
                     "field is not from the base dataset")
                continue
            record_quals.append(_bind(rule.id, rule.condition, mapping))
        elif mapping.evaluation_level is EvaluationLevel.AGENT:
            supported = (
                mapping.source_field == scheme.base_mapping.amount_field
                and mapping.aggregation == AGGREGATION_SUM
            )
            if supported:
                bound = _bind(rule.id, rule.condition, mapping, DataType.NUMBER)
            else:
                bound = BoundCondition(
                    rule_id=rule.id,
                    condition=rule.condition,
                    mapping=mapping,
                    data_type=mapping.data_type,
                    operator=_normalize_operator(rule.condition.operator),
                    value=rule.condition.value,
                )
            agent_quals.append(AgentQualificationRule(bound, supported))
        else:
            level = mapping.evaluation_level.value if mapping.evaluation_level else "unknown"
            skip(RuleType.QUALIFICATION, rule.id, rule.condition.field,
                 f"evaluation level {level} is not evaluated")

    exclusions: list[BoundCondition] = []
    for rule in scheme.exclusion_rules:
        mapping = field_map.get(rule.condition.field)
        reason = _base_binding_problem(mapping, base_file)
        if reason:
            skip(RuleType.EXCLUSION, rule.id, rule.condition.field, reason)
            continue
        exclusions.append(_bind(rule.id, rule.condition, mapping))

    adjustments: list[CompiledAdjustment] = []
    for rule in scheme.adjustment_rules:
        mapping = field_map.get(rule.condition.field)
        reason = _base_binding_problem(mapping, base_file)
        if reason:
            skip(RuleType.ADJUSTMENT, rule.id, rule.condition.field, reason)
            continue
        adjustments.append(CompiledAdjustment(
            rule_id=rule.id,
            condition=_bind(rule.id, rule.condition, mapping),
            adjustment=rule.adjustment,
        ))

    compiled = CompiledScheme(
        scheme=scheme,
        field_map=field_map,
        record_qualifications=tuple(record_quals),
        agent_qualifications=tuple(agent_quals),
        exclusions=tuple(exclusions),
        adjustments=tuple(adjustments),
        skipped_rules=tuple(skipped),
    )
    logger.info("scheme_compiled", extra={
        "scheme": scheme.name,
        "record_qualifications": len(record_quals),
        "agent_qualifications": len(agent_quals),
        "exclusions": len(exclusions),
        "adjustments": len(adjustments),
        "skipped_rules": len(skipped),
    })
    return compiled


def _normalize_operator(operator: str) -> str:
    return (operator or "").strip().upper()


def _base_binding_problem(mapping: FieldMapping | None, base_file: str) -> str | None:
    if mapping is None:
        return "field is not mapped"
    if mapping.source_file != base_file:
        return "field is not from the base dataset"
    return None


def _bind(
    rule_id: str,
    condition: ConditionDef,
    mapping: FieldMapping,
    data_type: DataType | None = None,
) -> BoundCondition:
    data_type = data_type or mapping.data_type
    try:
        value = data_type.coerce(condition.value)
    except ValueError as e:
        raise RuleDefinitionError(rule_id, condition.field, condition.value, str(e)) from e
    return BoundCondition(
        rule_id=rule_id,
        condition=condition,
        mapping=mapping,
        data_type=data_type,
        operator=_normalize_operator(condition.operator),
        value=value,
    )
