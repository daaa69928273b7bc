"""
Scheme Validator (``incentive_config.validator``).

Responsibility
--------------
Reports on the health of an authored scheme before it is run: whether it
parses and compiles at all, and which parts of it will silently do nothing
at run time.

Architecture position
---------------------
**Config layer** -- build-time validation. Used by the CLI's
``--validate-only`` mode and before a run. Depends on the loader and
compiler; no dependency on engines.

Failure modes
-------------
* Validation errors (``SchemeValidationResult.errors``) -> the scheme
  cannot be run; ``run_scheme`` would raise the same error.
* Validation warnings (``SchemeValidationResult.warnings``) -> the scheme
  runs, but the named rules, fields, splits or tiers have no effect or an
  effect the author may not expect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from incentive_config.compiler import BoundCondition, CompiledScheme, compile_scheme
from incentive_config.loader import parse_scheme
from incentive_config.schema import SchemeDefinition
from incentive_kernel.exceptions import ConfigurationError

ADJUSTMENT_KINDS = frozenset({
    ("Rate", "percentage"),
    ("Amount", "percentage"),
    ("Amount", "fixed"),
})


@dataclass
class SchemeValidationResult:
    """
    Result of scheme validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * ``compiled`` is set whenever the scheme compiled.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    compiled: CompiledScheme | None = None

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_scheme(scheme: Any) -> SchemeValidationResult:
    """
    Validate an authored scheme mapping or a parsed ``SchemeDefinition``.

    Never raises for configuration problems; they are returned as errors.
    """
    result = SchemeValidationResult()
    try:
        definition = scheme if isinstance(scheme, SchemeDefinition) else parse_scheme(scheme)
        compiled = compile_scheme(definition)
    except ConfigurationError as e:
        result.add_error(str(e))
        return result

    result.compiled = compiled
    _validate_kpi_fields(definition, result)
    _validate_skipped_rules(compiled, result)
    _validate_operators(compiled, result)
    _validate_agent_rules(compiled, result)
    _validate_adjustments(compiled, result)
    _validate_splits(definition, result)
    _validate_tiers(definition, result)
    _validate_rule_ids(definition, result)
    if definition.custom_rules:
        result.add_warning(
            f"{len(definition.custom_rules)} custom rule(s) defined; custom rules are not executed"
        )
    return result


def _validate_kpi_fields(
    scheme: SchemeDefinition,
    result: SchemeValidationResult,
) -> None:
    for section, entries in scheme.kpi_config.sections():
        for entry in entries:
            if not entry.name or not entry.source_field:
                result.add_warning(
                    f"kpiConfig.{section}: field definition without name or sourceField is ignored"
                )
            elif not entry.source_file:
                result.add_warning(
                    f"kpiConfig.{section}: field {entry.name!r} has no sourceFile; "
                    "record-level rules on it never apply"
                )


def _validate_skipped_rules(
    compiled: CompiledScheme,
    result: SchemeValidationResult,
) -> None:
    for skipped in compiled.skipped_rules:
        result.add_warning(
            f"{skipped.rule_type.value} rule {skipped.rule_id!r} on field "
            f"{skipped.field!r} is never applied: {skipped.reason}"
        )


def _bound_conditions(compiled: CompiledScheme) -> list[BoundCondition]:
    conditions = list(compiled.record_qualifications)
    conditions.extend(
        rule.condition for rule in compiled.agent_qualifications if rule.supported
    )
    conditions.extend(compiled.exclusions)
    conditions.extend(adj.condition for adj in compiled.adjustments)
    return conditions


def _validate_operators(
    compiled: CompiledScheme,
    result: SchemeValidationResult,
) -> None:
    for condition in _bound_conditions(compiled):
        if condition.operator not in condition.data_type.operators:
            result.add_warning(
                f"Rule {condition.rule_id!r}: operator {condition.condition.operator!r} "
                f"is not supported for {condition.data_type.value} field "
                f"{condition.field!r}; the condition is always false"
            )


def _validate_agent_rules(
    compiled: CompiledScheme,
    result: SchemeValidationResult,
) -> None:
    for rule in compiled.agent_qualifications:
        if not rule.supported:
            result.add_warning(
                f"Agent-level qualification rule {rule.rule_id!r} on field "
                f"{rule.condition.field!r} is skipped; only the summed primary "
                "amount can be checked at agent level"
            )


def _validate_adjustments(
    compiled: CompiledScheme,
    result: SchemeValidationResult,
) -> None:
    for adj in compiled.adjustments:
        kind = (adj.adjustment.target, adj.adjustment.type)
        if kind not in ADJUSTMENT_KINDS:
            result.add_warning(
                f"Adjustment rule {adj.rule_id!r}: unknown target/type "
                f"{adj.adjustment.target}/{adj.adjustment.type} has no effect"
            )


def _validate_splits(
    scheme: SchemeDefinition,
    result: SchemeValidationResult,
) -> None:
    for split in scheme.credit_splits:
        if not split.role or split.percentage <= 0:
            result.add_warning(
                f"Credit split {split.id!r} is skipped: needs a role and a positive percentage"
            )
    if scheme.credit_splits and not scheme.credit_hierarchy_file:
        result.add_warning("Credit splits are defined but no creditHierarchyFile is named")


def _validate_tiers(
    scheme: SchemeDefinition,
    result: SchemeValidationResult,
) -> None:
    if not scheme.payout_tiers:
        result.add_warning("No payout tiers defined; every payout is 0")
        return
    ordered = sorted(scheme.payout_tiers, key=lambda t: t.from_amount)
    for previous, tier in zip(ordered, ordered[1:]):
        if previous.to_amount is None or tier.from_amount < previous.to_amount:
            result.add_warning(
                f"Payout tier {tier.id!r} overlaps tier {previous.id!r}; "
                "overlapping ranges are paid once"
            )
    for tier in ordered:
        if tier.to_amount is not None and tier.to_amount <= tier.from_amount:
            result.add_warning(f"Payout tier {tier.id!r} has an empty range")


def _validate_rule_ids(
    scheme: SchemeDefinition,
    result: SchemeValidationResult,
) -> None:
    seen: set[str] = set()
    rules = (
        *scheme.qualification_rules,
        *scheme.exclusion_rules,
        *scheme.adjustment_rules,
    )
    for rule in rules:
        if not rule.id:
            result.add_warning("A rule has no id; its log entries cannot be traced")
        elif rule.id in seen:
            result.add_warning(f"Rule id {rule.id!r} is used more than once")
        seen.add(rule.id)
