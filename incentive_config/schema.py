"""
SchemeDefinition schema.

The human-authored scheme (produced by the authoring UI as JSON) parsed
into frozen dataclasses. This is the source artifact: rule condition values
are kept as authored here and only typed once the field map is known (see
``incentive_config.compiler``). Tier bounds, tier rates, adjustment values
and split percentages have no field-map dependency and are parsed to
``Decimal`` by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterator, Mapping

# ---------------------------------------------------------------------------
# Base mapping and KPI configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseMapping:
    """Which dataset is the base and which of its columns carry agent, amount, date."""

    source_file: str
    agent_field: str
    amount_field: str
    transaction_date_field: str


@dataclass(frozen=True)
class KpiFieldDef:
    """One authored kpiConfig entry (may be incomplete; see FieldResolver)."""

    name: str
    source_field: str
    data_type: str = "String"
    evaluation_level: str = "Per Record"
    aggregation: str = "NotApplicable"
    source_file: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class KpiConfig:
    """The five kpiConfig sections, each an ordered tuple of field definitions."""

    base_data: tuple[KpiFieldDef, ...] = ()
    qualification_fields: tuple[KpiFieldDef, ...] = ()
    adjustment_fields: tuple[KpiFieldDef, ...] = ()
    exclusion_fields: tuple[KpiFieldDef, ...] = ()
    credit_fields: tuple[KpiFieldDef, ...] = ()

    SECTIONS = (
        ("baseData", "base_data"),
        ("qualificationFields", "qualification_fields"),
        ("adjustmentFields", "adjustment_fields"),
        ("exclusionFields", "exclusion_fields"),
        ("creditFields", "credit_fields"),
    )

    def sections(self) -> Iterator[tuple[str, tuple[KpiFieldDef, ...]]]:
        """Yield (authored section name, entries) in merge order."""
        for authored, attr in self.SECTIONS:
            yield authored, getattr(self, attr)


# ---------------------------------------------------------------------------
# Rules (declarative data, no executable logic)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConditionDef:
    """A comparison of a logical field against an authored value."""

    field: str
    operator: str
    value: Any = None

    def describe(self) -> str:
        return f"{self.field} {self.operator} {self.value}"


@dataclass(frozen=True)
class RuleDef:
    """A qualification or exclusion rule."""

    id: str
    condition: ConditionDef


@dataclass(frozen=True)
class AdjustmentDef:
    """What an adjustment rule does when its condition holds."""

    target: str  # "Rate" or "Amount"
    type: str  # "percentage" or "fixed"
    value: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"target": self.target, "type": self.type, "value": str(self.value)}


@dataclass(frozen=True)
class AdjustmentRuleDef:
    """Condition plus adjustment."""

    id: str
    condition: ConditionDef
    adjustment: AdjustmentDef


@dataclass(frozen=True)
class CreditSplitDef:
    """Share of an agent's base payout credited to the manager at ``role``."""

    id: str
    role: str
    percentage: Decimal


@dataclass(frozen=True)
class PayoutTier:
    """
    One bracket of the payout table.

    ``to_amount`` None means unbounded. ``rate`` is a percentage of the
    slice when ``is_percentage`` is true, otherwise a per-unit multiplier.
    """

    id: str
    from_amount: Decimal
    to_amount: Decimal | None
    rate: Decimal
    is_percentage: bool = True


# ---------------------------------------------------------------------------
# Scheme
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemeDefinition:
    """
    A complete scheme, immutable for the duration of a run.

    ``custom_rules`` and ``credit_rules`` are carried as authored; the engine
    does not evaluate them.
    """

    name: str
    effective_from: date
    base_mapping: BaseMapping
    effective_to: date | None = None
    description: str = ""
    quota_amount: Decimal | None = None
    revenue_base: str = ""
    qualification_rules: tuple[RuleDef, ...] = ()
    exclusion_rules: tuple[RuleDef, ...] = ()
    adjustment_rules: tuple[AdjustmentRuleDef, ...] = ()
    credit_splits: tuple[CreditSplitDef, ...] = ()
    payout_tiers: tuple[PayoutTier, ...] = ()
    credit_hierarchy_file: str | None = None
    kpi_config: KpiConfig = field(default_factory=KpiConfig)
    custom_rules: tuple[Mapping[str, Any], ...] = ()
    credit_rules: tuple[Mapping[str, Any], ...] = ()

    @property
    def base_file(self) -> str:
        return self.base_mapping.source_file
