"""
Scheme loader (``incentive_config.loader``).

Responsibility
--------------
Parses an authored scheme (the camelCase JSON shape the authoring UI
saves) into the frozen ``incentive_config.schema`` dataclasses, and loads
scheme files from disk. YAML is a superset of JSON, so ``yaml.safe_load``
reads both ``.json`` and ``.yaml`` scheme files.

Invariants enforced
-------------------
* Required structure fails fast with a typed ``ConfigurationError``:
  scheme not a mapping, ``effectiveFrom`` not ``YYYY-MM-DD``, ``baseMapping``
  missing any of its four fields.
* Numeric rule data with no field-map dependency (tier bounds and rates,
  adjustment values, split percentages) is parsed to ``Decimal`` here;
  malformed values raise ``RuleDefinitionError``.
* Optional metadata (``effectiveTo``, ``quotaAmount``) degrades to None
  with a warning instead of failing.

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML/JSON -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from incentive_config.schema import (
    AdjustmentDef,
    AdjustmentRuleDef,
    BaseMapping,
    ConditionDef,
    CreditSplitDef,
    KpiConfig,
    KpiFieldDef,
    PayoutTier,
    RuleDef,
    SchemeDefinition,
)
from incentive_kernel.domain.values import is_blank, parse_decimal, parse_iso_date, to_text
from incentive_kernel.exceptions import (
    BaseMappingError,
    InvalidSchemeDateError,
    MissingSchemeError,
    RuleDefinitionError,
)
from incentive_kernel.logging_config import get_logger

logger = get_logger("config.loader")


def load_scheme_file(path: Path | str) -> SchemeDefinition:
    """
    Load and parse a scheme file (JSON or YAML).

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file is not valid YAML/JSON.
        ConfigurationError: if the content is not a valid scheme.
    """
    return parse_scheme(load_scheme_data(path))


def load_scheme_data(path: Path | str) -> Any:
    """Read a scheme file into plain Python data without parsing it."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    logger.info("scheme_file_loaded", extra={"path": str(path)})
    return data


def compute_checksum(data: Mapping[str, Any]) -> str:
    """Deterministic SHA-256 of an authored scheme for identity and change detection."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_scheme(data: Any) -> SchemeDefinition:
    """
    Parse an authored scheme mapping.

    Raises:
        MissingSchemeError: if ``data`` is not a mapping.
        InvalidSchemeDateError: if ``effectiveFrom`` is not an ISO date.
        BaseMappingError: if ``baseMapping`` lacks a required field.
        RuleDefinitionError: if a tier, adjustment, or split value is malformed.
    """
    if not isinstance(data, Mapping):
        raise MissingSchemeError(type(data).__name__)

    name = str(data.get("name") or "Unnamed Scheme")

    effective_from = parse_iso_date(data.get("effectiveFrom"))
    if effective_from is None:
        raise InvalidSchemeDateError("effectiveFrom", data.get("effectiveFrom"))

    effective_to = None
    if not is_blank(data.get("effectiveTo")):
        effective_to = parse_iso_date(data.get("effectiveTo"))
        if effective_to is None:
            logger.warning("scheme_effective_to_invalid", extra={
                "scheme": name,
                "value": str(data.get("effectiveTo")),
            })

    base_mapping = parse_base_mapping(data.get("baseMapping"))

    if data.get("payoutTiers") is None:
        logger.warning("scheme_has_no_payout_tiers", extra={"scheme": name})

    hierarchy_file = data.get("creditHierarchyFile")

    return SchemeDefinition(
        name=name,
        effective_from=effective_from,
        effective_to=effective_to,
        base_mapping=base_mapping,
        description=str(data.get("description") or ""),
        quota_amount=_optional_decimal(data.get("quotaAmount"), "quotaAmount", name),
        revenue_base=str(data.get("revenueBase") or ""),
        qualification_rules=tuple(
            parse_rule(r) for r in _items(data.get("qualificationRules"))
        ),
        exclusion_rules=tuple(
            parse_rule(r) for r in _items(data.get("exclusionRules"))
        ),
        adjustment_rules=tuple(
            parse_adjustment_rule(r) for r in _items(data.get("adjustmentRules"))
        ),
        credit_splits=tuple(
            parse_credit_split(s) for s in _items(data.get("creditSplits"))
        ),
        payout_tiers=tuple(
            parse_tier(t) for t in _items(data.get("payoutTiers"))
        ),
        credit_hierarchy_file=str(hierarchy_file) if hierarchy_file else None,
        kpi_config=parse_kpi_config(data.get("kpiConfig")),
        custom_rules=tuple(_items(data.get("customRules"))),
        credit_rules=tuple(_items(data.get("creditRules"))),
    )


def parse_base_mapping(data: Any) -> BaseMapping:
    """Parse ``baseMapping``; every field is required and non-empty."""
    data = data if isinstance(data, Mapping) else {}
    missing = tuple(
        key for key in BaseMappingError.REQUIRED_FIELDS if not data.get(key)
    )
    if missing:
        raise BaseMappingError(missing)
    return BaseMapping(
        source_file=str(data["sourceFile"]),
        agent_field=str(data["agentField"]),
        amount_field=str(data["amountField"]),
        transaction_date_field=str(data["transactionDateField"]),
    )


def parse_kpi_config(data: Any) -> KpiConfig:
    """Parse the five kpiConfig sections; incomplete entries are kept for the resolver to report."""
    if not isinstance(data, Mapping):
        return KpiConfig()
    sections = {
        attr: tuple(parse_kpi_field(f) for f in _items(data.get(authored)))
        for authored, attr in KpiConfig.SECTIONS
    }
    return KpiConfig(**sections)


def parse_kpi_field(data: Any) -> KpiFieldDef:
    if not isinstance(data, Mapping):
        return KpiFieldDef(name="", source_field="")
    source_file = data.get("sourceFile")
    return KpiFieldDef(
        name=to_text(data.get("name")),
        source_field=to_text(data.get("sourceField")),
        data_type=to_text(data.get("dataType")) or "String",
        evaluation_level=to_text(data.get("evaluationLevel")) or "Per Record",
        aggregation=to_text(data.get("aggregation")) or "NotApplicable",
        source_file=str(source_file) if source_file else None,
        id=to_text(data.get("id")) or None,
    )


def parse_condition(data: Any) -> ConditionDef:
    data = data if isinstance(data, Mapping) else {}
    return ConditionDef(
        field=to_text(data.get("field")),
        operator=to_text(data.get("operator")),
        value=data.get("value"),
    )


def parse_rule(data: Any) -> RuleDef:
    """Qualification and exclusion rules carry field/operator/value at top level."""
    data = data if isinstance(data, Mapping) else {}
    return RuleDef(id=to_text(data.get("id")), condition=parse_condition(data))


def parse_adjustment_rule(data: Any) -> AdjustmentRuleDef:
    data = data if isinstance(data, Mapping) else {}
    rule_id = to_text(data.get("id"))
    adjustment = data.get("adjustment")
    adjustment = adjustment if isinstance(adjustment, Mapping) else {}
    return AdjustmentRuleDef(
        id=rule_id,
        condition=parse_condition(data.get("condition")),
        adjustment=AdjustmentDef(
            target=to_text(adjustment.get("target")),
            type=to_text(adjustment.get("type")),
            value=_required_decimal(adjustment.get("value"), rule_id, "adjustment.value"),
        ),
    )


def parse_credit_split(data: Any) -> CreditSplitDef:
    data = data if isinstance(data, Mapping) else {}
    split_id = to_text(data.get("id"))
    return CreditSplitDef(
        id=split_id,
        role=to_text(data.get("role")),
        percentage=_required_decimal(data.get("percentage"), split_id, "percentage"),
    )


def parse_tier(data: Any) -> PayoutTier:
    """Missing ``from``/``rate`` mean zero; missing ``to`` means unbounded."""
    data = data if isinstance(data, Mapping) else {}
    tier_id = to_text(data.get("id"))
    to_raw = data.get("to")
    return PayoutTier(
        id=tier_id,
        from_amount=_required_decimal(data.get("from"), tier_id, "from"),
        to_amount=None if is_blank(to_raw) else _required_decimal(to_raw, tier_id, "to"),
        rate=_required_decimal(data.get("rate"), tier_id, "rate"),
        is_percentage=data.get("isPercentage") is not False,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _items(value: Any) -> Sequence[Any]:
    if isinstance(value, (list, tuple)):
        return value
    return ()


def _required_decimal(value: Any, rule_id: str, field_name: str) -> Decimal:
    """Blank and zero-like values count as zero."""
    if is_blank(value) or value is False:
        return Decimal("0")
    try:
        return parse_decimal(value)
    except ValueError as e:
        raise RuleDefinitionError(rule_id, field_name, value, str(e)) from e


def _optional_decimal(value: Any, field_name: str, scheme_name: str) -> Decimal | None:
    if is_blank(value):
        return None
    try:
        return parse_decimal(value)
    except ValueError:
        logger.warning("scheme_metadata_not_numeric", extra={
            "scheme": scheme_name,
            "field": field_name,
            "value": str(value),
        })
        return None
