"""
incentive_config -- scheme definitions: schema, loading, compilation, validation.

Responsibility:
    Turns an authored scheme (the camelCase JSON the authoring UI saves,
    or the same structure in YAML) into the frozen ``CompiledScheme`` that
    the engines consume, and reports on scheme health.

Architecture position:
    Configuration -- sits above ``incentive_kernel`` and below
    ``incentive_engines`` / ``incentive_services``. The kernel never
    imports from this package.

Failure modes:
    - ``MissingSchemeError``, ``InvalidSchemeDateError``,
      ``BaseMappingError`` -- structural problems found while parsing.
    - ``RuleDefinitionError`` -- a typed rule, tier, adjustment, or split
      value that does not parse.
"""

from incentive_config.compiler import (
    AgentQualificationRule,
    BoundCondition,
    CompiledAdjustment,
    CompiledScheme,
    SkippedRule,
    compile_scheme,
)
from incentive_config.fields import resolve_field_map
from incentive_config.loader import (
    compute_checksum,
    load_scheme_data,
    load_scheme_file,
    parse_scheme,
)
from incentive_config.schema import SchemeDefinition
from incentive_config.validator import SchemeValidationResult, validate_scheme

__all__ = [
    "AgentQualificationRule",
    "BoundCondition",
    "CompiledAdjustment",
    "CompiledScheme",
    "SkippedRule",
    "compile_scheme",
    "resolve_field_map",
    "compute_checksum",
    "load_scheme_data",
    "load_scheme_file",
    "parse_scheme",
    "SchemeDefinition",
    "SchemeValidationResult",
    "validate_scheme",
]
