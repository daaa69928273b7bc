"""
Typed exception hierarchy for the incentive engine.

Only configuration and input-shape problems are fatal. Everything that can
go wrong inside a single record, rule, or hierarchy row is recoverable and
is reported through logging or the rule hit log instead of an exception.

Every exception carries a ``code`` class attribute (machine-readable) and
stores its context as attributes, so callers catch by type and read
structured data rather than parsing messages.

    IncentiveEngineError (base)
    |
    +-- ConfigurationError
    |   +-- MissingSchemeError
    |   +-- BaseMappingError
    |   +-- InvalidSchemeDateError
    |   +-- InvalidRunDateError
    |   +-- RuleDefinitionError
    |
    +-- DatasetError
        +-- InvalidDatasetsError
        +-- BaseDatasetNotFoundError
        +-- UnsupportedDatasetFormatError

Category        | Code                        | When Raised
----------------|-----------------------------|---------------------------------
Configuration   | MISSING_SCHEME              | Scheme absent or not a mapping
                | BASE_MAPPING_INVALID        | baseMapping missing required keys
                | INVALID_SCHEME_DATE         | effectiveFrom is not YYYY-MM-DD
                | INVALID_RUN_DATE            | run-as-of is not YYYY-MM-DD
                | RULE_DEFINITION_INVALID     | Typed rule/tier/split value malformed
----------------|-----------------------------|---------------------------------
Dataset         | INVALID_DATASETS            | Datasets argument not a mapping
                | BASE_DATASET_NOT_FOUND      | Base file absent or not a list
                | UNSUPPORTED_DATASET_FORMAT  | Dataset file type has no adapter
"""

from __future__ import annotations

from typing import Any


class IncentiveEngineError(Exception):
    """Base exception for all incentive engine errors."""

    code: str = "INCENTIVE_ENGINE_ERROR"


# Configuration exceptions


class ConfigurationError(IncentiveEngineError):
    """Base exception for scheme / run configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class MissingSchemeError(ConfigurationError):
    """The scheme definition is missing or is not a mapping."""

    code: str = "MISSING_SCHEME"

    def __init__(self, received_type: str):
        self.received_type = received_type
        super().__init__(
            f"Invalid or missing 'scheme' object (received {received_type})."
        )


class BaseMappingError(ConfigurationError):
    """The scheme's baseMapping lacks one or more required fields."""

    code: str = "BASE_MAPPING_INVALID"

    REQUIRED_FIELDS = (
        "sourceFile",
        "agentField",
        "amountField",
        "transactionDateField",
    )

    def __init__(self, missing_fields: tuple[str, ...]):
        self.missing_fields = missing_fields
        super().__init__(
            "Scheme baseMapping is missing required fields: "
            f"{', '.join(missing_fields)}."
        )


class InvalidSchemeDateError(ConfigurationError):
    """A scheme date field is not an ISO calendar date."""

    code: str = "INVALID_SCHEME_DATE"

    def __init__(self, field_name: str, value: Any):
        self.field_name = field_name
        self.value = value
        super().__init__(
            f'Invalid scheme.{field_name} date: "{value}". Use YYYY-MM-DD.'
        )


class InvalidRunDateError(ConfigurationError):
    """The run-as-of date is missing or not an ISO calendar date."""

    code: str = "INVALID_RUN_DATE"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f'Invalid runAsOfDate format: "{value}". Use YYYY-MM-DD.')


# Dataset exceptions


class DatasetError(IncentiveEngineError):
    """Base exception for uploaded dataset errors."""

    code: str = "DATASET_ERROR"


class InvalidDatasetsError(DatasetError):
    """The datasets argument is missing or is not a mapping of name to rows."""

    code: str = "INVALID_DATASETS"

    def __init__(self, received_type: str):
        self.received_type = received_type
        super().__init__(
            f"Invalid or missing datasets mapping (received {received_type})."
        )


class BaseDatasetNotFoundError(DatasetError):
    """The base dataset named by baseMapping.sourceFile is absent or not a sequence."""

    code: str = "BASE_DATASET_NOT_FOUND"

    def __init__(self, source_file: str):
        self.source_file = source_file
        super().__init__(
            f'Base data file "{source_file}" not found or is not a sequence of records.'
        )


class RuleDefinitionError(ConfigurationError):
    """A rule, tier, or split carries a value that cannot be parsed as its declared type."""

    code: str = "RULE_DEFINITION_INVALID"

    def __init__(self, rule_id: str, field_name: str, value: Any, reason: str):
        self.rule_id = rule_id
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(
            f"Rule {rule_id!r} has an invalid {field_name} value {value!r}: {reason}"
        )


class UnsupportedDatasetFormatError(DatasetError):
    """A dataset file has an extension no adapter reads."""

    code: str = "UNSUPPORTED_DATASET_FORMAT"

    def __init__(self, path: str, suffix: str):
        self.path = path
        self.suffix = suffix
        super().__init__(
            f'Cannot read dataset "{path}": unsupported file type "{suffix or "(none)"}".'
        )
