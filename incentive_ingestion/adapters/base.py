"""
Dataset adapter protocol.

Contract:
    DatasetAdapter.read() yields one dict per source row (streaming).
    Column names are kept exactly as they appear in the file, because
    scheme field mappings refer to them verbatim.

Architecture: incentive_ingestion/adapters. File I/O only; the engines
never import this package.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Mapping, Protocol, runtime_checkable


@runtime_checkable
class DatasetAdapter(Protocol):
    """Protocol for reading a tabular file into row dicts."""

    def read(
        self,
        source_path: Path,
        options: Mapping[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield one dict per row."""
        ...
