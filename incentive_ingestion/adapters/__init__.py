"""
Dataset adapters (file I/O only).

``load_datasets`` reads a set of files into the ``{file name: rows}``
mapping a scheme run expects, choosing the adapter by file extension.
Datasets are keyed by bare file name because schemes name their base and
hierarchy files that way (``baseMapping.sourceFile``,
``creditHierarchyFile``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

from incentive_ingestion.adapters.base import DatasetAdapter
from incentive_ingestion.adapters.csv_adapter import CsvDatasetAdapter
from incentive_ingestion.adapters.json_adapter import JsonDatasetAdapter
from incentive_ingestion.adapters.xlsx_adapter import XlsxDatasetAdapter
from incentive_kernel.exceptions import UnsupportedDatasetFormatError
from incentive_kernel.logging_config import get_logger

logger = get_logger("ingestion.adapters")

ADAPTERS: dict[str, DatasetAdapter] = {
    ".csv": CsvDatasetAdapter(),
    ".tsv": CsvDatasetAdapter(delimiter="\t"),
    ".json": JsonDatasetAdapter(),
    ".jsonl": JsonDatasetAdapter(fmt="jsonl"),
    ".ndjson": JsonDatasetAdapter(fmt="jsonl"),
    ".xlsx": XlsxDatasetAdapter(),
}


def adapter_for(path: Path) -> DatasetAdapter:
    suffix = path.suffix.lower()
    adapter = ADAPTERS.get(suffix)
    if adapter is None:
        raise UnsupportedDatasetFormatError(str(path), suffix)
    return adapter


def read_dataset(
    path: Path | str,
    options: Mapping[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Read one file fully into a list of row dicts."""
    path = Path(path)
    rows = list(adapter_for(path).read(path, options))
    logger.info("dataset_loaded", extra={"path": str(path), "row_count": len(rows)})
    return rows


def load_datasets(paths: Iterable[Path | str]) -> dict[str, list[dict[str, Any]]]:
    """Read every file, keyed by file name. A repeated name keeps the last file."""
    datasets: dict[str, list[dict[str, Any]]] = {}
    for path in map(Path, paths):
        if path.name in datasets:
            logger.warning("dataset_name_repeated", extra={"dataset": path.name})
        datasets[path.name] = read_dataset(path)
    return datasets


__all__ = [
    "DatasetAdapter",
    "CsvDatasetAdapter",
    "JsonDatasetAdapter",
    "XlsxDatasetAdapter",
    "adapter_for",
    "load_datasets",
    "read_dataset",
]
