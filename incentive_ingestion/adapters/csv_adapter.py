"""
CSV dataset adapter.

Uses csv.DictReader. Configurable: delimiter, encoding, skip_rows. Handles
a BOM via utf-8-sig when the encoding is utf-8 (spreadsheet exports often
carry one, and it would otherwise end up in the first column name).
Every value is read as a string; the engines parse numbers and dates.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator, Mapping


def _get_encoding(options: Mapping[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"
    return enc


class CsvDatasetAdapter:
    """Read CSV files with a header row as one dict per row."""

    def __init__(self, delimiter: str = ","):
        self._delimiter = delimiter

    def read(
        self,
        source_path: Path,
        options: Mapping[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        options = options or {}
        encoding = _get_encoding(options)
        delimiter = options.get("delimiter", self._delimiter)
        skip_rows = int(options.get("skip_rows", 0))

        with source_path.open("r", encoding=encoding, newline="") as f:
            for _ in range(skip_rows):
                next(f, None)
            reader = csv.DictReader(f, delimiter=delimiter)
            for row in reader:
                # Short rows leave trailing columns as None; long rows put the
                # overflow under the None key.
                yield {k: v for k, v in row.items() if k is not None}
