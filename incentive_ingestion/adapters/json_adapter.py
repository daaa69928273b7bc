"""
JSON dataset adapter.

Handles a JSON array (``[{...}, {...}]``) and JSON Lines (one object per
line). ``json_path`` selects a nested array (e.g. ``"data.records"``).
Items that are not objects are skipped. Values keep their JSON types.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, Mapping

from incentive_kernel.logging_config import get_logger

logger = get_logger("ingestion.json_adapter")


def _get_nested(data: Any, path: str) -> Any:
    """Follow a dot-separated path into dicts/lists. Returns None if missing."""
    for key in path.split("."):
        key = key.strip()
        if not key:
            continue
        if isinstance(data, list):
            try:
                data = data[int(key)]
            except (ValueError, IndexError):
                return None
        elif isinstance(data, dict) and key in data:
            data = data[key]
        else:
            return None
    return data


class JsonDatasetAdapter:
    """Read JSON array or JSON Lines files as one dict per record."""

    def __init__(self, fmt: str = "array"):
        self._format = fmt

    def read(
        self,
        source_path: Path,
        options: Mapping[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        options = options or {}
        fmt = options.get("format", self._format)
        encoding = options.get("encoding", "utf-8")

        if fmt == "jsonl":
            with source_path.open("r", encoding=encoding) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    item = json.loads(line)
                    if isinstance(item, dict):
                        yield item
            return

        with source_path.open("r", encoding=encoding) as f:
            data = json.load(f)
        json_path = options.get("json_path")
        root = _get_nested(data, json_path) if json_path else data
        if not isinstance(root, list):
            logger.warning("json_dataset_not_an_array", extra={
                "path": str(source_path),
                "json_path": json_path,
            })
            return
        for item in root:
            if isinstance(item, dict):
                yield item
