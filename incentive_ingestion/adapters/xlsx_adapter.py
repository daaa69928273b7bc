"""
XLSX dataset adapter for spreadsheet exports (sales orders, hierarchy sheets).

Options:
  - sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
  - skip_rows: rows to skip at the top of the sheet before the header row.

The first remaining row is the header. Blank header cells become
``Column_<n>``; duplicate headers are suffixed ``_1``, ``_2``. Fully empty
rows are skipped. Cell values keep their spreadsheet types, except that
whole-number floats become ints, dates become ``YYYY-MM-DD`` strings, and
strings are trimmed.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator, Mapping

import openpyxl


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _header_names(cells: tuple[Any, ...]) -> list[str]:
    headers: list[str] = []
    for index, value in enumerate(cells):
        key = re.sub(r"\s+", " ", str(value)).strip() if value is not None else ""
        key = key or f"Column_{index + 1}"
        base, count = key, 0
        while key in headers:
            count += 1
            key = f"{base}_{count}"
        headers.append(key)
    return headers


class XlsxDatasetAdapter:
    """Read .xlsx workbooks as one dict per sheet row."""

    def read(
        self,
        source_path: Path,
        options: Mapping[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        options = options or {}
        skip_rows = int(options.get("skip_rows", 0))

        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options.get("sheet"))
            rows = sheet.iter_rows(min_row=1 + skip_rows, values_only=True)
            header = next(rows, None)
            if header is None:
                return
            headers = _header_names(header)
            for row in rows:
                values = [_cell_value(v) for v in row[: len(headers)]]
                if not any(v != "" for v in values):
                    continue
                values.extend([""] * (len(headers) - len(values)))
                yield dict(zip(headers, values))
        finally:
            wb.close()

    @staticmethod
    def _get_sheet(wb: Any, sheet_ref: Any) -> Any:
        if sheet_ref is None:
            return wb.active
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]
