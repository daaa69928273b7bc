"""Tests for dataset adapters and load_datasets."""

import json
from datetime import datetime

import openpyxl
import pytest

from incentive_ingestion.adapters import (
    CsvDatasetAdapter,
    DatasetAdapter,
    JsonDatasetAdapter,
    XlsxDatasetAdapter,
    adapter_for,
    load_datasets,
    read_dataset,
)
from incentive_kernel.exceptions import UnsupportedDatasetFormatError


class TestCsvDatasetAdapter:
    """CSV adapter: header row, delimiter, BOM, skip_rows."""

    def test_read_with_header_yields_dicts(self, tmp_path):
        path = tmp_path / "SCH1.csv"
        path.write_text("Sales Employee,Net Value\n101,50000\n102,90000\n", encoding="utf-8")

        rows = list(CsvDatasetAdapter().read(path))
        assert rows == [
            {"Sales Employee": "101", "Net Value": "50000"},
            {"Sales Employee": "102", "Net Value": "90000"},
        ]

    def test_bom_stripped_from_first_column(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeffAgent,Amount\n1,2\n".encode("utf-8"))

        rows = list(CsvDatasetAdapter().read(path))
        assert rows == [{"Agent": "1", "Amount": "2"}]

    def test_skip_rows(self, tmp_path):
        path = tmp_path / "report.csv"
        path.write_text("Exported 2024-12-31\n\nh1,h2\n1,2\n", encoding="utf-8")

        rows = list(CsvDatasetAdapter().read(path, {"skip_rows": 2}))
        assert rows == [{"h1": "1", "h2": "2"}]

    def test_custom_delimiter(self, tmp_path):
        path = tmp_path / "semi.csv"
        path.write_text("a;b\n1;2\n", encoding="utf-8")

        rows = list(CsvDatasetAdapter().read(path, {"delimiter": ";"}))
        assert rows == [{"a": "1", "b": "2"}]

    def test_overflow_columns_dropped(self, tmp_path):
        path = tmp_path / "long.csv"
        path.write_text("a,b\n1,2,3\n", encoding="utf-8")

        assert list(CsvDatasetAdapter().read(path)) == [{"a": "1", "b": "2"}]

    def test_short_row_leaves_none(self, tmp_path):
        path = tmp_path / "short.csv"
        path.write_text("a,b\n1\n", encoding="utf-8")

        assert list(CsvDatasetAdapter().read(path)) == [{"a": "1", "b": None}]


class TestJsonDatasetAdapter:
    """JSON adapter: array, jsonl, json_path."""

    def test_read_array(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text('[{"x": 1}, {"x": 2, "y": "z"}]', encoding="utf-8")

        assert list(JsonDatasetAdapter().read(path)) == [{"x": 1}, {"x": 2, "y": "z"}]

    def test_keys_keep_their_case(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text('[{"Net Value": 1}]', encoding="utf-8")

        assert list(JsonDatasetAdapter().read(path)) == [{"Net Value": 1}]

    def test_non_object_items_skipped(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text('[{"x": 1}, 2, "three", null]', encoding="utf-8")

        assert list(JsonDatasetAdapter().read(path)) == [{"x": 1}]

    def test_json_path(self, tmp_path):
        path = tmp_path / "nested.json"
        path.write_text(json.dumps({"data": {"records": [{"a": 1}]}}), encoding="utf-8")

        rows = list(JsonDatasetAdapter().read(path, {"json_path": "data.records"}))
        assert rows == [{"a": 1}]

    def test_root_not_an_array(self, tmp_path, captured_logs):
        path = tmp_path / "object.json"
        path.write_text('{"a": 1}', encoding="utf-8")

        assert list(JsonDatasetAdapter().read(path)) == []
        assert any(r["message"] == "json_dataset_not_an_array" for r in captured_logs())

    def test_jsonl(self, tmp_path):
        path = tmp_path / "rows.jsonl"
        path.write_text('{"a": 1}\n\n{"a": 2}\n[3]\n', encoding="utf-8")

        rows = list(JsonDatasetAdapter(fmt="jsonl").read(path))
        assert rows == [{"a": 1}, {"a": 2}]


class TestXlsxDatasetAdapter:
    """XLSX adapter: header row, sheet selection, cell normalization."""

    def _write(self, path, rows, title=None):
        wb = openpyxl.Workbook()
        sheet = wb.active
        if title:
            sheet.title = title
        for row in rows:
            sheet.append(row)
        wb.save(path)
        return path

    def test_read_with_header_yields_dicts(self, tmp_path):
        path = self._write(tmp_path / "SCH1.xlsx", [
            ["Sales Employee", "Net Value", "Document Date"],
            ["101", 50000.0, datetime(2024, 12, 5)],
            [" 102 ", 1234.5, "2024-12-10"],
        ])

        rows = list(XlsxDatasetAdapter().read(path))
        assert rows == [
            {"Sales Employee": "101", "Net Value": 50000, "Document Date": "2024-12-05"},
            {"Sales Employee": "102", "Net Value": 1234.5, "Document Date": "2024-12-10"},
        ]

    def test_empty_rows_skipped_and_short_rows_padded(self, tmp_path):
        path = self._write(tmp_path / "gaps.xlsx", [
            ["a", "b"],
            [None, None],
            ["1"],
        ])

        assert list(XlsxDatasetAdapter().read(path)) == [{"a": "1", "b": ""}]

    def test_blank_and_duplicate_headers(self, tmp_path):
        path = self._write(tmp_path / "headers.xlsx", [
            ["Level", None, "Level"],
            ["L1", "x", "L2"],
        ])

        rows = list(XlsxDatasetAdapter().read(path))
        assert rows == [{"Level": "L1", "Column_2": "x", "Level_1": "L2"}]

    def test_sheet_by_name_and_skip_rows(self, tmp_path):
        wb = openpyxl.Workbook()
        wb.active.append(["ignored"])
        sheet = wb.create_sheet("Hierarchy")
        sheet.append(["Exported 2024-12-31"])
        sheet.append(["AgentID", "ManagerID"])
        sheet.append(["101", "MGR_A"])
        path = tmp_path / "book.xlsx"
        wb.save(path)

        rows = list(XlsxDatasetAdapter().read(path, {"sheet": "Hierarchy", "skip_rows": 1}))
        assert rows == [{"AgentID": "101", "ManagerID": "MGR_A"}]

    def test_empty_sheet(self, tmp_path):
        path = tmp_path / "empty.xlsx"
        openpyxl.Workbook().save(path)

        assert list(XlsxDatasetAdapter().read(path)) == []


class TestAdapterSelection:

    @pytest.mark.parametrize("name,adapter_type", [
        ("data.csv", CsvDatasetAdapter),
        ("DATA.CSV", CsvDatasetAdapter),
        ("data.tsv", CsvDatasetAdapter),
        ("data.json", JsonDatasetAdapter),
        ("data.jsonl", JsonDatasetAdapter),
        ("data.ndjson", JsonDatasetAdapter),
        ("data.xlsx", XlsxDatasetAdapter),
    ])
    def test_by_extension(self, tmp_path, name, adapter_type):
        adapter = adapter_for(tmp_path / name)
        assert isinstance(adapter, adapter_type)
        assert isinstance(adapter, DatasetAdapter)

    @pytest.mark.parametrize("name", ["data.parquet", "data"])
    def test_unsupported(self, tmp_path, name):
        with pytest.raises(UnsupportedDatasetFormatError):
            adapter_for(tmp_path / name)

    def test_tsv(self, tmp_path):
        path = tmp_path / "data.tsv"
        path.write_text("a\tb\n1\t2\n", encoding="utf-8")
        assert read_dataset(path) == [{"a": "1", "b": "2"}]


class TestLoadDatasets:

    def test_keyed_by_file_name(self, tmp_path):
        base = tmp_path / "SCH1_Example.csv"
        base.write_text("Agent\n101\n", encoding="utf-8")
        hierarchy = tmp_path / "MH.json"
        hierarchy.write_text('[{"AgentID": "101"}]', encoding="utf-8")

        datasets = load_datasets([base, str(hierarchy)])
        assert datasets == {
            "SCH1_Example.csv": [{"Agent": "101"}],
            "MH.json": [{"AgentID": "101"}],
        }

    def test_repeated_name_keeps_last(self, tmp_path, captured_logs):
        first = tmp_path / "a" / "data.csv"
        second = tmp_path / "b" / "data.csv"
        for path, value in ((first, "1"), (second, "2")):
            path.parent.mkdir()
            path.write_text(f"x\n{value}\n", encoding="utf-8")

        assert load_datasets([first, second]) == {"data.csv": [{"x": "2"}]}
        assert any(r["message"] == "dataset_name_repeated" for r in captured_logs())

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_datasets([tmp_path / "absent.csv"])
