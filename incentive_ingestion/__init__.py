"""Dataset ingestion: read uploaded CSV, JSON and XLSX files into rows for a scheme run."""

from incentive_ingestion.adapters import load_datasets

__all__ = ["load_datasets"]
