"""Report-ready exports of transactions and aggregates."""

from finance_helper.output.csv_exporter import CSVExporter
from finance_helper.output.excel_writer import ExcelWriter

__all__ = ["CSVExporter", "ExcelWriter"]
