"""Tests for CSV and Excel report output."""

import csv
from datetime import date
from decimal import Decimal
from pathlib import Path

from openpyxl import load_workbook

from finance_helper.config import Config
from finance_helper.models.transaction import Flow, Transaction
from finance_helper.output.csv_exporter import CSVExporter, TRANSACTION_HEADERS
from finance_helper.output.excel_writer import ExcelWriter
from finance_helper.processing.report_generator import generate_report


def create_transactions() -> list[Transaction]:
    """Helper to create a small enriched collection."""
    return [
        Transaction(
            id="a", date=date(2024, 3, 15), amount=Decimal("-45.00"),
            merchant="PAK N SAVE AUCKLAND", merchant_norm="Pak N Save",
            category="Groceries", account="1234", currency="NZD", flow=Flow.EXPENSE,
        ),
        Transaction(
            id="b", date=date(2024, 3, 28), amount=Decimal("2500.00"),
            merchant="ACME LTD", category="Salary", account="debit card",
            currency="NZD", flow=Flow.INCOME,
        ),
        Transaction(
            id="c", date=date(2024, 2, 2), amount=Decimal("-12.50"),
            merchant="=HYPERLINK(\"x\")", account="1234", currency="NZD", flow=Flow.EXPENSE,
        ),
    ]


def read_rows(path: Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestCSVExporter:
    """Tests for CSVExporter."""

    def test_creates_all_files(self, tmp_path: Path) -> None:
        transactions = create_transactions()
        report = generate_report(transactions)

        created = CSVExporter(Config()).export(tmp_path / "out", transactions, report)

        assert sorted(p.name for p in created) == [
            "accounts.csv", "categories.csv", "merchants.csv",
            "monthly.csv", "summary.csv", "transactions.csv",
        ]
        assert all(p.exists() for p in created)

    def test_transactions_sorted_and_sanitized(self, tmp_path: Path) -> None:
        path = CSVExporter(Config()).export_transactions(
            tmp_path / "transactions.csv", create_transactions()
        )

        rows = read_rows(path)
        assert rows[0] == TRANSACTION_HEADERS
        assert [row[0] for row in rows[1:]] == ["2024-02-02", "2024-03-15", "2024-03-28"]
        assert rows[1][3].startswith("'=")
        assert rows[1][5] == "Uncategorized"
        assert rows[2][1] == "-45.00"
        assert rows[2][4] == "Pak N Save"
        assert rows[2][6] == "expense"

    def test_monthly_rollup(self, tmp_path: Path) -> None:
        transactions = create_transactions()
        CSVExporter(Config()).export(tmp_path, transactions, generate_report(transactions))

        rows = read_rows(tmp_path / "monthly.csv")
        assert rows == [
            ["Month", "Income", "Expense", "Net"],
            ["2024-02", "0.00", "12.50", "-12.50"],
            ["2024-03", "2500.00", "45.00", "2455.00"],
        ]

    def test_summary_for_month(self, tmp_path: Path) -> None:
        transactions = create_transactions()
        report = generate_report(transactions, month="2024-03")
        CSVExporter(Config()).export(tmp_path, transactions, report)

        rows = read_rows(tmp_path / "summary.csv")
        assert ["Month", "2024-03"] in rows
        assert ["Total Income", "2500.00"] in rows
        assert ["Total Expenses", "45.00"] in rows


class TestExcelWriter:
    """Tests for ExcelWriter."""

    def test_writes_workbook(self, tmp_path: Path) -> None:
        transactions = create_transactions()
        path = tmp_path / "reports" / "report.xlsx"

        ExcelWriter(Config()).write(path, transactions, generate_report(transactions))

        workbook = load_workbook(path)
        assert workbook.sheetnames == ["Summary", "Transactions", "Categories", "Monthly"]

        sheet = workbook["Transactions"]
        assert sheet.cell(row=1, column=1).value == "Date"
        assert sheet.max_row == 4
        assert sheet.cell(row=3, column=3).value == "Pak N Save"
        assert sheet.cell(row=3, column=6).value == -45.0

        monthly = workbook["Monthly"]
        assert monthly.cell(row=2, column=1).value == "2024-02"

    def test_empty_collection(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.xlsx"
        ExcelWriter(Config()).write(path, [], generate_report([]))

        workbook = load_workbook(path)
        assert workbook["Monthly"].cell(row=1, column=1).value == "No transaction data"
