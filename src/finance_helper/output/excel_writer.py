"""Excel workbook writer for spending reports."""

from pathlib import Path
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from finance_helper.config import Config
from finance_helper.models.report import NamedAmount, SpendingReport
from finance_helper.models.transaction import Transaction
from finance_helper.processing.categorizer import UNCATEGORIZED
from finance_helper.utils.logging_config import get_logger
from finance_helper.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)


class ExcelWriter:
    """Writes a spending report to a multi-sheet Excel workbook.

    Generates sheets:
    - Summary
    - Transactions
    - Categories
    - Monthly
    """

    def __init__(self, config: Config):
        """Initialize Excel writer.

        Args:
            config: Application configuration.
        """
        self.config = config

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.money_positive = Font(color="006600")
        self.money_negative = Font(color="CC0000")
        self.right_aligned = Alignment(horizontal="right")

    def write(
        self,
        output_path: Path,
        transactions: Sequence[Transaction],
        report: SpendingReport,
    ) -> None:
        """Write all data to an Excel workbook.

        Args:
            output_path: Path for output file.
            transactions: Transactions for the Transactions sheet.
            report: Pre-computed aggregates.
        """
        logger.info(f"Writing Excel workbook to {output_path}")

        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        self._create_summary(wb, report)
        self._create_transactions(wb, transactions)
        self._create_named_sheet(wb, "Categories", "Category", report.by_category)
        self._create_monthly(wb, report)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Excel workbook saved: {output_path}")

    def _write_headers(self, ws, headers: list[str], row: int = 1) -> None:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill

    def _create_summary(self, wb: Workbook, report: SpendingReport) -> None:
        ws = wb.create_sheet("Summary")

        ws.cell(row=1, column=1, value="Spending Report").font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value="Month")
        ws.cell(row=2, column=2, value=report.month or "All")
        ws.cell(row=3, column=1, value="View")
        ws.cell(row=3, column=2, value=report.view.value)
        ws.cell(row=4, column=1, value="Transactions")
        ws.cell(row=4, column=2, value=report.transaction_count)

        totals = [
            ("Total Income", report.totals.income),
            ("Total Expenses", report.totals.expense),
            ("Net", report.totals.net),
        ]
        for offset, (label, value) in enumerate(totals):
            row = 6 + offset
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            cell = ws.cell(row=row, column=2, value=float(value))
            cell.number_format = self._money_format()

        row = 10
        ws.cell(row=row, column=1, value="Top Merchants").font = Font(bold=True, size=12)
        self._write_headers(ws, ["Merchant", "Amount"], row=row + 1)
        for index, merchant in enumerate(report.top_merchants, row + 2):
            ws.cell(row=index, column=1, value=sanitize_for_csv(merchant.name))
            ws.cell(row=index, column=2, value=float(merchant.value)).number_format = (
                self._money_format()
            )

        row = row + len(report.top_merchants) + 4
        ws.cell(row=row, column=1, value="Accounts").font = Font(bold=True, size=12)
        self._write_headers(ws, ["Account", "Net Amount"], row=row + 1)
        for index, account in enumerate(report.by_account, row + 2):
            ws.cell(row=index, column=1, value=sanitize_for_csv(account.name))
            cell = ws.cell(row=index, column=2, value=float(account.value))
            cell.number_format = self._money_format()
            cell.font = self.money_negative if account.value < 0 else self.money_positive

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 16

    def _create_transactions(self, wb: Workbook, transactions: Sequence[Transaction]) -> None:
        ws = wb.create_sheet("Transactions")
        headers = [
            "Date", "Merchant", "Canonical Merchant", "Category", "Flow",
            "Amount", "Currency", "Account", "Note",
        ]
        self._write_headers(ws, headers)

        ordered = sorted(transactions, key=lambda t: (t.date, t.merchant or ""))
        for row, txn in enumerate(ordered, 2):
            ws.cell(row=row, column=1, value=txn.date).number_format = "YYYY-MM-DD"
            ws.cell(row=row, column=2, value=sanitize_for_csv(txn.merchant))
            ws.cell(row=row, column=3, value=sanitize_for_csv(txn.merchant_norm))
            ws.cell(row=row, column=4, value=sanitize_for_csv(txn.category) or UNCATEGORIZED)
            ws.cell(row=row, column=5, value=txn.effective_flow.value)

            amount_cell = ws.cell(row=row, column=6, value=float(txn.amount))
            amount_cell.number_format = self._money_format()
            amount_cell.font = self.money_negative if txn.amount < 0 else self.money_positive

            ws.cell(row=row, column=7, value=txn.currency)
            ws.cell(row=row, column=8, value=sanitize_for_csv(txn.account))
            ws.cell(row=row, column=9, value=sanitize_for_csv(txn.note))

        widths = [12, 36, 24, 18, 10, 14, 9, 16, 40]
        for col, width in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width
        ws.freeze_panes = "A2"

    def _create_named_sheet(
        self, wb: Workbook, title: str, label: str, rows: list[NamedAmount]
    ) -> None:
        ws = wb.create_sheet(title)
        self._write_headers(ws, [label, "Amount"])
        for row, item in enumerate(rows, 2):
            ws.cell(row=row, column=1, value=sanitize_for_csv(item.name))
            cell = ws.cell(row=row, column=2, value=float(item.value))
            cell.number_format = self._money_format()
            cell.alignment = self.right_aligned

        ws.column_dimensions["A"].width = 25
        ws.column_dimensions["B"].width = 16

    def _create_monthly(self, wb: Workbook, report: SpendingReport) -> None:
        ws = wb.create_sheet("Monthly")
        if not report.monthly:
            ws.cell(row=1, column=1, value="No transaction data")
            return

        self._write_headers(ws, ["Month", "Income", "Expense", "Net"])
        for row, month in enumerate(report.monthly, 2):
            ws.cell(row=row, column=1, value=month.month)
            for col, value in enumerate((month.income, month.expense, month.net), 2):
                ws.cell(row=row, column=col, value=float(value)).number_format = (
                    self._money_format()
                )

        ws.column_dimensions["A"].width = 12
        for col in range(2, 5):
            ws.column_dimensions[get_column_letter(col)].width = 14
        ws.freeze_panes = "A2"

    def _money_format(self) -> str:
        """Get number format for money values.

        Returns:
            Excel number format string.
        """
        symbol = self.config.report.currency_symbol
        return f'{symbol}#,##0.00_);[Red]({symbol}#,##0.00)'
