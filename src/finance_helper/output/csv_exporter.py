"""CSV exporter for transactions and spending aggregates."""

import csv
from pathlib import Path
from typing import Sequence

from finance_helper.config import Config
from finance_helper.models.report import SpendingReport
from finance_helper.models.transaction import Transaction
from finance_helper.processing.categorizer import UNCATEGORIZED
from finance_helper.utils.logging_config import get_logger
from finance_helper.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)

TRANSACTION_HEADERS = [
    "Date", "Amount", "Currency", "Merchant", "Canonical Merchant",
    "Category", "Flow", "Account", "Note", "ID",
]


class CSVExporter:
    """Exports transactions and report aggregates to CSV files.

    Creates in the output directory:
    - transactions.csv
    - summary.csv
    - categories.csv
    - accounts.csv
    - merchants.csv
    - monthly.csv
    """

    def __init__(self, config: Config):
        """Initialize CSV exporter.

        Args:
            config: Application configuration.
        """
        self.config = config

    def export(
        self,
        output_dir: Path,
        transactions: Sequence[Transaction],
        report: SpendingReport,
    ) -> list[Path]:
        """Export the collection and its report.

        Args:
            output_dir: Directory for the CSV files (created if missing).
            transactions: Transactions to list.
            report: Pre-computed aggregates.

        Returns:
            List of paths to created CSV files.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        created = [
            self.export_transactions(output_dir / "transactions.csv", transactions),
            self._export_summary(output_dir / "summary.csv", report),
            self._export_named(output_dir / "categories.csv", "Category", report.by_category),
            self._export_named(output_dir / "accounts.csv", "Account", report.by_account),
            self._export_named(output_dir / "merchants.csv", "Merchant", report.top_merchants),
            self._export_monthly(output_dir / "monthly.csv", report),
        ]
        logger.info(f"Exported {len(created)} CSV files to {output_dir}")
        return created

    def export_transactions(self, output_path: Path, transactions: Sequence[Transaction]) -> Path:
        """Write one row per transaction, ordered by date.

        Args:
            output_path: Destination file.
            transactions: Transactions to write.

        Returns:
            Path to created file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(TRANSACTION_HEADERS)
            for txn in sorted(transactions, key=lambda t: (t.date, t.merchant or "")):
                writer.writerow([
                    txn.date.isoformat(),
                    f"{txn.amount:.2f}",
                    txn.currency,
                    sanitize_for_csv(txn.merchant) or "",
                    sanitize_for_csv(txn.merchant_norm) or "",
                    sanitize_for_csv(txn.category) or UNCATEGORIZED,
                    txn.effective_flow.value,
                    sanitize_for_csv(txn.account) or "",
                    sanitize_for_csv(txn.note) or "",
                    txn.id,
                ])

        logger.info(f"Exported {len(transactions)} transactions to {output_path}")
        return output_path

    def _export_summary(self, output_path: Path, report: SpendingReport) -> Path:
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["REPORT SUMMARY", ""])
            writer.writerow(["Month", report.month or "All"])
            writer.writerow(["View", report.view.value])
            writer.writerow(["Transactions", report.transaction_count])
            writer.writerow([])
            writer.writerow(["Total Income", f"{report.totals.income:.2f}"])
            writer.writerow(["Total Expenses", f"{report.totals.expense:.2f}"])
            writer.writerow(["Net", f"{report.totals.net:.2f}"])
        return output_path

    def _export_named(self, output_path: Path, label: str, rows: list) -> Path:
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([label, "Amount"])
            for row in rows:
                writer.writerow([sanitize_for_csv(row.name), f"{row.value:.2f}"])
        return output_path

    def _export_monthly(self, output_path: Path, report: SpendingReport) -> Path:
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Month", "Income", "Expense", "Net"])
            for month in report.monthly:
                writer.writerow([
                    month.month,
                    f"{month.income:.2f}",
                    f"{month.expense:.2f}",
                    f"{month.net:.2f}",
                ])
        return output_path
