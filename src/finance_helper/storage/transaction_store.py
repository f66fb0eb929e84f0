"""JSON-file persistence of the transaction collection."""

import json
from pathlib import Path

from finance_helper.models.transaction import Transaction
from finance_helper.storage.exchange import FormatError, export_backup, parse_backup
from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)


class TransactionStore:
    """Stores transactions keyed by id in a single JSON file.

    The file uses the backup format, so a store file can be restored
    elsewhere as-is.
    """

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> list[Transaction]:
        """Load all stored transactions ordered by date.

        Returns:
            Transactions, oldest first; empty when nothing is stored.

        Raises:
            FormatError: If the store file is corrupt.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise FormatError(f"Transaction store {self.path} is not valid JSON: {e}") from e

        transactions = parse_backup(payload)
        transactions.sort(key=lambda t: t.date)
        logger.debug(f"Loaded {len(transactions)} transactions from {self.path}")
        return transactions

    def save(self, transactions: list[Transaction]) -> None:
        """Bulk-upsert transactions by id.

        Stored records whose id is not in ``transactions`` are kept. Saving
        an empty collection clears the store instead.
        """
        if not transactions:
            self.clear()
            return

        by_id = {txn.id: txn for txn in self.load()}
        for txn in transactions:
            by_id[txn.id] = txn

        self._write(sorted(by_id.values(), key=lambda t: t.date))
        logger.info(f"Saved {len(transactions)} transactions ({len(by_id)} stored)")

    def replace(self, transactions: list[Transaction]) -> None:
        """Overwrite the store with exactly ``transactions``."""
        if not transactions:
            self.clear()
            return
        self._write(sorted(transactions, key=lambda t: t.date))

    def clear(self) -> None:
        """Remove every stored transaction."""
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared transaction store {self.path}")

    def _write(self, transactions: list[Transaction]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(export_backup(transactions), f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)
