"""Row normalizer: converts raw CSV rows into candidate transactions."""

import uuid
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Optional

from finance_helper.models.mapping import ColumnMapping
from finance_helper.models.transaction import DEFAULT_CURRENCY, Transaction
from finance_helper.utils.date_utils import parse_date
from finance_helper.utils.decimal_utils import parse_amount
from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

# Secondary descriptive columns joined into a note when no note column is mapped
DEFAULT_NOTE_FALLBACK_COLUMNS = ("Particulars", "Code", "Reference")

DEBIT_INDICATORS = frozenset({"D", "DR", "DEBIT"})
CREDIT_INDICATORS = frozenset({"C", "CR", "CREDIT"})

RawRow = Mapping[str, Optional[str]]


class RowNormalizer:
    """Turns CSV rows into typed transactions, rejecting malformed rows.

    The normalizer:
    - Requires date and amount text; anything else rejects the row
    - Parses dates strictly when the mapping carries a date format
    - Resolves the amount sign from a debit/credit column when mapped
    - Resolves currency, note, and account with fallbacks
    - Assigns a batch-unique id and keeps the original row for audit

    Category, flow and canonical merchant are left unset for later stages.
    """

    def __init__(
        self,
        default_currency: str = DEFAULT_CURRENCY,
        note_fallback_columns: Sequence[str] = DEFAULT_NOTE_FALLBACK_COLUMNS,
    ):
        """Initialize the normalizer.

        Args:
            default_currency: Currency used when neither a currency column
                value nor a fixed currency is available.
            note_fallback_columns: Columns assembled into a note when no
                note column is mapped or it is empty.
        """
        self.default_currency = default_currency
        self.note_fallback_columns = tuple(note_fallback_columns)

    def normalize_rows(
        self,
        rows: Iterable[RawRow],
        mapping: ColumnMapping,
        source: str = "",
    ) -> list[Transaction]:
        """Normalize a batch of rows, silently dropping malformed ones.

        Args:
            rows: Rows keyed by header.
            mapping: Column mapping for this CSV.
            source: Label for log messages.

        Returns:
            Accepted transactions in row order.
        """
        transactions: list[Transaction] = []
        total = 0
        for row in rows:
            total += 1
            txn = self.normalize_row(row, mapping, len(transactions))
            if txn is not None:
                transactions.append(txn)

        logger.info(
            f"Normalized {len(transactions)}/{total} rows"
            + (f" from {source}" if source else "")
            + f" ({mapping.template or 'custom'} mapping)"
        )
        return transactions

    def normalize_row(
        self,
        row: RawRow,
        mapping: ColumnMapping,
        sequence_index: int,
    ) -> Optional[Transaction]:
        """Normalize one row.

        Args:
            row: Row keyed by header.
            mapping: Column mapping.
            sequence_index: Ordinal of this record within the batch, used in the id.

        Returns:
            Transaction, or None if the row is rejected.
        """
        date_str = row.get(mapping.date)
        amount_str = row.get(mapping.amount)
        if not isinstance(date_str, str) or not isinstance(amount_str, str):
            logger.debug(f"Rejecting row: missing {mapping.date!r} or {mapping.amount!r}")
            return None

        try:
            parsed_date = parse_date(date_str, mapping.date_format)
        except ValueError as e:
            logger.debug(f"Rejecting row: {e}")
            return None

        try:
            amount = parse_amount(amount_str)
        except ValueError as e:
            logger.debug(f"Rejecting row: {e}")
            return None

        amount = self._apply_type_indicator(amount, row, mapping)

        return Transaction(
            id=self._make_id(parsed_date.strftime("%Y%m%d"), sequence_index),
            date=parsed_date,
            amount=amount,
            currency=self._resolve_currency(row, mapping),
            merchant=_cell(row, mapping.merchant),
            category=_cell(row, mapping.category),
            note=self._resolve_note(row, mapping),
            account=_cell(row, mapping.account) or mapping.account_fixed or None,
            raw=dict(row),
        )

    def _apply_type_indicator(
        self, amount: Decimal, row: RawRow, mapping: ColumnMapping
    ) -> Decimal:
        """Force the sign from a debit/credit indicator column, if recognized."""
        if not mapping.type:
            return amount
        indicator = (row.get(mapping.type) or "").strip().upper()
        if indicator in DEBIT_INDICATORS:
            return -abs(amount)
        if indicator in CREDIT_INDICATORS:
            return abs(amount)
        return amount

    def _resolve_currency(self, row: RawRow, mapping: ColumnMapping) -> str:
        return _cell(row, mapping.currency) or mapping.currency_fixed or self.default_currency

    def _resolve_note(self, row: RawRow, mapping: ColumnMapping) -> Optional[str]:
        note = _cell(row, mapping.note)
        if note:
            return note
        parts = [_cell(row, column) for column in self.note_fallback_columns]
        assembled = " ".join(part for part in parts if part).strip()
        return assembled or None

    @staticmethod
    def _make_id(date_prefix: str, sequence_index: int) -> str:
        # Unique within one batch only; cross-import duplicates are found by content
        return f"{date_prefix}-{sequence_index}-{uuid.uuid4().hex[:4]}"


def _cell(row: RawRow, column: Optional[str]) -> Optional[str]:
    """Trimmed cell text, or None when the column is unmapped, missing, or blank."""
    if not column:
        return None
    value = row.get(column)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def normalize_rows(
    rows: Iterable[RawRow],
    mapping: ColumnMapping,
    default_currency: str = DEFAULT_CURRENCY,
) -> list[Transaction]:
    """Convenience function to normalize a batch of rows.

    Args:
        rows: Rows keyed by header.
        mapping: Column mapping.
        default_currency: Last-resort currency code.

    Returns:
        Accepted transactions.
    """
    return RowNormalizer(default_currency).normalize_rows(rows, mapping)
