"""Column mapping model: which CSV column plays which role."""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any, Optional

# camelCase keys used by saved mappings, mapped to field names
_KEY_ALIASES = {
    "dateFormat": "date_format",
    "currencyFixed": "currency_fixed",
    "accountFixed": "account_fixed",
}


@dataclass
class ColumnMapping:
    """Declaration of CSV column roles plus parsing hints.

    Attributes:
        date: Header of the date column (required).
        amount: Header of the amount column (required).
        merchant: Header of the merchant/details column.
        note: Header of the note column.
        category: Header of a pre-set category column.
        currency: Header of a currency column.
        type: Header of a debit/credit indicator column.
        date_format: Explicit date format such as ``DD/MM/YYYY``.
        currency_fixed: Currency used when there is no currency column value.
        account: Header of an account/card column.
        account_fixed: Account tag used when there is no account column value.
        template: Name of the template this mapping came from, if any.
    """

    date: str
    amount: str
    merchant: Optional[str] = None
    note: Optional[str] = None
    category: Optional[str] = None
    currency: Optional[str] = None
    type: Optional[str] = None
    date_format: Optional[str] = None
    currency_fixed: Optional[str] = None
    account: Optional[str] = None
    account_fixed: Optional[str] = None
    template: Optional[str] = None

    def matches_headers(self, headers: Iterable[str]) -> bool:
        """Check that the required date and amount columns exist."""
        present = {h.strip() for h in headers}
        return self.date in present and self.amount in present

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ColumnMapping":
        """Create a mapping from a dict with snake_case or camelCase keys.

        Raises:
            ValueError: If ``date`` or ``amount`` is missing.
        """
        values = {_KEY_ALIASES.get(k, k): v for k, v in data.items()}
        if not values.get("date") or not values.get("amount"):
            raise ValueError("Column mapping requires 'date' and 'amount'")
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: str(v) for k, v in values.items() if k in known and v is not None})
