"""Transaction data model."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from finance_helper.utils.date_utils import parse_iso_date
from finance_helper.utils.decimal_utils import to_decimal

DEFAULT_CURRENCY = "CNY"

# Display fallback when neither a canonical nor a raw merchant name exists
UNKNOWN_MERCHANT = "Unknown merchant"


class Flow(Enum):
    """Money movement classification."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"  # Internal movement, excluded from income/expense totals

    @classmethod
    def parse(cls, value: str) -> "Flow":
        """Parse a stored flow label, including the localized labels of older backups.

        Raises:
            ValueError: If the label is unknown.
        """
        label = _LOCALIZED_FLOWS.get(value.strip(), value.strip().lower())
        return cls(label)


_LOCALIZED_FLOWS = {"收入": "income", "支出": "expense", "转账": "transfer"}


@dataclass
class Transaction:
    """Canonical transaction record.

    Attributes:
        id: Identifier assigned once at ingestion; enrichment never changes it.
        date: Calendar date of the transaction.
        amount: Signed amount (negative = expense, positive = income).
        currency: Currency code.
        merchant: Raw merchant/details text from the statement.
        merchant_norm: Canonical merchant name assigned by an alias.
        category: Category label, derived by rules or pre-set by the statement.
        note: Free text (statement note or assembled reference columns).
        account: Account or card tag.
        flow: Income/expense/transfer classification.
        raw: The original CSV row, kept verbatim for audit.
    """

    id: str
    date: date
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    merchant: str | None = None
    merchant_norm: str | None = None
    category: str | None = None
    note: str | None = None
    account: str | None = None
    flow: Flow | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def match_text(self) -> str:
        """Text that category rules and merchant aliases are matched against."""
        return f"{self.merchant or ''} {self.note or ''}"

    @property
    def natural_key(self) -> tuple[date, Decimal, str, str]:
        """Content key used to detect the same transaction across imports.

        Note:
            ``note`` and ``currency`` are not part of the key, so two genuinely
            distinct purchases with the same date, amount, merchant and account
            (two identical coffees on one day) share a key.
        """
        return (self.date, self.amount, self.merchant or "", self.account or "")

    @property
    def display_merchant(self) -> str:
        """Canonical merchant name, falling back to the raw text."""
        return self.merchant_norm or self.merchant or UNKNOWN_MERCHANT

    @property
    def effective_flow(self) -> Flow:
        """Stored flow, or a sign-based guess for records never classified."""
        if self.flow is not None:
            return self.flow
        return Flow.INCOME if self.amount > 0 else Flow.EXPENSE

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape used by backups and the transaction store."""
        data: dict[str, Any] = {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": float(self.amount),
            "currency": self.currency,
        }
        optional = {
            "merchant": self.merchant,
            "merchantNorm": self.merchant_norm,
            "category": self.category,
            "note": self.note,
            "account": self.account,
            "flow": self.flow.value if self.flow else None,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.raw:
            data["raw"] = self.raw
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Create a Transaction from its JSON shape.

        Args:
            data: Dictionary as produced by ``to_dict`` (or an older backup).

        Returns:
            A new Transaction.

        Raises:
            ValueError: If id, date or amount is missing or invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Transaction must be an object, got {type(data).__name__}")
        for key in ("id", "date", "amount"):
            if data.get(key) in (None, ""):
                raise ValueError(f"Transaction is missing '{key}'")

        flow = data.get("flow")
        raw = data.get("raw")
        return cls(
            id=str(data["id"]),
            date=parse_iso_date(str(data["date"])),
            amount=to_decimal(data["amount"]),
            currency=str(data.get("currency") or DEFAULT_CURRENCY),
            merchant=_optional_str(data.get("merchant")),
            merchant_norm=_optional_str(data.get("merchantNorm")),
            category=_optional_str(data.get("category")),
            note=_optional_str(data.get("note")),
            account=_optional_str(data.get("account")),
            flow=Flow.parse(str(flow)) if flow else None,
            raw=dict(raw) if isinstance(raw, dict) else {},
        )

    def __repr__(self) -> str:
        return (
            f"Transaction(date={self.date}, "
            f"merchant={(self.merchant or '')[:30]!r}, "
            f"amount={self.amount}, "
            f"account={self.account!r})"
        )


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
