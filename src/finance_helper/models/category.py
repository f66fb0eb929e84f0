"""Category, categorization rule, and merchant alias models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from finance_helper.utils.date_utils import epoch_millis
from finance_helper.utils.regex_utils import DEFAULT_FLAGS


class CategoryType(Enum):
    """Which side of the ledger a category is offered for."""

    EXPENSE = "expense"
    INCOME = "income"
    ALL = "all"

    @classmethod
    def parse(cls, value: str) -> "CategoryType":
        """Parse a type label, including localized labels from older exports.

        Raises:
            ValueError: If the label is unknown.
        """
        label = _LOCALIZED_TYPES.get(value.strip(), value.strip().lower())
        return cls(label)


_LOCALIZED_TYPES = {"支出": "expense", "收入": "income", "全部": "all"}


@dataclass
class Category:
    """User-defined category owning zero or more rules.

    Attributes:
        name: Unique display label; this is what transactions carry.
        category_type: Expense, income, or both.
        color: Optional display color such as ``#4CAF50``.
        created_at: Creation time in epoch milliseconds.
        id: Store-assigned identifier (None until stored).
    """

    name: str
    category_type: CategoryType = CategoryType.EXPENSE
    color: Optional[str] = None
    created_at: int = field(default_factory=epoch_millis)
    id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.category_type.value,
            "createdAt": self.created_at,
        }
        if self.color:
            data["color"] = self.color
        return data

    def __repr__(self) -> str:
        return f"Category(id={self.id!r}, name={self.name!r}, type={self.category_type.value})"


@dataclass
class CategoryRule:
    """User regex rule assigning a category.

    Attributes:
        pattern: Regex source text matched against merchant + note.
        category_id: Id of the owning Category.
        flags: Regex flag letters, case-insensitive by default.
        enabled: Disabled rules are never consulted.
        created_at: Creation time in epoch milliseconds; rules run oldest first.
        id: Store-assigned identifier.
    """

    pattern: str
    category_id: int
    flags: str = DEFAULT_FLAGS
    enabled: bool = True
    created_at: int = field(default_factory=epoch_millis)
    id: Optional[int] = None

    def __repr__(self) -> str:
        return (
            f"CategoryRule(id={self.id!r}, pattern={self.pattern!r}, "
            f"category_id={self.category_id!r}, enabled={self.enabled})"
        )


@dataclass
class MerchantAlias:
    """User regex mapping raw merchant text to a canonical name."""

    pattern: str
    canonical_name: str
    flags: str = DEFAULT_FLAGS
    enabled: bool = True
    created_at: int = field(default_factory=epoch_millis)
    id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "flags": self.flags,
            "canonicalName": self.canonical_name,
            "enabled": self.enabled,
            "createdAt": self.created_at,
        }
