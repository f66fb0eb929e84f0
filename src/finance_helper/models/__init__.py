"""Data models for transactions, column mappings, categories, and reports."""

from finance_helper.models.category import (
    Category,
    CategoryRule,
    CategoryType,
    MerchantAlias,
)
from finance_helper.models.mapping import ColumnMapping
from finance_helper.models.report import (
    MonthlyAggregate,
    NamedAmount,
    SpendingReport,
    Totals,
)
from finance_helper.models.transaction import Flow, Transaction

__all__ = [
    "Transaction",
    "Flow",
    "ColumnMapping",
    "Category",
    "CategoryRule",
    "CategoryType",
    "MerchantAlias",
    "Totals",
    "NamedAmount",
    "MonthlyAggregate",
    "SpendingReport",
]
