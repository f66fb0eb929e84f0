"""Report data models for aggregated spending views."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class ReportView(Enum):
    """Which transactions a report's filtered breakdowns cover."""

    ALL = "all"  # Income and expense, transfers excluded
    EXPENSE = "expense"
    INCOME = "income"


class MonthlyMetric(Enum):
    EXPENSE = "expense"
    INCOME = "income"
    NET = "net"


class CompareMode(Enum):
    MONTH_OVER_MONTH = "mom"
    YEAR_OVER_YEAR = "yoy"


@dataclass
class Totals:
    """Income and expense totals; transfers never contribute.

    Attributes:
        income: Sum of income amounts.
        expense: Magnitude of the summed expense amounts (positive).
    """

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        """Income minus expense."""
        return self.income - self.expense


@dataclass
class NamedAmount:
    """A labelled amount (category, account, or merchant rollup row)."""

    name: str
    value: Decimal


@dataclass
class MonthlyAggregate:
    """Income/expense for one ``YYYY-MM`` month."""

    month: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense

    def metric(self, metric: MonthlyMetric) -> Decimal:
        """Value of the requested metric for this month."""
        if metric is MonthlyMetric.INCOME:
            return self.income
        if metric is MonthlyMetric.EXPENSE:
            return self.expense
        return self.net


@dataclass
class SpendingReport:
    """Pre-computed aggregates shared by the terminal, CSV, and Excel outputs.

    Attributes:
        view: View the filtered breakdowns were computed for.
        month: ``YYYY-MM`` filter, or None for all months.
        transaction_count: Transactions in the filtered view.
        totals: Income/expense totals over the month-filtered set.
        by_category: Absolute amounts per category over the view, descending.
        by_account: Signed amounts per account over the month-filtered set.
        top_merchants: Largest merchants for the view, descending.
        monthly: Rollup of all non-transfer transactions, ascending by month.
    """

    view: ReportView
    month: str | None
    transaction_count: int = 0
    totals: Totals = field(default_factory=Totals)
    by_category: list[NamedAmount] = field(default_factory=list)
    by_account: list[NamedAmount] = field(default_factory=list)
    top_merchants: list[NamedAmount] = field(default_factory=list)
    monthly: list[MonthlyAggregate] = field(default_factory=list)

    @property
    def months(self) -> list[str]:
        """Month keys covered by the monthly rollup."""
        return [m.month for m in self.monthly]
