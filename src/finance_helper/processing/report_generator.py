"""Report data generation: totals and rollups over a transaction set."""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from finance_helper.models.report import (
    CompareMode,
    MonthlyAggregate,
    MonthlyMetric,
    NamedAmount,
    ReportView,
    SpendingReport,
    Totals,
)
from finance_helper.models.transaction import Flow, Transaction
from finance_helper.processing.categorizer import UNCATEGORIZED
from finance_helper.utils.date_utils import month_key, shift_month_key
from finance_helper.utils.decimal_utils import quantize_cents

# Report label for transactions without an account tag
UNTAGGED_ACCOUNT = "Untagged"

DEFAULT_TOP_MERCHANTS = 10
DEFAULT_FORECAST_WINDOW = 3


def _in_view(txn: Transaction, view: ReportView) -> bool:
    flow = txn.effective_flow
    if view is ReportView.EXPENSE:
        return flow is Flow.EXPENSE
    if view is ReportView.INCOME:
        return flow is Flow.INCOME
    return flow is not Flow.TRANSFER


def _sorted_desc(sums: dict[str, Decimal]) -> list[NamedAmount]:
    rows = [NamedAmount(name, value) for name, value in sums.items()]
    rows.sort(key=lambda row: row.value, reverse=True)
    return rows


def compute_totals(transactions: Sequence[Transaction]) -> Totals:
    """Sum income and expense flows; transfers are excluded.

    Args:
        transactions: Transactions to total.

    Returns:
        Totals with expense as a positive magnitude.
    """
    income = Decimal("0")
    expense = Decimal("0")
    for txn in transactions:
        flow = txn.effective_flow
        if flow is Flow.INCOME:
            income += txn.amount
        elif flow is Flow.EXPENSE:
            expense += txn.amount
    return Totals(income=income, expense=abs(expense))


def by_category(transactions: Sequence[Transaction]) -> list[NamedAmount]:
    """Absolute amount per category label, largest first."""
    sums: dict[str, Decimal] = {}
    for txn in transactions:
        key = txn.category or UNCATEGORIZED
        sums[key] = sums.get(key, Decimal("0")) + abs(txn.amount)
    return _sorted_desc(sums)


def by_account(transactions: Sequence[Transaction]) -> list[NamedAmount]:
    """Signed amount per account tag, in first-seen order."""
    sums: dict[str, Decimal] = {}
    for txn in transactions:
        key = txn.account or UNTAGGED_ACCOUNT
        sums[key] = sums.get(key, Decimal("0")) + txn.amount
    return [NamedAmount(name, quantize_cents(value)) for name, value in sums.items()]


def top_merchants(
    transactions: Sequence[Transaction],
    view: ReportView = ReportView.ALL,
    limit: int = DEFAULT_TOP_MERCHANTS,
) -> list[NamedAmount]:
    """Largest merchants by canonical name (falling back to the raw name).

    The income view sums positive amounts; the other views sum the
    magnitude of negative amounts.
    """
    sums: dict[str, Decimal] = {}
    for txn in transactions:
        if view is ReportView.INCOME:
            if txn.amount <= 0:
                continue
            value = txn.amount
        else:
            if txn.amount >= 0:
                continue
            value = abs(txn.amount)
        name = txn.display_merchant
        sums[name] = sums.get(name, Decimal("0")) + value

    rows = _sorted_desc({name: quantize_cents(value) for name, value in sums.items()})
    return rows[:limit]


def monthly_rollup(transactions: Sequence[Transaction]) -> list[MonthlyAggregate]:
    """Income/expense per ``YYYY-MM`` month, transfers excluded, oldest first."""
    months: dict[str, MonthlyAggregate] = {}
    for txn in transactions:
        flow = txn.effective_flow
        if flow is Flow.TRANSFER:
            continue
        key = month_key(txn.date)
        agg = months.setdefault(key, MonthlyAggregate(month=key))
        if flow is Flow.INCOME:
            agg.income += txn.amount
        else:
            agg.expense += abs(txn.amount)
    return [months[key] for key in sorted(months)]


def generate_report(
    transactions: Sequence[Transaction],
    view: ReportView = ReportView.ALL,
    month: Optional[str] = None,
    top_n: int = DEFAULT_TOP_MERCHANTS,
) -> SpendingReport:
    """Generate all aggregates for a transaction set.

    Single source of truth for the terminal report and the CSV/Excel exports.

    Args:
        transactions: Enriched transactions.
        view: Which flows the category and merchant breakdowns cover.
        month: Optional ``YYYY-MM`` filter for everything except the monthly rollup.
        top_n: Number of merchants to keep.

    Returns:
        SpendingReport with pre-computed aggregates.
    """
    in_month = [t for t in transactions if month is None or month_key(t.date) == month]
    filtered = [t for t in in_month if _in_view(t, view)]

    return SpendingReport(
        view=view,
        month=month,
        transaction_count=len(filtered),
        totals=compute_totals(in_month),
        by_category=by_category(filtered),
        by_account=by_account(in_month),
        top_merchants=top_merchants(filtered, view, top_n),
        monthly=monthly_rollup(transactions),
    )


def compare_monthly(
    monthly: Sequence[MonthlyAggregate],
    mode: CompareMode,
    metric: MonthlyMetric = MonthlyMetric.EXPENSE,
) -> list[Optional[Decimal]]:
    """Reference values for a month-over-month or year-over-year comparison.

    Args:
        monthly: Monthly rollup, oldest first.
        mode: Compare with the previous month or the same month last year.
        metric: Which monthly value to compare.

    Returns:
        One entry per month: the reference month's value, or None when that
        month has no data.
    """
    offset = -1 if mode is CompareMode.MONTH_OVER_MONTH else -12
    by_month = {m.month: m for m in monthly}
    references: list[Optional[Decimal]] = []
    for agg in monthly:
        reference = by_month.get(shift_month_key(agg.month, offset))
        references.append(quantize_cents(reference.metric(metric)) if reference else None)
    return references


def forecast_next_month(
    monthly: Sequence[MonthlyAggregate],
    metric: MonthlyMetric = MonthlyMetric.EXPENSE,
    window: int = DEFAULT_FORECAST_WINDOW,
) -> Optional[tuple[str, Decimal]]:
    """Forecast the month after the last one as a simple moving average.

    Args:
        monthly: Monthly rollup, oldest first.
        metric: Which monthly value to forecast.
        window: Number of trailing months averaged.

    Returns:
        ``(month_key, value)`` or None when there are fewer than ``window`` months.
    """
    if window <= 0 or len(monthly) < window:
        return None
    last = monthly[-window:]
    average = sum((m.metric(metric) for m in last), Decimal("0")) / window
    return shift_month_key(monthly[-1].month, 1), quantize_cents(average)
