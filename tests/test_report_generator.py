"""Tests for report aggregates."""

from datetime import date
from decimal import Decimal

from finance_helper.models.report import CompareMode, MonthlyAggregate, MonthlyMetric, ReportView
from finance_helper.models.transaction import Flow, Transaction
from finance_helper.processing.report_generator import (
    UNTAGGED_ACCOUNT,
    compare_monthly,
    compute_totals,
    forecast_next_month,
    generate_report,
    monthly_rollup,
    top_merchants,
)


def create_transaction(
    amount: str,
    flow: Flow | None,
    trans_date: date = date(2024, 3, 15),
    merchant: str | None = "Shop",
    category: str | None = None,
    account: str | None = "1234",
    merchant_norm: str | None = None,
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        id=f"{trans_date}-{merchant}-{amount}",
        date=trans_date,
        amount=Decimal(amount),
        merchant=merchant,
        merchant_norm=merchant_norm,
        category=category,
        account=account,
        flow=flow,
    )


def create_month(month: str, income: str = "0", expense: str = "0") -> MonthlyAggregate:
    return MonthlyAggregate(month=month, income=Decimal(income), expense=Decimal(expense))


class TestComputeTotals:
    """Tests for compute_totals."""

    def test_transfers_are_excluded(self) -> None:
        transactions = [
            create_transaction("2500.00", Flow.INCOME),
            create_transaction("-100.00", Flow.EXPENSE),
            create_transaction("-300.00", Flow.TRANSFER, merchant="Credit Card Payment"),
            create_transaction("300.00", Flow.TRANSFER, merchant="Transfer from cheque"),
        ]

        totals = compute_totals(transactions)

        assert totals.income == Decimal("2500.00")
        assert totals.expense == Decimal("100.00")
        assert totals.net == Decimal("2400.00")

    def test_unclassified_uses_sign(self) -> None:
        totals = compute_totals([create_transaction("5", None), create_transaction("-2", None)])
        assert totals.income == Decimal("5")
        assert totals.expense == Decimal("2")


class TestGenerateReport:
    """Tests for generate_report."""

    def test_month_filter(self) -> None:
        transactions = [
            create_transaction("-10", Flow.EXPENSE, date(2024, 3, 1)),
            create_transaction("-20", Flow.EXPENSE, date(2024, 4, 1)),
        ]

        report = generate_report(transactions, month="2024-04")

        assert report.transaction_count == 1
        assert report.totals.expense == Decimal("20")
        # Monthly rollup always covers every month
        assert report.months == ["2024-03", "2024-04"]

    def test_category_breakdown_for_expense_view(self) -> None:
        transactions = [
            create_transaction("-10", Flow.EXPENSE, category="Dining"),
            create_transaction("-30", Flow.EXPENSE, category="Groceries"),
            create_transaction("-5", Flow.EXPENSE),
            create_transaction("1000", Flow.INCOME, category="Salary"),
        ]

        report = generate_report(transactions, view=ReportView.EXPENSE)

        assert [(c.name, c.value) for c in report.by_category] == [
            ("Groceries", Decimal("30")),
            ("Dining", Decimal("10")),
            ("Uncategorized", Decimal("5")),
        ]

    def test_all_view_excludes_transfers(self) -> None:
        transactions = [
            create_transaction("-10", Flow.EXPENSE, category="Dining"),
            create_transaction("-300", Flow.TRANSFER, category="Repayment"),
        ]
        report = generate_report(transactions)
        assert [c.name for c in report.by_category] == ["Dining"]

    def test_account_breakdown(self) -> None:
        transactions = [
            create_transaction("-10.005", Flow.EXPENSE, account="1234"),
            create_transaction("100", Flow.INCOME, account=None),
            create_transaction("-300", Flow.TRANSFER, account="1234"),
        ]

        report = generate_report(transactions)

        assert [(a.name, a.value) for a in report.by_account] == [
            ("1234", Decimal("-310.01")),
            (UNTAGGED_ACCOUNT, Decimal("100.00")),
        ]


class TestTopMerchants:
    """Tests for top_merchants."""

    def test_expense_view_uses_canonical_names(self) -> None:
        transactions = [
            create_transaction("-10", Flow.EXPENSE, merchant="PAK N SAVE ALBANY", merchant_norm="Pak N Save"),
            create_transaction("-15", Flow.EXPENSE, merchant="PAK N SAVE AUCKLAND", merchant_norm="Pak N Save"),
            create_transaction("-20", Flow.EXPENSE, merchant="Countdown"),
            create_transaction("50", Flow.INCOME, merchant="Refund"),
        ]

        rows = top_merchants(transactions, ReportView.EXPENSE)

        assert [(r.name, r.value) for r in rows] == [
            ("Pak N Save", Decimal("25.00")),
            ("Countdown", Decimal("20.00")),
        ]

    def test_income_view(self) -> None:
        transactions = [
            create_transaction("50", Flow.INCOME, merchant="Employer"),
            create_transaction("-20", Flow.EXPENSE, merchant="Countdown"),
        ]
        rows = top_merchants(transactions, ReportView.INCOME)
        assert [r.name for r in rows] == ["Employer"]

    def test_limit(self) -> None:
        transactions = [
            create_transaction(f"-{i}", Flow.EXPENSE, merchant=f"M{i}") for i in range(1, 6)
        ]
        rows = top_merchants(transactions, limit=2)
        assert [r.name for r in rows] == ["M5", "M4"]

    def test_placeholder_name(self) -> None:
        rows = top_merchants([create_transaction("-1", Flow.EXPENSE, merchant=None)])
        assert rows[0].name == "Unknown merchant"


class TestMonthlyRollup:
    """Tests for monthly_rollup."""

    def test_rollup(self) -> None:
        transactions = [
            create_transaction("-10", Flow.EXPENSE, date(2024, 4, 2)),
            create_transaction("100", Flow.INCOME, date(2024, 3, 1)),
            create_transaction("-5", Flow.EXPENSE, date(2024, 3, 9)),
            create_transaction("-500", Flow.TRANSFER, date(2024, 3, 9)),
        ]

        monthly = monthly_rollup(transactions)

        assert [m.month for m in monthly] == ["2024-03", "2024-04"]
        assert monthly[0].income == Decimal("100")
        assert monthly[0].expense == Decimal("5")
        assert monthly[0].net == Decimal("95")
        assert monthly[1].expense == Decimal("10")


class TestCompareMonthly:
    """Tests for compare_monthly."""

    def test_month_over_month(self) -> None:
        monthly = [create_month("2024-01", expense="10"), create_month("2024-02", expense="20"), create_month("2024-04", expense="5")]

        references = compare_monthly(monthly, CompareMode.MONTH_OVER_MONTH, MonthlyMetric.EXPENSE)

        assert references == [None, Decimal("10.00"), None]

    def test_year_over_year(self) -> None:
        monthly = [create_month("2023-03", income="100"), create_month("2024-03", income="150")]

        references = compare_monthly(monthly, CompareMode.YEAR_OVER_YEAR, MonthlyMetric.INCOME)

        assert references == [None, Decimal("100.00")]


class TestForecastNextMonth:
    """Tests for forecast_next_month."""

    def test_moving_average(self) -> None:
        monthly = [
            create_month("2024-01", expense="100"),
            create_month("2024-02", expense="10"),
            create_month("2024-03", expense="20"),
            create_month("2024-04", expense="30"),
        ]

        assert forecast_next_month(monthly, MonthlyMetric.EXPENSE, window=3) == ("2024-05", Decimal("20.00"))

    def test_net_metric(self) -> None:
        monthly = [create_month("2024-12", income="100", expense="40")]
        assert forecast_next_month(monthly, MonthlyMetric.NET, window=1) == ("2025-01", Decimal("60.00"))

    def test_not_enough_months(self) -> None:
        monthly = [create_month("2024-01", expense="100")]
        assert forecast_next_month(monthly, window=3) is None
