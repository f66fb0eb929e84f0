"""Tests for income/expense/transfer classification."""

from datetime import date
from decimal import Decimal

import pytest

from finance_helper.models.transaction import Flow, Transaction
from finance_helper.processing.flow import assign_flows, classify_flow


def create_transaction(amount: str, merchant: str = "Shop", note: str | None = None) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        id="t1",
        date=date(2024, 3, 1),
        amount=Decimal(amount),
        merchant=merchant,
        note=note,
    )


class TestClassifyFlow:
    """Tests for classify_flow."""

    def test_expense(self) -> None:
        assert classify_flow(create_transaction("-5.00")) is Flow.EXPENSE

    def test_income(self) -> None:
        assert classify_flow(create_transaction("2500.00", "Salary")) is Flow.INCOME

    def test_zero_is_income(self) -> None:
        assert classify_flow(create_transaction("0")) is Flow.INCOME

    @pytest.mark.parametrize("amount", ["-300.00", "300.00"])
    def test_credit_card_payment_is_transfer(self, amount: str) -> None:
        txn = create_transaction(amount, "Credit Card Payment")
        assert classify_flow(txn) is Flow.TRANSFER

    @pytest.mark.parametrize(
        "merchant",
        ["ONLINE PAYMENT - THANK YOU", "Payment-Thank You", "Transfer to savings", "INTERNAL XFER", "信用卡还款", "转账给张三"],
    )
    def test_transfer_indicators(self, merchant: str) -> None:
        assert classify_flow(create_transaction("-10", merchant)) is Flow.TRANSFER

    def test_note_is_matched_too(self) -> None:
        txn = create_transaction("-10", "ANZ", note="transfer")
        assert classify_flow(txn) is Flow.TRANSFER

    def test_category_is_not_required(self) -> None:
        txn = create_transaction("-10")
        assert txn.category is None
        assert classify_flow(txn) is Flow.EXPENSE


class TestAssignFlows:
    """Tests for assign_flows."""

    def test_sets_flow_in_place(self) -> None:
        transactions = [create_transaction("-1"), create_transaction("1"), create_transaction("-1", "Transfer")]
        result = assign_flows(transactions)

        assert result is transactions
        assert [t.flow for t in transactions] == [Flow.EXPENSE, Flow.INCOME, Flow.TRANSFER]
