"""End-to-end tests for the import pipeline."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from finance_helper.config import Config
from finance_helper.models.category import CategoryType
from finance_helper.models.mapping import ColumnMapping
from finance_helper.models.transaction import Flow
from finance_helper.processing.pipeline import ImportPipeline, RuleSnapshot
from finance_helper.storage.exchange import FormatError, export_backup
from finance_helper.storage.rule_store import RuleStore

CARD_CSV = (
    "TransactionDate,Amount,Details,Type,Card\n"
    "15/03/2024,45.00,PAK N SAVE AUCKLAND,D,1234\n"
)

BANK_CSV = (
    "Type,Details,Particulars,Code,Reference,Amount,Date\n"
    "Eft-Pos,COUNTDOWN PONSONBY,,,,-32.10,02/03/2024\n"
    "Bill Payment,ACME LTD,Salary,,March,2500.00,28/03/2024\n"
    "Transfer,TO SAVINGS,,,,-200.00,29/03/2024\n"
    "Eft-Pos,BROKEN ROW,,,,abc,30/03/2024\n"
    "Eft-Pos,BAD DATE,,,,-1.00,31/02/2024\n"
)


def create_store() -> RuleStore:
    """Helper to create a rule store with a supermarket rule and aliases."""
    store = RuleStore()
    groceries = store.add_category("Groceries", created_at=1)
    salary = store.add_category("Salary", CategoryType.INCOME, created_at=2)
    store.add_rule(r"超市|supermarket|PAK\s*N\s*SAVE|countdown", groceries.id, created_at=3)  # type: ignore[arg-type]
    store.add_rule("salary", salary.id, created_at=4)  # type: ignore[arg-type]
    store.add_alias(r"pak\s*n\s*save", "Pak N Save", created_at=5)
    return store


class TestIngestCsv:
    """Tests for ImportPipeline.ingest_csv."""

    def test_credit_card_statement_end_to_end(self) -> None:
        result = ImportPipeline(create_store()).ingest_csv(CARD_CSV, source="card.csv")

        assert result.accepted_count == 1
        assert result.added_count == 1
        assert result.mapping is not None
        assert result.mapping.template == "credit-card-statement"

        [txn] = result.transactions
        assert txn.date == date(2024, 3, 15)
        assert txn.amount == Decimal("-45.00")
        assert txn.merchant == "PAK N SAVE AUCKLAND"
        assert txn.account == "1234"
        assert txn.currency == "NZD"
        assert txn.flow is Flow.EXPENSE
        assert txn.category == "Groceries"
        assert txn.merchant_norm == "Pak N Save"
        assert txn.raw["Card"] == "1234"

    def test_bank_statement(self) -> None:
        result = ImportPipeline(create_store()).ingest_csv(BANK_CSV)

        assert result.total_rows == 5
        assert result.accepted_count == 3
        by_merchant = {t.merchant: t for t in result.transactions}
        assert by_merchant["COUNTDOWN PONSONBY"].category == "Groceries"
        assert by_merchant["COUNTDOWN PONSONBY"].account == "debit card"
        assert by_merchant["ACME LTD"].note == "Salary March"
        assert by_merchant["ACME LTD"].category == "Salary"
        assert by_merchant["ACME LTD"].flow is Flow.INCOME
        assert by_merchant["TO SAVINGS"].flow is Flow.EXPENSE

    def test_reimport_adds_nothing(self) -> None:
        pipeline = ImportPipeline(create_store())
        first = pipeline.ingest_csv(BANK_CSV)

        second = pipeline.ingest_csv(BANK_CSV, existing=first.transactions)

        assert second.added_count == 0
        assert second.duplicate_count == 3
        assert second.transactions == first.transactions

    def test_unknown_layout_imports_nothing(self) -> None:
        result = ImportPipeline(create_store()).ingest_csv("when,how much\n2024-01-01,5\n")
        assert result.transactions == []
        assert result.accepted_count == 0

    def test_generic_columns(self) -> None:
        result = ImportPipeline(RuleStore()).ingest_csv("date,amount\n2024-01-01,-5\n")
        [txn] = result.transactions
        assert txn.currency == "CNY"
        assert txn.flow is Flow.EXPENSE

    def test_stale_mapping_is_recovered(self) -> None:
        stale = ColumnMapping(date="Posted", amount="Value")
        result = ImportPipeline(create_store()).ingest_csv(CARD_CSV, mapping=stale)
        assert result.accepted_count == 1

    def test_configured_currencies(self) -> None:
        config = Config()
        config.imports.statement_currency = "AUD"
        result = ImportPipeline(create_store(), config).ingest_csv(CARD_CSV)
        assert result.transactions[0].currency == "AUD"

    def test_ingest_file(self, tmp_path: Path) -> None:
        path = tmp_path / "card.csv"
        path.write_text(CARD_CSV, encoding="utf-8")
        result = ImportPipeline(create_store()).ingest_file(path)
        assert result.added_count == 1


class TestReclassify:
    """Tests for re-running enrichment after rule edits."""

    def test_new_rule_applies_to_uncategorized(self) -> None:
        store = RuleStore()
        pipeline = ImportPipeline(store)
        transactions = pipeline.ingest_csv(CARD_CSV).transactions
        assert transactions[0].category is None

        category = store.add_category("Groceries")
        store.add_rule("pak n save", category.id)  # type: ignore[arg-type]
        pipeline.reclassify(transactions)

        assert transactions[0].category == "Groceries"

    def test_force_replaces_existing_categories(self) -> None:
        store = create_store()
        pipeline = ImportPipeline(store)
        transactions = pipeline.ingest_csv(CARD_CSV).transactions

        for rule in store.list_rules():
            store.update_rule(rule.id, enabled=False)  # type: ignore[arg-type]
        pipeline.reclassify(transactions)
        assert transactions[0].category == "Groceries"

        pipeline.reclassify(transactions, force=True)
        assert transactions[0].category is None

    def test_renormalize_merchants(self) -> None:
        store = RuleStore()
        pipeline = ImportPipeline(store)
        transactions = pipeline.ingest_csv(CARD_CSV).transactions

        store.add_alias("auckland", "Pak N Save Auckland")
        pipeline.renormalize_merchants(transactions)

        assert transactions[0].merchant_norm == "Pak N Save Auckland"

    def test_snapshot_is_taken_per_run(self) -> None:
        store = create_store()
        snapshot = RuleSnapshot.from_repository(store)
        store.add_category("Later")
        assert [c.name for c in snapshot.categories] == ["Groceries", "Salary"]


class TestRestoreBackup:
    """Tests for merging a backup."""

    def test_restored_transactions_are_categorized(self) -> None:
        source = ImportPipeline(RuleStore()).ingest_csv(CARD_CSV).transactions
        payload = export_backup(source)

        result = ImportPipeline(create_store()).restore_backup(payload)

        assert result.added_count == 1
        assert result.transactions[0].category == "Groceries"

    def test_restore_skips_known_transactions(self) -> None:
        pipeline = ImportPipeline(create_store())
        existing = pipeline.ingest_csv(CARD_CSV).transactions

        result = pipeline.restore_backup(export_backup(existing), existing)

        assert result.added_count == 0

    def test_bad_backup(self) -> None:
        with pytest.raises(FormatError):
            ImportPipeline(RuleStore()).restore_backup({"items": []})
