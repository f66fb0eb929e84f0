"""Import pipeline: CSV text to enriched, deduplicated transactions.

Stages run in this order on every batch:
    parse -> resolve mapping -> normalize rows -> categorize -> assign flows
    -> normalize merchants -> merge into the existing collection

Rule and alias stores are read once per run into a ``RuleSnapshot``. Edits
made to the stores afterwards are picked up by calling ``reclassify`` or
``renormalize_merchants`` explicitly.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from finance_helper.config import Config
from finance_helper.models.category import Category, CategoryRule, MerchantAlias
from finance_helper.models.mapping import ColumnMapping
from finance_helper.models.transaction import Transaction
from finance_helper.parsers.csv_parser import CSVDocument, CSVParser
from finance_helper.parsers.detector import resolve_mapping
from finance_helper.processing.categorizer import Categorizer
from finance_helper.processing.flow import assign_flows
from finance_helper.processing.merchants import MerchantNormalizer
from finance_helper.processing.merger import merge_transactions
from finance_helper.processing.normalizer import RowNormalizer
from finance_helper.storage.exchange import parse_backup
from finance_helper.storage.rule_store import RuleRepository
from finance_helper.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuleSnapshot:
    """Rules, categories, and aliases as read at the start of a run."""

    categories: tuple[Category, ...] = ()
    rules: tuple[CategoryRule, ...] = ()
    aliases: tuple[MerchantAlias, ...] = ()

    @classmethod
    def from_repository(cls, repository: RuleRepository) -> "RuleSnapshot":
        return cls(
            categories=tuple(repository.list_categories()),
            rules=tuple(repository.list_enabled_category_rules()),
            aliases=tuple(repository.list_enabled_merchant_aliases()),
        )


@dataclass
class ImportResult:
    """Outcome of one CSV import.

    Attributes:
        transactions: The merged collection (existing first, then new).
        batch: Every row accepted from this CSV, enriched.
        total_rows: Data rows read from the CSV.
        added_count: Accepted rows that were new to the collection.
        mapping: Column mapping actually used.
    """

    transactions: list[Transaction]
    batch: list[Transaction] = field(default_factory=list)
    total_rows: int = 0
    added_count: int = 0
    mapping: Optional[ColumnMapping] = None

    @property
    def accepted_count(self) -> int:
        return len(self.batch)

    @property
    def duplicate_count(self) -> int:
        return self.accepted_count - self.added_count


class ImportPipeline:
    """Runs statement imports and re-classification against a rule repository."""

    def __init__(self, repository: RuleRepository, config: Optional[Config] = None):
        """Initialize the pipeline.

        Args:
            repository: Read-only source of categories, rules, and aliases.
            config: Settings; defaults when None.
        """
        self.repository = repository
        self.config = config or Config()
        self.parser = CSVParser()
        self.normalizer = RowNormalizer(
            default_currency=self.config.imports.default_currency,
            note_fallback_columns=self.config.imports.note_fallback_columns,
        )

    def snapshot(self) -> RuleSnapshot:
        """Read the current state of the rule repository."""
        return RuleSnapshot.from_repository(self.repository)

    def ingest_csv(
        self,
        text: str,
        existing: Sequence[Transaction] = (),
        mapping: Optional[ColumnMapping] = None,
        source: str = "",
    ) -> ImportResult:
        """Import CSV text into an existing collection.

        Args:
            text: CSV content with a header line.
            existing: Current transaction collection (not modified).
            mapping: Column mapping to use; inferred from the headers when
                None or when it does not fit them.
            source: Label for log messages.

        Returns:
            ImportResult with the merged collection and counts.

        Raises:
            ParseError: If the text cannot be read as CSV at all.
        """
        with LogContext(logger, "CSV import", source=source or "text"):
            document = self.parser.parse_text(text, source=source)
            return self._ingest_document(document, existing, mapping)

    def ingest_file(
        self,
        path: Path,
        existing: Sequence[Transaction] = (),
        mapping: Optional[ColumnMapping] = None,
    ) -> ImportResult:
        """Import a CSV file into an existing collection.

        Raises:
            ParseError: If the file is too large or not valid CSV.
            FileNotFoundError: If the file does not exist.
        """
        with LogContext(logger, "CSV import", source=path.name):
            document = self.parser.parse(path)
            return self._ingest_document(document, existing, mapping)

    def _ingest_document(
        self,
        document: CSVDocument,
        existing: Sequence[Transaction],
        mapping: Optional[ColumnMapping],
    ) -> ImportResult:
        resolved = resolve_mapping(
            document.headers, mapping, self.config.imports.statement_currency
        )
        batch = self.normalizer.normalize_rows(document.rows, resolved, document.source)
        self.enrich(batch)

        merged = merge_transactions(existing, batch)
        result = ImportResult(
            transactions=merged,
            batch=batch,
            total_rows=len(document.rows),
            added_count=len(merged) - len(existing),
            mapping=resolved,
        )
        logger.info(
            f"Imported {result.added_count} new of {result.accepted_count} accepted rows "
            f"({result.total_rows} read) from {document.source or 'text'}"
        )
        return result

    def enrich(
        self,
        transactions: list[Transaction],
        snapshot: Optional[RuleSnapshot] = None,
    ) -> list[Transaction]:
        """Categorize, classify flow, and normalize merchants in place.

        Args:
            transactions: Transactions to enrich.
            snapshot: Rules to use; read from the repository when None.

        Returns:
            Same list, enriched.
        """
        snapshot = snapshot or self.snapshot()
        Categorizer(snapshot.rules, snapshot.categories, self.config.builtin_rules).categorize(
            transactions
        )
        assign_flows(transactions)
        MerchantNormalizer(snapshot.aliases).normalize(transactions)
        return transactions

    def reclassify(
        self, transactions: list[Transaction], force: bool = False
    ) -> list[Transaction]:
        """Re-run category and flow classification after rule edits.

        Args:
            transactions: Collection to update in place.
            force: Clear existing categories first so every transaction is
                matched against the current rules. Without it, only
                uncategorized transactions can gain a category.

        Returns:
            Same list, updated.
        """
        with LogContext(logger, "reclassify", count=len(transactions), force=force):
            if force:
                for txn in transactions:
                    txn.category = None
            snapshot = self.snapshot()
            Categorizer(snapshot.rules, snapshot.categories, self.config.builtin_rules).categorize(
                transactions
            )
            assign_flows(transactions)
        return transactions

    def renormalize_merchants(self, transactions: list[Transaction]) -> list[Transaction]:
        """Re-run merchant normalization after alias edits."""
        with LogContext(logger, "merchant normalization", count=len(transactions)):
            MerchantNormalizer(self.snapshot().aliases).normalize(transactions)
        return transactions

    def restore_backup(
        self, payload: Any, existing: Iterable[Transaction] = ()
    ) -> ImportResult:
        """Merge a bulk backup into an existing collection.

        Restored transactions go through enrichment before the merge, so
        records without a category pick one up from the current rules.

        Raises:
            FormatError: If the payload is not a valid backup.
        """
        existing = list(existing)
        with LogContext(logger, "backup restore"):
            batch = parse_backup(payload)
            self.enrich(batch)
            merged = merge_transactions(existing, batch)
        return ImportResult(
            transactions=merged,
            batch=batch,
            total_rows=len(batch),
            added_count=len(merged) - len(existing),
        )
