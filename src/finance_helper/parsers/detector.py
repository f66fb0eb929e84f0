"""Statement schema inference and statement file discovery."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from finance_helper.models.mapping import ColumnMapping
from finance_helper.parsers.csv_parser import CSVParser
from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

# Currency written by the built-in templates; both export formats are NZD statements
DEFAULT_STATEMENT_CURRENCY = "NZD"

CREDIT_CARD_ACCOUNT = "credit card"
DEBIT_CARD_ACCOUNT = "debit card"

# Used when no template matches: columns literally named "date" and "amount"
GENERIC_MAPPING = ColumnMapping(date="date", amount="amount", template="generic")


@dataclass(frozen=True)
class StatementTemplate:
    """A known statement layout.

    Attributes:
        name: Template name, recorded on the mapping it produces.
        required: Headers that must all be present.
        excluded: Headers whose presence rules the template out.
        build: Builds the mapping from the header set and statement currency.
    """

    name: str
    required: frozenset[str]
    build: Callable[[set[str], str], ColumnMapping]
    excluded: frozenset[str] = frozenset()

    def matches(self, headers: set[str]) -> bool:
        return self.required <= headers and not (self.excluded & headers)


def _credit_card_mapping(headers: set[str], currency: str) -> ColumnMapping:
    # Card,Type,Amount,Details,TransactionDate,...
    return ColumnMapping(
        date="TransactionDate",
        amount="Amount",
        merchant="Details",
        type="Type" if "Type" in headers else None,
        date_format="DD/MM/YYYY",
        currency_fixed=currency,
        account="Card" if "Card" in headers else None,
        account_fixed=CREDIT_CARD_ACCOUNT,
        template="credit-card-statement",
    )


def _bank_mapping(headers: set[str], currency: str) -> ColumnMapping:
    # Type,Details,Particulars,Code,Reference,Amount,Date,...
    return ColumnMapping(
        date="Date",
        amount="Amount",
        merchant="Details",
        date_format="DD/MM/YYYY",
        currency_fixed=currency,
        account_fixed=DEBIT_CARD_ACCOUNT,
        template="bank-transactions",
    )


# Evaluated in order; the first matching template wins
KNOWN_TEMPLATES: list[StatementTemplate] = [
    StatementTemplate(
        name="credit-card-statement",
        required=frozenset({"TransactionDate", "Amount", "Details"}),
        build=_credit_card_mapping,
    ),
    StatementTemplate(
        name="bank-transactions",
        required=frozenset({"Date", "Amount", "Details"}),
        excluded=frozenset({"TransactionDate"}),
        build=_bank_mapping,
    ),
]


def infer_mapping(
    headers: Iterable[str],
    statement_currency: str = DEFAULT_STATEMENT_CURRENCY,
) -> ColumnMapping | None:
    """Select a column mapping from the known templates.

    Args:
        headers: Header names of the CSV (order irrelevant; trimmed here).
        statement_currency: Currency recorded as the template's fixed currency.

    Returns:
        Mapping of the first matching template, or None.
    """
    header_set = {h.strip() for h in headers}
    for template in KNOWN_TEMPLATES:
        if template.matches(header_set):
            logger.debug(f"Headers matched template {template.name}")
            return template.build(header_set, statement_currency)
    return None


def resolve_mapping(
    headers: Iterable[str],
    supplied: ColumnMapping | None = None,
    statement_currency: str = DEFAULT_STATEMENT_CURRENCY,
) -> ColumnMapping:
    """Choose the mapping used to normalize a CSV.

    A supplied mapping is used as long as its date and amount columns exist.
    A stale supplied mapping is replaced by an inferred one when inference
    succeeds. Without either, the generic ``date``/``amount`` mapping is used;
    rows that do not fit it are dropped downstream.

    Args:
        headers: Header names of the CSV.
        supplied: Mapping requested by the caller, if any.
        statement_currency: Fixed currency for template mappings.

    Returns:
        The mapping to use (never None).
    """
    header_list = [h.strip() for h in headers]

    if supplied is None:
        inferred = infer_mapping(header_list, statement_currency)
        if inferred is not None:
            return inferred
        logger.info(f"No statement template matched headers {header_list}; using generic mapping")
        return GENERIC_MAPPING

    if header_list and not supplied.matches_headers(header_list):
        inferred = infer_mapping(header_list, statement_currency)
        if inferred is not None:
            logger.info(
                f"Supplied mapping ({supplied.date}/{supplied.amount}) does not fit the "
                f"headers; using template {inferred.template}"
            )
            return inferred
        logger.warning(
            f"Supplied mapping ({supplied.date}/{supplied.amount}) does not fit headers "
            f"{header_list} and no template matched"
        )
    return supplied


def discover_files(paths: Iterable[Path], parser: CSVParser | None = None) -> list[Path]:
    """Expand files and directories into the statement files to import.

    Directories are searched recursively. Files reached through symlinks
    pointing outside the searched directory are skipped.

    Args:
        paths: Files and/or directories given by the user.
        parser: Parser used to check candidate files.

    Returns:
        Parseable files, directory contents sorted by name.
    """
    parser = parser or CSVParser()
    files: list[Path] = []

    for path in paths:
        if path.is_file():
            if parser.can_parse(path):
                files.append(path)
            else:
                logger.warning(f"Not a CSV statement, skipping: {path}")
            continue

        if not path.is_dir():
            logger.warning(f"Path not found: {path}")
            continue

        resolved_directory = path.resolve()
        found: list[Path] = []
        for file_path in path.rglob("*"):
            if not file_path.is_file() or not parser.can_parse(file_path):
                continue
            try:
                file_path.resolve().relative_to(resolved_directory)
            except ValueError:
                logger.warning(
                    f"Skipping file outside target directory (symlink traversal): {file_path}"
                )
                continue
            found.append(file_path)

        found.sort(key=lambda p: p.name.lower())
        files.extend(found)

    logger.info(f"Discovered {len(files)} statement files")
    return files
