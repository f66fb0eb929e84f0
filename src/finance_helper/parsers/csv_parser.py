"""CSV reader for bank and credit-card statement exports."""

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path

from finance_helper.parsers.base import BaseParser, ParseError
from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum CSV file size to prevent memory exhaustion (50 MB)
MAX_CSV_FILE_SIZE = 50 * 1024 * 1024

# Maximum number of data rows in one statement
MAX_CSV_ROWS = 500_000

# A row maps trimmed header -> cell text (None when the row is short)
Row = dict[str, str | None]


@dataclass
class CSVDocument:
    """Parsed CSV content prior to schema inference.

    Attributes:
        headers: Header names in file order, trimmed.
        rows: Data rows keyed by header.
        source: Name of the file or stream the text came from.
    """

    headers: list[str]
    rows: list[Row] = field(default_factory=list)
    source: str = ""


class CSVParser(BaseParser[CSVDocument]):
    """Reads comma-delimited statement exports with a header line."""

    @property
    def supported_extensions(self) -> list[str]:
        return [".csv"]

    def can_parse(self, file_path: Path) -> bool:
        """Check extension and that the first line looks like a comma-separated header."""
        if not self._check_extension(file_path):
            return False
        return "," in self._read_first_line(file_path)

    def parse(self, file_path: Path) -> CSVDocument:
        """Read a CSV file from disk.

        Args:
            file_path: Path to the CSV file.

        Returns:
            The parsed document.

        Raises:
            ParseError: If the file is too large or not valid CSV.
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_size = file_path.stat().st_size
        if file_size > MAX_CSV_FILE_SIZE:
            raise ParseError(
                f"File too large ({file_size / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_CSV_FILE_SIZE / 1024 / 1024:.0f} MB",
                file_path,
            )

        text = file_path.read_text(encoding="utf-8-sig", errors="replace")
        try:
            return self.parse_text(text, source=file_path.name)
        except ParseError as e:
            e.file_path = file_path
            raise

    def parse_text(self, text: str, source: str = "") -> CSVDocument:
        """Parse CSV text whose first non-empty line is the header.

        Blank lines are skipped. Header names are trimmed so templates can
        match them exactly.

        Args:
            text: UTF-8 decoded CSV content.
            source: Label for log messages.

        Returns:
            The parsed document (no headers and no rows for empty input).

        Raises:
            ParseError: On malformed quoting or too many rows.
        """
        text = text.lstrip("\ufeff")
        reader = csv.reader(io.StringIO(text, newline=""))

        headers: list[str] = []
        rows: list[Row] = []
        try:
            for record in reader:
                if not record or all(not cell.strip() for cell in record):
                    continue
                if not headers:
                    headers = [cell.strip() for cell in record]
                    continue
                if len(rows) >= MAX_CSV_ROWS:
                    raise ParseError(
                        f"{source or 'CSV input'} exceeds maximum row limit "
                        f"({MAX_CSV_ROWS:,} rows). Split it into smaller files."
                    )
                rows.append(
                    {
                        header: record[i] if i < len(record) else None
                        for i, header in enumerate(headers)
                    }
                )
        except csv.Error as e:
            raise ParseError(f"Malformed CSV in {source or 'input'}: {e}") from e

        logger.debug(f"Read {len(rows)} rows with headers {headers} from {source or 'text'}")
        return CSVDocument(headers=headers, rows=rows, source=source)
