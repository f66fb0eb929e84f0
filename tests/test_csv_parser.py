"""Tests for CSV statement reading."""

from pathlib import Path
from unittest.mock import patch

import pytest

from finance_helper.parsers.base import ParseError
from finance_helper.parsers.csv_parser import CSVParser


class TestParseText:
    """Tests for CSVParser.parse_text."""

    def test_headers_and_rows(self) -> None:
        doc = CSVParser().parse_text("Date,Amount,Details\n15/03/2024,-4.50,Coffee\n")

        assert doc.headers == ["Date", "Amount", "Details"]
        assert doc.rows == [{"Date": "15/03/2024", "Amount": "-4.50", "Details": "Coffee"}]

    def test_headers_are_trimmed(self) -> None:
        doc = CSVParser().parse_text(" Date , Amount \n2024-01-01,1\n")
        assert doc.headers == ["Date", "Amount"]
        assert doc.rows[0]["Amount"] == "1"

    def test_byte_order_mark_is_stripped(self) -> None:
        doc = CSVParser().parse_text("\ufeffDate,Amount\n2024-01-01,1\n")
        assert doc.headers[0] == "Date"

    def test_blank_lines_are_skipped(self) -> None:
        doc = CSVParser().parse_text("\nDate,Amount\n\n2024-01-01,1\n,\n2024-01-02,2\n")
        assert len(doc.rows) == 2

    def test_quoted_commas(self) -> None:
        doc = CSVParser().parse_text('Date,Amount,Details\n2024-01-01,"1,234.50","Shop, Inc"\n')
        assert doc.rows[0]["Amount"] == "1,234.50"
        assert doc.rows[0]["Details"] == "Shop, Inc"

    def test_short_row_has_missing_cells(self) -> None:
        doc = CSVParser().parse_text("Date,Amount,Details\n2024-01-01\n")
        assert doc.rows[0] == {"Date": "2024-01-01", "Amount": None, "Details": None}

    def test_empty_text(self) -> None:
        doc = CSVParser().parse_text("")
        assert doc.headers == []
        assert doc.rows == []

    def test_row_limit(self) -> None:
        text = "Date,Amount\n" + "2024-01-01,1\n" * 3
        with patch("finance_helper.parsers.csv_parser.MAX_CSV_ROWS", 2):
            with pytest.raises(ParseError):
                CSVParser().parse_text(text)


class TestParseFile:
    """Tests for reading CSV files from disk."""

    def test_parse_file(self, tmp_path: Path) -> None:
        path = tmp_path / "statement.csv"
        path.write_text("Date,Amount,Details\n15/03/2024,-4.50,Coffee\n", encoding="utf-8")

        doc = CSVParser().parse(path)

        assert doc.source == "statement.csv"
        assert len(doc.rows) == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            CSVParser().parse(tmp_path / "missing.csv")

    def test_file_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.csv"
        path.write_text("Date,Amount\n2024-01-01,1\n", encoding="utf-8")
        with patch("finance_helper.parsers.csv_parser.MAX_CSV_FILE_SIZE", 5):
            with pytest.raises(ParseError) as exc_info:
                CSVParser().parse(path)
        assert exc_info.value.file_path == path

    def test_can_parse(self, tmp_path: Path) -> None:
        csv_file = tmp_path / "a.csv"
        csv_file.write_text("Date,Amount\n", encoding="utf-8")
        text_file = tmp_path / "a.txt"
        text_file.write_text("Date,Amount\n", encoding="utf-8")

        parser = CSVParser()
        assert parser.can_parse(csv_file)
        assert not parser.can_parse(text_file)
