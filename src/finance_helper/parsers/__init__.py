"""CSV reading and statement schema inference."""

from finance_helper.parsers.base import BaseParser, ParseError
from finance_helper.parsers.csv_parser import CSVDocument, CSVParser
from finance_helper.parsers.detector import (
    GENERIC_MAPPING,
    KNOWN_TEMPLATES,
    StatementTemplate,
    discover_files,
    infer_mapping,
    resolve_mapping,
)

__all__ = [
    "BaseParser",
    "ParseError",
    "CSVDocument",
    "CSVParser",
    "StatementTemplate",
    "KNOWN_TEMPLATES",
    "GENERIC_MAPPING",
    "infer_mapping",
    "resolve_mapping",
    "discover_files",
]
