"""Abstract base class for statement file parsers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Optional, TypeVar

from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

DocumentT = TypeVar("DocumentT")


class ParseError(Exception):
    """Raised when a whole file cannot be read (never for a single bad row)."""

    def __init__(self, message: str, file_path: Optional[Path] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            file_path: Optional path to the file that failed to parse.
        """
        self.file_path = file_path
        super().__init__(message)


class BaseParser(ABC, Generic[DocumentT]):
    """Abstract base class for statement parsers.

    Subclasses must implement:
    - supported_extensions: file extensions this parser handles
    - can_parse(): cheap check whether a file looks parseable
    - parse(): read a file into a document
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return file extensions like ['.csv']."""

    @property
    def name(self) -> str:
        """Return parser name for logging."""
        return self.__class__.__name__

    @abstractmethod
    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file.

        Args:
            file_path: Path to the file to check.

        Returns:
            True if this parser can handle the file.
        """

    @abstractmethod
    def parse(self, file_path: Path) -> DocumentT:
        """Parse a file.

        Args:
            file_path: Path to the file to parse.

        Raises:
            ParseError: If the file as a whole cannot be parsed.
            FileNotFoundError: If file doesn't exist.
        """

    def _check_extension(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.supported_extensions

    def _read_first_line(self, file_path: Path) -> str:
        """Read the first non-blank line of a text file, or "" if unreadable."""
        try:
            with open(file_path, encoding="utf-8-sig", errors="replace") as f:
                for line in f:
                    if line.strip():
                        return line.rstrip("\n\r")
        except OSError as e:
            logger.warning(f"Could not read {file_path}: {e}")
        return ""
