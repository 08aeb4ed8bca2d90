"""Abstract base class for statement readers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from csv2ynab.utils.logging_config import get_logger

logger = get_logger(__name__)


class ParseError(Exception):
    """Exception raised when reading a statement file fails."""

    def __init__(self, message: str, file_path: Optional[Path] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            file_path: Optional path to the file that failed to parse.
        """
        self.file_path = file_path
        super().__init__(message)


class BaseParser(ABC):
    """Abstract base class for statement readers.

    Subclasses must implement:
    - parse(): Read a file into headers and records
    - supported_extensions: List of file extensions this parser handles
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return list of file extensions this parser supports.

        Returns:
            List of extensions like ['.csv', '.tsv'].
        """
        pass

    @property
    def name(self) -> str:
        """Return parser name for logging."""
        return self.__class__.__name__

    @abstractmethod
    def parse(self, file_path: Path, delimiter: Optional[str] = None) -> object:
        """Read a statement file.

        Args:
            file_path: Path to the file to parse.
            delimiter: Optional delimiter override.

        Raises:
            ParseError: If parsing fails.
            FileNotFoundError: If file doesn't exist.
        """
        pass

    def can_parse(self, file_path: Path) -> bool:
        """Check if the file extension is one this parser handles."""
        return self._check_extension(file_path)

    def _check_extension(self, file_path: Path) -> bool:
        """Check if file extension matches supported extensions.

        Args:
            file_path: Path to check.

        Returns:
            True if extension is supported.
        """
        return file_path.suffix.lower() in self.supported_extensions

    def _read_first_lines(self, file_path: Path, n_lines: int = 10) -> list[str]:
        """Read first N lines of a text file.

        Useful for format detection without reading entire file.

        Args:
            file_path: Path to the file.
            n_lines: Number of lines to read.

        Returns:
            List of first N lines.
        """
        lines = []
        try:
            with open(file_path, encoding="utf-8-sig", errors="replace") as f:
                for i, line in enumerate(f):
                    if i >= n_lines:
                        break
                    lines.append(line.rstrip("\n\r"))
        except OSError as e:
            logger.warning(f"Could not read first lines of {file_path}: {e}")
        return lines
