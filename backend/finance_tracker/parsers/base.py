"""
Base parser class and shared parse result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Tuple

from finance_tracker.schemas.transaction import CandidateTransaction


@dataclass
class ParseResult:
    """Candidates extracted from raw input plus human-readable parse errors."""
    transactions: List[CandidateTransaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class BaseParser(ABC):
    """Base class for tabular file readers"""

    @abstractmethod
    def can_parse(self, filename: str) -> bool:
        """Check if this parser can handle the file"""
        pass

    @abstractmethod
    def read_rows(self, content: bytes) -> Tuple[List[str], List[Dict[str, str]]]:
        """
        Read file content and return (headers, rows).
        Each row maps column name to the cell text ('' for empty cells).
        """
        pass

    def get_preview(
        self,
        content: bytes,
        rows: int = 5
    ) -> Tuple[List[str], List[List[str]]]:
        """Return (headers, preview_rows) for mapping confirmation"""
        headers, data = self.read_rows(content)
        return headers, [[row.get(h, "") for h in headers] for row in data[:rows]]
