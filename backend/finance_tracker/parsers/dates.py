"""
Date parsing for statement and spreadsheet input.
"""

import re
from datetime import date, datetime
from typing import Optional, Sequence

# Tried in order; the first format that parses wins.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d/%m/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%m.%d.%Y",
    "%b %d, %Y",
    "%b %d %Y",
)

# Trailing time of day on spreadsheet and ISO values, e.g. "2024-01-15T00:00:00"
TIME_SUFFIX = re.compile(r"[T ]\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?$")

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


class DateParser:
    """Parses dates against an ordered list of strptime formats."""

    def __init__(
        self,
        formats: Sequence[str] = DATE_FORMATS,
        reference_year: Optional[int] = None
    ):
        self.formats = tuple(formats)
        self.reference_year = reference_year

    @property
    def year(self) -> int:
        return self.reference_year or date.today().year

    def parse(self, text: str) -> date:
        """Return the calendar date for ``text`` or raise ValueError."""
        value = " ".join(text.strip().split())
        if not value:
            raise ValueError("Date is empty")

        value = TIME_SUFFIX.sub("", value)

        for fmt in self.formats:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue

        raise ValueError(f"Invalid date format: {text}")

    def parse_month_day(self, month: str, day: str) -> date:
        """Resolve a year-less ``Nov 28`` style date against the reference year."""
        month_num = MONTHS.get(month[:3].lower())
        if month_num is None:
            raise ValueError(f"Unknown month: {month}")
        return date(self.year, month_num, int(day))
