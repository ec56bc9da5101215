"""
CSV file parser.
"""

import csv
import io
from typing import List, Dict, Tuple, Optional
from decimal import Decimal, InvalidOperation
import re

from finance_tracker.parsers.base import BaseParser


def clean_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """Clean and parse amount string; parentheses mean negative"""
    if amount_str is None or not str(amount_str).strip():
        return None

    amount_str = str(amount_str).strip()

    if amount_str.startswith('(') and amount_str.endswith(')'):
        amount_str = '-' + amount_str[1:-1]

    amount_str = re.sub(r'[$,\s]', '', amount_str)

    # Trailing minus as printed by some card statements: 12.50-
    if amount_str.endswith('-') and not amount_str.startswith('-'):
        amount_str = '-' + amount_str[:-1]

    try:
        value = Decimal(amount_str)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


class CSVParser(BaseParser):
    """Parser for CSV bank/card exports"""

    def can_parse(self, filename: str) -> bool:
        return filename.lower().endswith('.csv')

    def read_rows(self, content: bytes) -> Tuple[List[str], List[Dict[str, str]]]:
        """Decode CSV content into headers and column-keyed rows"""
        text = content.decode('utf-8-sig')
        sample = text[:8192]

        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=',;\t|')
        except csv.Error:
            dialect = csv.excel

        reader = csv.reader(io.StringIO(text), dialect)
        headers = [h.strip() for h in next(reader, [])]

        rows = []
        for row in reader:
            if not row or all(cell.strip() == '' for cell in row):
                continue
            rows.append({
                header: (row[i].strip() if i < len(row) else '')
                for i, header in enumerate(headers)
            })

        return headers, rows
