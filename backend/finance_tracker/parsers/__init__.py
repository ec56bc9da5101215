"""
Statement and file parsers package.
"""

from finance_tracker.parsers.base import BaseParser, ParseResult
from finance_tracker.parsers.column_mapper import (
    ColumnMapping,
    find_column,
    infer_column_mapping,
    map_rows,
)
from finance_tracker.parsers.csv_parser import CSVParser, clean_amount
from finance_tracker.parsers.dates import DateParser, DATE_FORMATS
from finance_tracker.parsers.excel_parser import ExcelParser
from finance_tracker.parsers.text_parser import (
    TokenizerProfile,
    MULTI_LINE_STATEMENT,
    SINGLE_LINE_STATEMENT,
    PROFILES,
    parse_statement_text,
)


def get_parser(filename: str):
    """Get appropriate parser for file type"""
    parsers = [CSVParser(), ExcelParser()]
    for parser in parsers:
        if parser.can_parse(filename):
            return parser
    return None


__all__ = [
    'BaseParser',
    'ParseResult',
    'ColumnMapping',
    'find_column',
    'infer_column_mapping',
    'map_rows',
    'CSVParser',
    'clean_amount',
    'DateParser',
    'DATE_FORMATS',
    'ExcelParser',
    'TokenizerProfile',
    'MULTI_LINE_STATEMENT',
    'SINGLE_LINE_STATEMENT',
    'PROFILES',
    'parse_statement_text',
    'get_parser',
]
