"""
Excel (XLSX) file parser.
"""

import io
from datetime import date, datetime
from typing import List, Dict, Tuple, Any

from openpyxl import load_workbook

from finance_tracker.parsers.base import BaseParser


def _cell_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        # Spreadsheet currency cells come back as floats
        return f"{value:.2f}"
    return str(value).strip()


class ExcelParser(BaseParser):
    """Parser for XLSX workbooks; reads the first sheet"""

    def can_parse(self, filename: str) -> bool:
        return filename.lower().endswith(('.xlsx', '.xlsm'))

    def read_rows(self, content: bytes) -> Tuple[List[str], List[Dict[str, str]]]:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            values = sheet.iter_rows(values_only=True)
            header_row = next(values, None) or ()
            headers = [_cell_text(h) for h in header_row]

            rows = []
            for row in values:
                cells = [_cell_text(v) for v in row]
                if all(cell == '' for cell in cells):
                    continue
                rows.append({
                    header: (cells[i] if i < len(cells) else '')
                    for i, header in enumerate(headers)
                    if header
                })
        finally:
            workbook.close()

        return [h for h in headers if h], rows
