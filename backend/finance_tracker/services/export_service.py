"""
CSV and XLSX export of recorded transactions.
"""

import csv
import io
from typing import Any, List, Sequence

from openpyxl import Workbook

EXPORT_HEADERS = ["Date", "Description", "Amount", "Category", "Type"]


def _row(txn: Any) -> List[str]:
    return [
        txn.date.isoformat(),
        txn.description,
        f"{txn.amount:.2f}",
        txn.category,
        txn.type.value,
    ]


def export_csv(transactions: Sequence[Any]) -> str:
    """Serialize transactions to CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)
    for txn in transactions:
        writer.writerow(_row(txn))
    return buffer.getvalue()


def export_xlsx(transactions: Sequence[Any]) -> bytes:
    """Serialize transactions to a single-sheet workbook."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Transactions"
    sheet.append(EXPORT_HEADERS)
    for txn in transactions:
        sheet.append(_row(txn))

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
