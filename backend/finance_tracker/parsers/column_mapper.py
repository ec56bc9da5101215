"""
Column inference for tabular imports with unknown headers.

The mapping is a best-effort guess: callers show it to the user, who can
override any column before the rows are converted.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Iterable, Mapping, Sequence, Union, Any

from finance_tracker.models.transaction import TransactionType, UNCATEGORIZED
from finance_tracker.parsers.base import ParseResult
from finance_tracker.parsers.csv_parser import clean_amount
from finance_tracker.parsers.dates import DateParser
from finance_tracker.schemas.transaction import CandidateTransaction, UNNAMED_TRANSACTION

DATE_KEYWORDS = ("date", "timestamp", "time", "day")
AMOUNT_KEYWORDS = ("amount", "sum", "value", "price", "cost")
DESCRIPTION_KEYWORDS = ("description", "desc", "memo", "name", "transaction", "details")
CATEGORY_KEYWORDS = ("category", "type", "classification", "tag")
TYPE_KEYWORDS = ("type", "direction")


@dataclass
class ColumnMapping:
    date_col: str
    amount_col: str
    description_col: str
    category_col: Optional[str] = None
    type_col: Optional[str] = None
    # Fields that matched no keyword and were assigned the first column
    fallbacks: List[str] = field(default_factory=list)


def find_column(columns: Iterable[str], keywords: Sequence[str]) -> Optional[str]:
    """Return the first column whose name contains any keyword (case-insensitive)."""
    lowered = [k.lower() for k in keywords]
    for column in columns:
        name = column.lower()
        if any(keyword in name for keyword in lowered):
            return column
    return None


def _columns_of(source: Union[Sequence[str], Sequence[Mapping[str, Any]]]) -> List[str]:
    if not source:
        return []
    first = source[0]
    if isinstance(first, Mapping):
        return list(first.keys())
    return list(source)


def infer_column_mapping(
    source: Union[Sequence[str], Sequence[Mapping[str, Any]]]
) -> ColumnMapping:
    """Guess which columns hold date, amount, description and category.

    ``source`` is either the header list or the rows themselves (the keys of
    the first row are used). Raises ValueError when there are no columns.
    """
    columns = _columns_of(source)
    if not columns:
        raise ValueError("Cannot map columns: no columns found")

    fallbacks: List[str] = []

    def pick(name: str, keywords: Sequence[str]) -> str:
        column = find_column(columns, keywords)
        if column is None:
            fallbacks.append(name)
            return columns[0]
        return column

    date_col = pick("date", DATE_KEYWORDS)
    amount_col = pick("amount", AMOUNT_KEYWORDS)
    description_col = pick("description", DESCRIPTION_KEYWORDS)
    category_col = pick("category", CATEGORY_KEYWORDS)
    type_col = find_column([c for c in columns if c != category_col], TYPE_KEYWORDS)

    return ColumnMapping(
        date_col=date_col,
        amount_col=amount_col,
        description_col=description_col,
        category_col=category_col,
        type_col=type_col,
        fallbacks=fallbacks,
    )


def _parse_type(value: str) -> Optional[TransactionType]:
    for txn_type in TransactionType:
        if value.strip().lower() == txn_type.value.lower():
            return txn_type
    return None


def _cell(row: Mapping[str, Any], column: Optional[str]) -> str:
    if not column:
        return ""
    value = row.get(column)
    return "" if value is None else str(value).strip()


def map_rows(
    rows: Sequence[Mapping[str, Any]],
    mapping: ColumnMapping,
    categorizer=None,
    date_parser: Optional[DateParser] = None
) -> ParseResult:
    """Convert tabular rows into candidate transactions using ``mapping``.

    A guessed (fallback) category column is ignored so that the first column
    is never copied into the category. When ``categorizer`` is given it fills
    categories and types the row itself does not provide.
    """
    date_parser = date_parser or DateParser()
    category_col = None if "category" in mapping.fallbacks else mapping.category_col
    result = ParseResult()

    for index, row in enumerate(rows, start=1):
        date_text = _cell(row, mapping.date_col)
        amount_text = _cell(row, mapping.amount_col)
        description = " ".join(_cell(row, mapping.description_col).split())

        if not date_text and not amount_text and not description:
            continue

        row_errors: List[str] = []
        txn_date = None
        try:
            txn_date = date_parser.parse(date_text)
        except ValueError as e:
            row_errors.append(f"Row {index}: {e}")

        amount = clean_amount(amount_text)
        if amount is None:
            row_errors.append(f"Row {index}: Invalid amount '{amount_text}'")
        elif amount == 0:
            row_errors.append(f"Row {index}: Amount must be greater than 0")

        if row_errors:
            result.errors.extend(row_errors)
            continue

        category = _cell(row, category_col)
        txn_type = _parse_type(_cell(row, mapping.type_col))
        if categorizer is not None and (not category or txn_type is None):
            rule_category, rule_type = categorizer.categorize(description)
            category = category or rule_category
            txn_type = txn_type or rule_type

        result.transactions.append(CandidateTransaction(
            date=txn_date,
            amount=abs(amount),
            description=description or UNNAMED_TRANSACTION,
            category=category or UNCATEGORIZED,
            type=txn_type or TransactionType.expense,
            line=index,
        ))

    return result


def mapping_from_dict(data: Dict[str, Any]) -> ColumnMapping:
    """Build a mapping from a user-supplied override."""
    return ColumnMapping(
        date_col=data["date_col"],
        amount_col=data["amount_col"],
        description_col=data["description_col"],
        category_col=data.get("category_col"),
        type_col=data.get("type_col"),
        fallbacks=list(data.get("fallbacks") or []),
    )
