"""Tests for tabular column inference and row conversion."""

import io
import pytest
from datetime import date
from decimal import Decimal

from openpyxl import Workbook

from finance_tracker.models.transaction import TransactionType
from finance_tracker.parsers import get_parser, CSVParser, ExcelParser
from finance_tracker.parsers.column_mapper import (
    ColumnMapping,
    find_column,
    infer_column_mapping,
    map_rows,
)
from finance_tracker.parsers.csv_parser import clean_amount
from finance_tracker.services.categorization_service import Categorizer


class TestFindColumn:
    """Test keyword matching."""

    def test_case_insensitive_substring(self):
        assert find_column(["Posting Date", "Amt"], ["date"]) == "Posting Date"

    def test_first_column_in_order_wins(self):
        """Column order decides, not keyword order."""
        assert find_column(["Name", "Description"], ["description", "name"]) == "Name"

    def test_no_match(self):
        assert find_column(["foo", "bar"], ["date"]) is None


class TestInferColumnMapping:
    """Test best-effort mapping."""

    def test_standard_headers(self):
        mapping = infer_column_mapping(["Date", "Description", "Amount", "Category"])
        assert mapping.date_col == "Date"
        assert mapping.amount_col == "Amount"
        assert mapping.description_col == "Description"
        assert mapping.category_col == "Category"
        assert mapping.fallbacks == []

    def test_bank_export_headers(self):
        mapping = infer_column_mapping(["Transaction Date", "Memo", "Debit Value"])
        assert mapping.date_col == "Transaction Date"
        assert mapping.amount_col == "Debit Value"
        # "Transaction Date" contains "transaction" and comes first
        assert mapping.description_col == "Transaction Date"

    def test_accepts_rows(self):
        """The keys of the first row are the columns."""
        rows = [{"when": "x", "price": "1.00", "memo": "y"}]
        mapping = infer_column_mapping(rows)
        assert mapping.amount_col == "price"
        assert mapping.description_col == "memo"

    def test_fallback_to_first_column(self):
        """Unmatched fields degrade to the first column and are reported."""
        mapping = infer_column_mapping(["foo", "bar"])
        assert mapping.date_col == "foo"
        assert mapping.amount_col == "foo"
        assert set(mapping.fallbacks) == {"date", "amount", "description", "category"}

    def test_type_column_detected_separately(self):
        """A Type column next to Category is the direction column."""
        mapping = infer_column_mapping(["Date", "Description", "Amount", "Category", "Type"])
        assert mapping.category_col == "Category"
        assert mapping.type_col == "Type"

    def test_type_only_column_is_category(self):
        """Without a Category column, Type is read as the category."""
        mapping = infer_column_mapping(["Date", "Description", "Amount", "Type"])
        assert mapping.category_col == "Type"
        assert mapping.type_col is None

    @pytest.mark.parametrize("headers", [
        ["Date", "Description", "Amount", "Category", "Type"],
        ["Posted Date", "Details", "Amount"],
        ["foo", "bar"],
    ])
    def test_same_headers_same_mapping(self, headers):
        """Re-running inference on the same headers gives an equal mapping."""
        first = infer_column_mapping(headers)
        second = infer_column_mapping(list(headers))
        assert first == second
        assert first.fallbacks == second.fallbacks

    def test_rows_and_headers_agree(self):
        rows = [{"Posted Date": "2024-01-15", "Details": "X", "Amount": "1.00"}]
        assert infer_column_mapping(rows) == infer_column_mapping(["Posted Date", "Details", "Amount"])
        assert infer_column_mapping(rows).fallbacks == ["category"]

    def test_no_columns_raises(self):
        with pytest.raises(ValueError):
            infer_column_mapping([])


class TestMapRows:
    """Test row conversion."""

    def _mapping(self, **kwargs):
        defaults = dict(date_col="Date", amount_col="Amount", description_col="Description")
        defaults.update(kwargs)
        return ColumnMapping(**defaults)

    def test_converts_rows(self):
        rows = [{"Date": "01/15/2024", "Amount": "-$1,050.00", "Description": "RENT  PAYMENT"}]
        result = map_rows(rows, self._mapping())
        assert result.errors == []
        txn = result.transactions[0]
        assert txn.date == date(2024, 1, 15)
        assert txn.amount == Decimal("1050.00")
        assert txn.description == "RENT PAYMENT"
        assert txn.category == "Uncategorized"
        assert txn.type == TransactionType.expense
        assert txn.line == 1

    def test_bad_rows_reported_with_row_number(self):
        rows = [
            {"Date": "garbage", "Amount": "10.00", "Description": "A"},
            {"Date": "2024-01-15", "Amount": "abc", "Description": "B"},
            {"Date": "2024-01-15", "Amount": "0.00", "Description": "C"},
            {"Date": "2024-01-15", "Amount": "5.00", "Description": "D"},
        ]
        result = map_rows(rows, self._mapping())
        assert [t.description for t in result.transactions] == ["D"]
        assert result.errors[0].startswith("Row 1:")
        assert result.errors[1] == "Row 2: Invalid amount 'abc'"
        assert result.errors[2] == "Row 3: Amount must be greater than 0"

    def test_upper_case_month_date(self):
        rows = [{"Date": "OCT 28, 2024", "Amount": "45.23", "Description": "AMAZON MARKETPLACE"}]
        result = map_rows(rows, self._mapping())
        assert result.errors == []
        assert result.transactions[0].date == date(2024, 10, 28)

    def test_time_of_day_dropped(self):
        rows = [{"Date": "2024-01-15T00:00:00", "Amount": "5.00", "Description": "A"}]
        assert map_rows(rows, self._mapping()).transactions[0].date == date(2024, 1, 15)

    def test_empty_rows_skipped(self):
        rows = [{"Date": "", "Amount": "", "Description": ""}]
        result = map_rows(rows, self._mapping())
        assert result.transactions == []
        assert result.errors == []

    def test_category_and_type_columns_used(self):
        rows = [{"Date": "2024-01-15", "Amount": "20.00", "Description": "X", "Category": "Gifts", "Type": "income"}]
        result = map_rows(rows, self._mapping(category_col="Category", type_col="Type"))
        txn = result.transactions[0]
        assert txn.category == "Gifts"
        assert txn.type == TransactionType.income

    def test_categorizer_fills_gaps(self):
        rows = [{"Date": "2024-01-15", "Amount": "20.00", "Description": "NETFLIX.COM"}]
        result = map_rows(rows, self._mapping(), categorizer=Categorizer())
        assert result.transactions[0].category == "Subscriptions"

    def test_fallback_category_column_ignored(self):
        """A guessed category column must not copy the first column."""
        rows = [{"Date": "2024-01-15", "Amount": "20.00", "Description": "X"}]
        mapping = self._mapping(category_col="Date", fallbacks=["category"])
        assert map_rows(rows, mapping).transactions[0].category == "Uncategorized"


class TestCleanAmount:
    """Test amount cleaning."""

    @pytest.mark.parametrize("text,expected", [
        ("$1,234.56", Decimal("1234.56")),
        ("(50.00)", Decimal("-50.00")),
        ("12.50-", Decimal("-12.50")),
        (" -3.00 ", Decimal("-3.00")),
    ])
    def test_formats(self, text, expected):
        assert clean_amount(text) == expected

    @pytest.mark.parametrize("text", ["", None, "abc", "NaN", "Infinity"])
    def test_rejects(self, text):
        assert clean_amount(text) is None


class TestReaders:
    """Test CSV and XLSX readers."""

    def test_get_parser(self):
        assert isinstance(get_parser("statement.CSV"), CSVParser)
        assert isinstance(get_parser("statement.xlsx"), ExcelParser)
        assert get_parser("statement.pdf") is None

    def test_csv_rows(self):
        content = b"\xef\xbb\xbfDate,Description,Amount\n2024-01-15,COFFEE,4.50\n,,\n"
        headers, rows = CSVParser().read_rows(content)
        assert headers == ["Date", "Description", "Amount"]
        assert rows == [{"Date": "2024-01-15", "Description": "COFFEE", "Amount": "4.50"}]

    def test_csv_semicolon_delimiter(self):
        content = b"Date;Description;Amount\n2024-01-15;COFFEE;4.50\n2024-01-16;TEA;3.25\n"
        headers, rows = CSVParser().read_rows(content)
        assert headers == ["Date", "Description", "Amount"]
        assert rows[1]["Description"] == "TEA"

    def test_xlsx_rows(self):
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(["Date", "Description", "Amount"])
        sheet.append([date(2024, 1, 15), "COFFEE", 4.5])
        buffer = io.BytesIO()
        workbook.save(buffer)

        headers, rows = ExcelParser().read_rows(buffer.getvalue())
        assert headers == ["Date", "Description", "Amount"]
        assert rows == [{"Date": "2024-01-15", "Description": "COFFEE", "Amount": "4.50"}]

    def test_preview(self):
        content = b"Date,Description,Amount\n2024-01-15,COFFEE,4.50\n"
        headers, preview = CSVParser().get_preview(content)
        assert preview == [["2024-01-15", "COFFEE", "4.50"]]
