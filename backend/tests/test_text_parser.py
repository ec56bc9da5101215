"""Tests for pasted statement text parsing."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.models.transaction import TransactionType
from finance_tracker.parsers.dates import DateParser
from finance_tracker.parsers.text_parser import (
    SINGLE_LINE_STATEMENT,
    TokenizerProfile,
    parse_statement_text,
)

DATES = DateParser(reference_year=2024)


class TestMultiLineStatement:
    """Test the one-field-per-line layout."""

    def test_expense_and_credit(self):
        """A Credit line turns the record into income."""
        text = "Nov 28\nAMAZON MARKETPLACE\n$45.23\nNov 29\nCredit\nREFUND FROM AMAZON\n$10.00"
        result = parse_statement_text(text, date_parser=DATES)

        assert result.errors == []
        assert len(result.transactions) == 2

        first, second = result.transactions
        assert first.date == date(2024, 11, 28)
        assert first.amount == Decimal("45.23")
        assert first.type == TransactionType.expense
        assert first.description == "AMAZON MARKETPLACE"

        assert second.date == date(2024, 11, 29)
        assert second.amount == Decimal("10.00")
        assert second.type == TransactionType.income
        assert second.description == "REFUND FROM AMAZON"

    def test_description_lines_are_joined(self):
        """Several text lines make one description."""
        text = "Dec 1\nSQ *COFFEE\nSEATTLE WA\n$4.50"
        result = parse_statement_text(text, date_parser=DATES)
        assert result.transactions[0].description == "SQ *COFFEE SEATTLE WA"

    def test_negative_amount_is_magnitude(self):
        """Sign never survives; type carries direction."""
        text = "Dec 1\nSTORE\n-$1,234.56"
        txn = parse_statement_text(text, date_parser=DATES).transactions[0]
        assert txn.amount == Decimal("1234.56")
        assert txn.type == TransactionType.expense

    def test_negative_credit_is_expense(self):
        """A credit keyword with a negative number stays an expense."""
        text = "Dec 1\nCredit\nADJUSTMENT\n-5.00"
        txn = parse_statement_text(text, date_parser=DATES).transactions[0]
        assert txn.type == TransactionType.expense
        assert txn.amount == Decimal("5.00")

    def test_missing_description_gets_placeholder(self):
        """No description lines yields the placeholder name."""
        result = parse_statement_text("Jan 5\n$12.00", date_parser=DATES)
        assert result.transactions[0].description == "Unnamed Transaction"

    def test_record_without_amount_is_reported(self):
        """A record lacking an amount is dropped with an error."""
        text = "Nov 28\nNO AMOUNT HERE\nNov 29\nSTORE\n$3.00"
        result = parse_statement_text(text, date_parser=DATES)
        assert len(result.transactions) == 1
        assert result.transactions[0].description == "STORE"
        assert result.errors == ["Line 1: Transaction is missing an amount"]

    def test_trailing_record_without_amount_is_reported(self):
        """End of input flushes the open record."""
        result = parse_statement_text("Nov 28\nSTORE", date_parser=DATES)
        assert result.transactions == []
        assert len(result.errors) == 1

    def test_second_amount_is_reported(self):
        """Only the first amount of a record is used."""
        text = "Nov 28\nSTORE\n$3.00\n$4.00"
        result = parse_statement_text(text, date_parser=DATES)
        assert result.transactions[0].amount == Decimal("3.00")
        assert len(result.errors) == 1
        assert "Extra amount" in result.errors[0]

    def test_header_lines_before_first_date_skipped(self):
        """Lines before the first date are not transactions."""
        text = "Recent activity\nPending\nNov 28\nSTORE\n$3.00"
        result = parse_statement_text(text, date_parser=DATES)
        assert len(result.transactions) == 1
        assert result.errors == []

    def test_amount_before_any_date_is_reported(self):
        """An orphan amount is an error, not a transaction."""
        result = parse_statement_text("$9.99\nNov 28\nSTORE\n$3.00", date_parser=DATES)
        assert len(result.transactions) == 1
        assert result.errors == ["Line 1: Amount '$9.99' has no date"]

    def test_zero_amount_is_reported(self):
        """Zero amounts are not valid transactions."""
        result = parse_statement_text("Nov 28\nSTORE\n$0.00", date_parser=DATES)
        assert result.transactions == []
        assert len(result.errors) == 1

    def test_invalid_date_skips_record(self):
        """An impossible day is reported and its lines ignored."""
        text = "Feb 30\nSTORE\n$3.00\nMar 1\nOTHER\n$4.00"
        result = parse_statement_text(text, date_parser=DATES)
        assert [t.description for t in result.transactions] == ["OTHER"]
        assert result.errors == ["Line 1: Invalid date 'Feb 30'"]

    def test_markdown_emphasis_stripped(self):
        """Bold markers from pasted pages are ignored."""
        text = "**Nov 28**\n**STORE**\n**$3.00**"
        result = parse_statement_text(text, date_parser=DATES)
        assert result.transactions[0].description == "STORE"
        assert result.transactions[0].amount == Decimal("3.00")

    def test_blank_lines_ignored(self):
        """Blank lines never reach the state machine."""
        text = "\n\nNov 28\n\nSTORE\n\n$3.00\n\n"
        result = parse_statement_text(text, date_parser=DATES)
        assert len(result.transactions) == 1

    def test_malformed_input_never_raises(self):
        """Garbage in, errors out."""
        result = parse_statement_text("%%%\n$$$\n12.3.4\nNov", date_parser=DATES)
        assert result.transactions == []

    def test_line_numbers_recorded(self):
        """Each candidate remembers where its record started."""
        text = "Nov 28\nA\n$1.00\nNov 29\nB\n$2.00"
        result = parse_statement_text(text, date_parser=DATES)
        assert [t.line for t in result.transactions] == [1, 4]


class TestSingleLineStatement:
    """Test the one-transaction-per-line layout."""

    def test_full_date_lines(self):
        """Date, description and amount come from one line."""
        text = "11/28/2024 AMAZON MARKETPLACE $45.23\n2024-11-29 TRADER JOES 12.10"
        result = parse_statement_text(text, SINGLE_LINE_STATEMENT, DATES)

        assert result.errors == []
        assert [t.date for t in result.transactions] == [date(2024, 11, 28), date(2024, 11, 29)]
        assert result.transactions[0].description == "AMAZON MARKETPLACE"
        assert result.transactions[1].amount == Decimal("12.10")

    def test_last_amount_wins(self):
        """Statements put the transaction amount last."""
        text = "11/28/2024 STORE 10.00 25.00"
        txn = parse_statement_text(text, SINGLE_LINE_STATEMENT, DATES).transactions[0]
        assert txn.amount == Decimal("25.00")
        assert txn.description == "STORE 10.00"

    def test_upper_case_month_name(self):
        """Upper-case month names such as OCT parse like any other."""
        result = parse_statement_text("OCT 28, 2024 AMAZON MARKETPLACE $45.23", SINGLE_LINE_STATEMENT, DATES)

        assert result.errors == []
        assert result.transactions[0].date == date(2024, 10, 28)
        assert result.transactions[0].description == "AMAZON MARKETPLACE"

    def test_line_without_amount_reported(self):
        """A dated line with no amount is an error."""
        result = parse_statement_text("11/28/2024 STORE", SINGLE_LINE_STATEMENT, DATES)
        assert result.transactions == []
        assert result.errors == ["Line 1: No amount found in '11/28/2024 STORE'"]

    def test_line_without_date_reported(self):
        """An amount without a date is an error."""
        result = parse_statement_text("STORE $5.00", SINGLE_LINE_STATEMENT, DATES)
        assert result.transactions == []
        assert len(result.errors) == 1

    def test_line_with_neither_skipped(self):
        """Plain text lines are neither candidates nor errors."""
        result = parse_statement_text("Statement for John", SINGLE_LINE_STATEMENT, DATES)
        assert result.transactions == []
        assert result.errors == []

    def test_credit_keyword_profile(self):
        """A single-line profile may still mark credits."""
        profile = TokenizerProfile(line_grouping="single-line", credit_keyword="CR", date_granularity="full-date")
        txn = parse_statement_text("11/28/2024 REFUND CR 8.00", profile, DATES).transactions[0]
        assert txn.type == TransactionType.income
        assert txn.description == "REFUND"

    def test_month_day_granularity(self):
        """Year-less dates resolve against the reference year."""
        profile = TokenizerProfile(line_grouping="single-line", credit_keyword=None, date_granularity="month-day")
        txn = parse_statement_text("Nov 28 STORE $3.00", profile, DATES).transactions[0]
        assert txn.date == date(2024, 11, 28)
        assert txn.description == "STORE"


class TestProfiles:
    """Test profile validation."""

    def test_unknown_grouping_rejected(self):
        with pytest.raises(ValueError):
            TokenizerProfile(line_grouping="columns")

    def test_unknown_granularity_rejected(self):
        with pytest.raises(ValueError):
            TokenizerProfile(date_granularity="week")


class TestDateParser:
    """Test date format handling."""

    @pytest.mark.parametrize("text", [
        "2024-01-15",
        "01/15/2024",
        "01-15-2024",
        "01/15/24",
        "2024/01/15",
        "01.15.2024",
        "Jan 15, 2024",
        "Jan 15 2024",
        "2024-01-15T00:00:00",
        "2024-01-15 00:00:00",
    ])
    def test_supported_formats(self, text):
        assert DateParser().parse(text) == date(2024, 1, 15)

    def test_day_first_fallback(self):
        """Day-first dates parse when month-first cannot."""
        assert DateParser().parse("15/01/2024") == date(2024, 1, 15)

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            DateParser().parse("not a date")

    def test_empty_date_raises(self):
        with pytest.raises(ValueError):
            DateParser().parse("   ")
