"""
Pasted statement text parser.

Statement text copied out of a card provider's web page arrives either one
field per line::

    Nov 28
    AMAZON MARKETPLACE
    $45.23
    Nov 29
    Credit
    REFUND FROM AMAZON
    $10.00

or one transaction per line (``11/28/2024 AMAZON MARKETPLACE $45.23``). Both
layouts run through the same tokenizer, selected by a ``TokenizerProfile``.
Amounts come out as non-negative magnitudes with the direction carried by the
transaction type.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Tuple

from finance_tracker.models.transaction import TransactionType
from finance_tracker.parsers.base import ParseResult
from finance_tracker.parsers.dates import DateParser
from finance_tracker.schemas.transaction import CandidateTransaction, UNNAMED_TRANSACTION

logger = logging.getLogger(__name__)

MULTI_LINE = "multi-line"
SINGLE_LINE = "single-line"
MONTH_DAY = "month-day"
FULL_DATE = "full-date"

_MONTH = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_MONEY = r"([-+])?\$?((?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})"

MONTH_DAY_LINE = re.compile(rf"^{_MONTH}\s*(\d{{1,2}})$", re.IGNORECASE)
MONTH_DAY_SEARCH = re.compile(rf"\b{_MONTH}\s+(\d{{1,2}})\b", re.IGNORECASE)
_FULL_DATE = (
    r"(\d{4}-\d{1,2}-\d{1,2}"
    r"|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}"
    rf"|(?:{_MONTH[1:-1]})\s\d{{1,2}},?\s\d{{4}})"
)
FULL_DATE_LINE = re.compile(rf"^{_FULL_DATE}$", re.IGNORECASE)
FULL_DATE_SEARCH = re.compile(rf"(?<![\d/.-]){_FULL_DATE}(?![\d/.-])", re.IGNORECASE)
AMOUNT_LINE = re.compile(rf"^{_MONEY}$")
AMOUNT_SEARCH = re.compile(rf"(?<![\w.,]){_MONEY}(?![\d,])")


@dataclass(frozen=True)
class TokenizerProfile:
    """Line-format conventions of one statement layout."""
    line_grouping: str = MULTI_LINE
    credit_keyword: Optional[str] = "Credit"
    date_granularity: str = MONTH_DAY

    def __post_init__(self):
        if self.line_grouping not in (MULTI_LINE, SINGLE_LINE):
            raise ValueError(f"Unknown line grouping: {self.line_grouping}")
        if self.date_granularity not in (MONTH_DAY, FULL_DATE):
            raise ValueError(f"Unknown date granularity: {self.date_granularity}")


MULTI_LINE_STATEMENT = TokenizerProfile()
SINGLE_LINE_STATEMENT = TokenizerProfile(
    line_grouping=SINGLE_LINE,
    credit_keyword=None,
    date_granularity=FULL_DATE,
)

PROFILES = {
    MULTI_LINE: MULTI_LINE_STATEMENT,
    SINGLE_LINE: SINGLE_LINE_STATEMENT,
}


def resolve_direction(value: Decimal, is_credit: bool) -> Tuple[Decimal, TransactionType]:
    """Turn a signed statement amount into (magnitude, type)."""
    if is_credit and value > 0:
        return value, TransactionType.income
    return abs(value), TransactionType.expense


def parse_money(sign: Optional[str], digits: str) -> Optional[Decimal]:
    try:
        value = Decimal(digits.replace(",", ""))
    except InvalidOperation:
        return None
    return -value if sign == "-" else value


def _clean_line(line: str) -> str:
    # Drops markdown emphasis around pasted values, e.g. **Nov 28**
    return re.sub(r"^\*+|\*+$", "", line.strip()).strip()


@dataclass
class _PendingRecord:
    line: int
    date: date
    amount: Optional[Decimal] = None
    is_credit: bool = False
    description_parts: List[str] = field(default_factory=list)


class StatementTextParser:
    """Tokenizes statement text into candidate transactions."""

    def __init__(
        self,
        profile: TokenizerProfile = MULTI_LINE_STATEMENT,
        date_parser: Optional[DateParser] = None
    ):
        self.profile = profile
        self.date_parser = date_parser or DateParser()

    def parse(self, text: str) -> ParseResult:
        result = ParseResult()
        lines = [
            (number, _clean_line(raw))
            for number, raw in enumerate(text.splitlines(), start=1)
        ]
        lines = [(number, line) for number, line in lines if line]

        if self.profile.line_grouping == MULTI_LINE:
            self._parse_grouped(lines, result)
        else:
            for number, line in lines:
                self._parse_single(number, line, result)

        logger.debug(
            "Parsed %d transactions with %d errors from %d lines",
            len(result.transactions), len(result.errors), len(lines)
        )
        return result

    def _is_credit_keyword(self, line: str) -> bool:
        keyword = self.profile.credit_keyword
        return keyword is not None and line.lower() == keyword.lower()

    def _match_date_line(self, line: str) -> Optional[re.Match]:
        pattern = MONTH_DAY_LINE if self.profile.date_granularity == MONTH_DAY else FULL_DATE_LINE
        return pattern.match(line)

    def _to_date(self, match: re.Match) -> date:
        if self.profile.date_granularity == MONTH_DAY:
            return self.date_parser.parse_month_day(match.group(1), match.group(2))
        return self.date_parser.parse(match.group(1))

    def _parse_grouped(self, lines: List[Tuple[int, str]], result: ParseResult) -> None:
        pending: Optional[_PendingRecord] = None
        skipping = False

        for number, line in lines:
            date_match = self._match_date_line(line)
            if date_match:
                if pending is not None:
                    self._finish(pending, result)
                    pending = None
                try:
                    pending = _PendingRecord(line=number, date=self._to_date(date_match))
                    skipping = False
                except ValueError:
                    result.errors.append(f"Line {number}: Invalid date '{line}'")
                    skipping = True
                continue

            if pending is None:
                if not skipping and AMOUNT_LINE.match(line):
                    result.errors.append(f"Line {number}: Amount '{line}' has no date")
                # Header lines before the first date are not transactions
                continue

            if self._is_credit_keyword(line):
                pending.is_credit = True
                continue

            amount_match = AMOUNT_LINE.match(line)
            if amount_match:
                value = parse_money(amount_match.group(1), amount_match.group(2))
                if pending.amount is not None:
                    result.errors.append(
                        f"Line {number}: Extra amount '{line}' ignored for transaction on line {pending.line}"
                    )
                else:
                    pending.amount = value
                continue

            pending.description_parts.append(line)

        if pending is not None:
            self._finish(pending, result)

    def _finish(self, pending: _PendingRecord, result: ParseResult) -> None:
        if pending.amount is None:
            result.errors.append(f"Line {pending.line}: Transaction is missing an amount")
            return
        if pending.amount == 0:
            result.errors.append(f"Line {pending.line}: Amount must be greater than 0")
            return

        amount, txn_type = resolve_direction(pending.amount, pending.is_credit)
        result.transactions.append(CandidateTransaction(
            date=pending.date,
            amount=amount,
            type=txn_type,
            description=" ".join(pending.description_parts) or UNNAMED_TRANSACTION,
            line=pending.line,
        ))

    def _parse_single(self, number: int, line: str, result: ParseResult) -> None:
        pattern = MONTH_DAY_SEARCH if self.profile.date_granularity == MONTH_DAY else FULL_DATE_SEARCH
        date_match = pattern.search(line)
        remainder = line
        if date_match:
            remainder = line[:date_match.start()] + " " + line[date_match.end():]

        amount_matches = list(AMOUNT_SEARCH.finditer(remainder))

        if not date_match and not amount_matches:
            return
        if not date_match:
            result.errors.append(f"Line {number}: No date found in '{line}'")
            return
        if not amount_matches:
            result.errors.append(f"Line {number}: No amount found in '{line}'")
            return

        try:
            txn_date = self._to_date(date_match)
        except ValueError:
            result.errors.append(f"Line {number}: Invalid date '{date_match.group(0)}'")
            return

        # Statements list the transaction amount last, after any reference numbers
        amount_match = amount_matches[-1]
        value = parse_money(amount_match.group(1), amount_match.group(2))
        if not value:
            result.errors.append(f"Line {number}: Amount must be greater than 0")
            return

        words = (remainder[:amount_match.start()] + " " + remainder[amount_match.end():]).split()
        keyword = self.profile.credit_keyword
        is_credit = False
        if keyword is not None:
            kept = [w for w in words if w.lower() != keyword.lower()]
            is_credit = len(kept) != len(words)
            words = kept

        amount, txn_type = resolve_direction(value, is_credit)
        result.transactions.append(CandidateTransaction(
            date=txn_date,
            amount=amount,
            type=txn_type,
            description=" ".join(words) or UNNAMED_TRANSACTION,
            line=number,
        ))


def parse_statement_text(
    text: str,
    profile: TokenizerProfile = MULTI_LINE_STATEMENT,
    date_parser: Optional[DateParser] = None
) -> ParseResult:
    """Parse pasted statement text. Never raises on malformed input."""
    return StatementTextParser(profile, date_parser).parse(text)
