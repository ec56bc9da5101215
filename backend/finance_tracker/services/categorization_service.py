"""
Rule-based categorization of transaction descriptions.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from finance_tracker.models.transaction import TransactionType, UNCATEGORIZED
from finance_tracker.schemas.transaction import CandidateTransaction


@dataclass(frozen=True)
class CategoryRule:
    pattern: re.Pattern
    category: str
    type: TransactionType


def rule(pattern: str, category: str, txn_type: TransactionType) -> CategoryRule:
    return CategoryRule(re.compile(pattern, re.IGNORECASE), category, txn_type)


# Income rules come first so incoming transfers are not read as spending.
DEFAULT_RULES: Tuple[CategoryRule, ...] = (
    rule(r"payroll|salary|direct deposit", "Salary", TransactionType.income),
    rule(r"dividend|interest", "Investment Income", TransactionType.income),

    rule(r"restaurant|grubhub|doordash|uber eats|seamless", "Dining Out", TransactionType.expense),
    rule(r"grocery|trader|whole foods|safeway|food", "Groceries", TransactionType.expense),

    rule(r"uber|lyft|taxi|transit|metro|subway", "Transportation", TransactionType.expense),
    rule(r"gas|shell|chevron|exxon", "Gas", TransactionType.expense),

    rule(r"electric|water|gas bill|utility", "Utilities", TransactionType.expense),
    rule(r"netflix|spotify|hulu|disney\+|apple|subscription", "Subscriptions", TransactionType.expense),
    rule(r"internet|wifi|broadband|comcast|verizon|at&t", "Internet", TransactionType.expense),

    rule(r"amazon|target|walmart|costco", "Shopping", TransactionType.expense),

    rule(
        r"(?:(?:zelle|venmo|paypal).+(?:transfer|payment|send))"
        r"|(?:(?:transfer|payment|send).+(?:zelle|venmo|paypal))",
        "Transfer",
        TransactionType.transfer,
    ),
    rule(r"reimbursement|rebate|refund", "Reimbursement", TransactionType.reimbursement),
)


class Categorizer:
    """Maps a description to (category, type); the first matching rule wins."""

    def __init__(self, rules: Iterable[CategoryRule] = DEFAULT_RULES):
        self.rules: Tuple[CategoryRule, ...] = tuple(rules)

    def categorize(self, description: str) -> Tuple[str, TransactionType]:
        text = description or ""
        for category_rule in self.rules:
            if category_rule.pattern.search(text):
                return category_rule.category, category_rule.type
        return UNCATEGORIZED, TransactionType.expense


def categorize_candidates(
    candidates: Sequence[CandidateTransaction],
    categorizer: Categorizer = None
) -> List[CandidateTransaction]:
    """
    Fill in categories for uncategorized candidates.

    The rule's type replaces the default Expense type; an Income direction
    read from the statement itself is kept.
    """
    categorizer = categorizer or Categorizer()
    result = []
    for candidate in candidates:
        category, txn_type = categorizer.categorize(candidate.description)
        update = {}
        if not candidate.category or candidate.category == UNCATEGORIZED:
            update["category"] = category
        if candidate.type == TransactionType.expense and txn_type != TransactionType.expense:
            update["type"] = txn_type
        result.append(candidate.model_copy(update=update) if update else candidate)
    return result
