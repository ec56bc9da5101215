"""
Deduplication service for transactions.

Two checks live here:

- ``generate_transaction_hash``: exact fingerprint used by the store to refuse
  a second copy of the same date/amount/description.
- ``check_for_duplicates``: fuzzy match of a statement candidate against the
  recorded transactions (amount, date window, description similarity).
"""

import hashlib
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from finance_tracker.config import settings


def _normalize(text: Optional[str]) -> str:
    return " ".join((text or "").split()).lower()


def generate_transaction_hash(
    txn_date: date,
    amount: Decimal,
    description: str
) -> str:
    """
    Generate SHA256 hash for exact duplicate detection.
    Uses date|amount|description
    """
    components = [
        txn_date.isoformat(),
        str(Decimal(amount).quantize(Decimal("0.01"))),
        _normalize(description),
    ]
    combined = "|".join(components)
    return hashlib.sha256(combined.encode()).hexdigest()


def string_similarity(first: str, second: str) -> float:
    """(max_len - levenshtein) / max_len over normalized text, in [0, 1]."""
    a, b = _normalize(first), _normalize(second)
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - Levenshtein.distance(a, b)) / max_len


@dataclass(frozen=True)
class DuplicatePolicy:
    """
    Matching policy for fuzzy duplicates.

    Amounts must be equal and dates at most ``window_days`` apart. When both
    sides have a description, their similarity must exceed
    ``similarity_threshold``; when either is blank, amount and date decide.
    """
    window_days: int = 5
    similarity_threshold: float = 0.8

    @classmethod
    def from_settings(cls) -> "DuplicatePolicy":
        return cls(
            window_days=settings.duplicate_window_days,
            similarity_threshold=settings.duplicate_similarity_threshold,
        )

    def matches(self, candidate: Any, existing: Any) -> bool:
        if candidate.date is None or candidate.amount is None:
            return False
        if existing.date is None or existing.amount is None:
            return False
        if Decimal(existing.amount) != Decimal(candidate.amount):
            return False
        if abs((existing.date - candidate.date).days) > self.window_days:
            return False

        new_description = _normalize(candidate.description)
        old_description = _normalize(existing.description)
        if new_description and old_description:
            return string_similarity(new_description, old_description) > self.similarity_threshold
        return True


@dataclass
class DuplicateCheck:
    is_duplicate: bool
    existing_transaction: Any = None


def check_for_duplicates(
    candidate: Any,
    existing_transactions: Sequence[Any],
    policy: Optional[DuplicatePolicy] = None
) -> DuplicateCheck:
    """Return the first existing transaction (list order) the candidate duplicates."""
    policy = policy or DuplicatePolicy.from_settings()
    for existing in existing_transactions:
        if policy.matches(candidate, existing):
            return DuplicateCheck(is_duplicate=True, existing_transaction=existing)
    return DuplicateCheck(is_duplicate=False)


def flag_statement_duplicates(candidates: Sequence[Any]) -> List[Any]:
    """
    Mark candidates that share a date and amount with another line of the
    same statement. Returns copies with ``potential_duplicate`` set.
    """
    groups = defaultdict(list)
    for index, candidate in enumerate(candidates):
        if candidate.date is not None and candidate.amount is not None:
            groups[(candidate.date, Decimal(candidate.amount))].append(index)

    flagged = {i for indexes in groups.values() if len(indexes) > 1 for i in indexes}
    return [
        c.model_copy(update={"potential_duplicate": i in flagged})
        for i, c in enumerate(candidates)
    ]


@dataclass
class ReconciliationResult:
    matched: List[Tuple[Any, Any]] = field(default_factory=list)
    unmatched: List[Any] = field(default_factory=list)

    @property
    def summary(self) -> dict:
        return {
            "total": len(self.matched) + len(self.unmatched),
            "matched": len(self.matched),
            "unmatched": len(self.unmatched),
        }


def reconcile(
    statement_lines: Sequence[Any],
    recorded: Sequence[Any],
    policy: Optional[DuplicatePolicy] = None
) -> ReconciliationResult:
    """
    Match statement lines against recorded transactions.

    Each recorded transaction matches at most one statement line, so two
    identical charges on a statement need two records.
    """
    policy = policy or DuplicatePolicy.from_settings()
    result = ReconciliationResult()
    available = list(recorded)

    for line in statement_lines:
        check = check_for_duplicates(line, available, policy)
        if check.is_duplicate:
            result.matched.append((line, check.existing_transaction))
            available.remove(check.existing_transaction)
        else:
            result.unmatched.append(line)

    return result
