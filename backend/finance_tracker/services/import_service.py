"""
Import service: statement parsing, batch validation and commit.

The flow is parse -> categorize -> flag in-statement duplicates, then the
user assigns accounts and resolves duplicates, then validate -> commit.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from finance_tracker.config import settings
from finance_tracker.exceptions import DuplicateTransactionError
from finance_tracker.parsers import get_parser
from finance_tracker.parsers.base import ParseResult
from finance_tracker.parsers.column_mapper import (
    ColumnMapping,
    infer_column_mapping,
    map_rows,
    mapping_from_dict,
)
from finance_tracker.parsers.dates import DateParser
from finance_tracker.parsers.text_parser import PROFILES, parse_statement_text
from finance_tracker.schemas.transaction import CandidateTransaction
from finance_tracker.services.categorization_service import Categorizer, categorize_candidates
from finance_tracker.services.deduplication_service import (
    DuplicatePolicy,
    ReconciliationResult,
    flag_statement_duplicates,
    reconcile,
)
from finance_tracker.services.transaction_store import TransactionStore
from finance_tracker.services.validation_service import (
    BatchValidationResult,
    validate_transaction_batch,
)

logger = logging.getLogger(__name__)

# Errors worth another attempt; anything else fails the candidate at once
TRANSIENT_ERRORS = (OperationalError, asyncio.TimeoutError, ConnectionError)

CreateFn = Callable[[CandidateTransaction], Awaitable[Any]]


@dataclass
class FilePreview:
    parse_result: ParseResult
    headers: List[str]
    mapping: ColumnMapping


@dataclass
class ImportResults:
    successful: List[Any] = field(default_factory=list)
    duplicates: List[CandidateTransaction] = field(default_factory=list)
    failed: List[Tuple[CandidateTransaction, str]] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        messages = []
        if self.successful:
            messages.append(f"Successfully imported {len(self.successful)} transactions")
        if self.duplicates:
            messages.append(f"Found {len(self.duplicates)} duplicate transactions")
        if self.failed:
            messages.append(f"Failed to import {len(self.failed)} transactions")
        return messages


def _date_parser() -> DateParser:
    return DateParser(reference_year=settings.statement_reference_year)


def _finish_candidates(
    result: ParseResult,
    categorizer: Optional[Categorizer] = None
) -> ParseResult:
    candidates = categorize_candidates(result.transactions, categorizer)
    return ParseResult(
        transactions=flag_statement_duplicates(candidates),
        errors=result.errors,
    )


def parse_text_import(
    text: str,
    profile_name: str = "multi-line",
    categorizer: Optional[Categorizer] = None
) -> ParseResult:
    """Tokenize pasted statement text into categorized candidates."""
    profile = PROFILES.get(profile_name)
    if profile is None:
        raise ValueError(f"Unknown statement profile: {profile_name}")

    result = parse_statement_text(text, profile, _date_parser())
    logger.info(
        "Parsed %d candidates from pasted text (%d errors)",
        len(result.transactions), len(result.errors)
    )
    return _finish_candidates(result, categorizer)


def parse_file_import(
    filename: str,
    content: bytes,
    mapping_override: Optional[Dict[str, Any]] = None,
    categorizer: Optional[Categorizer] = None
) -> FilePreview:
    """
    Read a CSV or XLSX statement and convert its rows with the inferred
    (or user-supplied) column mapping.
    """
    parser = get_parser(filename)
    if not parser:
        raise ValueError(f"No parser available for file: {filename}")

    headers, rows = parser.read_rows(content)
    if mapping_override:
        mapping = mapping_from_dict(mapping_override)
    else:
        mapping = infer_column_mapping(headers)

    missing = [
        c for c in (mapping.date_col, mapping.amount_col, mapping.description_col)
        if c not in headers
    ]
    if missing:
        raise ValueError(f"Columns not found in file: {', '.join(missing)}")

    if mapping.fallbacks:
        logger.warning("Guessed columns for %s in %s", ", ".join(mapping.fallbacks), filename)

    categorizer = categorizer or Categorizer()
    result = map_rows(rows, mapping, categorizer=categorizer, date_parser=_date_parser())
    logger.info(
        "Parsed %d candidates from %s (%d errors)",
        len(result.transactions), filename, len(result.errors)
    )
    return FilePreview(
        parse_result=_finish_candidates(result, categorizer),
        headers=headers,
        mapping=mapping,
    )


def validate_import(
    db: Session,
    candidates: Sequence[CandidateTransaction],
    policy: Optional[DuplicatePolicy] = None
) -> BatchValidationResult:
    """Validate candidates against the stored accounts and transactions."""
    store = TransactionStore(db)
    return validate_transaction_batch(
        candidates,
        store.list_accounts(),
        store.list_transactions(),
        policy,
    )


def reconcile_statement(
    db: Session,
    statement_lines: Sequence[CandidateTransaction],
    policy: Optional[DuplicatePolicy] = None
) -> ReconciliationResult:
    """Match statement lines against what has already been recorded."""
    recorded = TransactionStore(db).list_transactions()
    return reconcile(statement_lines, recorded, policy)


async def _create_with_retry(
    create: CreateFn,
    candidate: CandidateTransaction,
    timeout: float,
    attempts: int
) -> Any:
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(create(candidate), timeout=timeout)
        except TRANSIENT_ERRORS as e:
            if attempt == attempts:
                raise
            logger.warning(
                "Create attempt %d/%d failed for '%s': %s",
                attempt, attempts, candidate.description, e
            )
            await asyncio.sleep(0.1 * attempt)


async def commit_candidates(
    create: CreateFn,
    candidates: Sequence[CandidateTransaction],
    batch_size: Optional[int] = None,
    timeout: Optional[float] = None,
    attempts: Optional[int] = None
) -> ImportResults:
    """
    Create candidates in groups of ``batch_size``, concurrently within a
    group. Each create is its own unit of work: a failure is recorded for
    that candidate and never affects the others.
    """
    batch_size = batch_size or settings.import_batch_size
    timeout = timeout or settings.import_create_timeout_seconds
    attempts = max(1, attempts or settings.import_create_attempts)
    results = ImportResults()

    for start in range(0, len(candidates), batch_size):
        group = candidates[start:start + batch_size]
        outcomes = await asyncio.gather(
            *[_create_with_retry(create, c, timeout, attempts) for c in group],
            return_exceptions=True,
        )

        for candidate, outcome in zip(group, outcomes):
            if isinstance(outcome, DuplicateTransactionError):
                results.duplicates.append(candidate)
            elif isinstance(outcome, Exception):
                logger.error("Failed to import '%s': %s", candidate.description, outcome)
                results.failed.append((candidate, str(outcome) or type(outcome).__name__))
            else:
                results.successful.append(outcome)

    logger.info(
        "Import committed: %d successful, %d duplicates, %d failed",
        len(results.successful), len(results.duplicates), len(results.failed)
    )
    return results


async def commit_import(
    db: Session,
    candidates: Sequence[CandidateTransaction],
    allow_duplicates: bool = False
) -> ImportResults:
    """
    Commit candidates through the database-backed store. The store checks
    each candidate against its type's account rules and the current balance,
    so a rejected candidate lands in ``failed`` with the validation messages.
    """
    store = TransactionStore(db)

    async def create(candidate: CandidateTransaction):
        return await store.create_transaction_async(candidate, allow_duplicate=allow_duplicates)

    return await commit_candidates(create, candidates)
