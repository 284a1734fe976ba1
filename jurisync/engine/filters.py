"""
Contract Filter
Narrows a contract collection by a sparse ContractFilters query.
Single pass, stable order, input never mutated.
"""

from datetime import date
from typing import Iterable, List, Optional

from jurisync.engine.classifier import classify, has_valid_dates, as_date
from jurisync.models import (
    Contract, ContractFilters, ExportOptions,
    STATUS_ACTIVE, STATUS_ARCHIVED, STATUS_DRAFT, STATUS_EXPIRED, STATUS_EXPIRING_SOON,
)


def normalize_key(value: Optional[str]) -> str:
    """Identity used for tag comparison and grouping: trimmed and case-folded."""
    if value is None:
        return ''
    return str(value).strip().casefold()


def _matches_search(contract: Contract, needle: str) -> bool:
    haystacks = (
        contract.name,
        contract.description,
        contract.contracting_company,
        contract.contracted_party,
    )
    return any(needle in str(text).casefold() for text in haystacks if text is not None)


def _overlaps(contract: Contract, range_start: Optional[date], range_end: Optional[date]) -> bool:
    """Contract [start_date, end_date] overlaps the (possibly open-ended) filter range."""
    if not has_valid_dates(contract):
        return False
    if range_start is not None and as_date(contract.end_date) < range_start:
        return False
    if range_end is not None and as_date(contract.start_date) > range_end:
        return False
    return True


def _matches(
    contract: Contract,
    filters: ContractFilters,
    as_of: Optional[date],
    reminder_window_days: Optional[int],
    search: Optional[str],
    tags: Optional[set],
) -> bool:
    if filters.status and classify(contract, as_of, reminder_window_days) != filters.status:
        return False
    if search and not _matches_search(contract, search):
        return False
    if tags and not tags & {normalize_key(t) for t in contract.tags}:
        return False
    if (filters.start_date or filters.end_date) and \
            not _overlaps(contract, filters.start_date, filters.end_date):
        return False
    if filters.responsible and contract.internal_responsible != filters.responsible:
        return False
    if filters.contracting_company and contract.contracting_company != filters.contracting_company:
        return False
    if filters.folder_id and contract.folder_id != filters.folder_id:
        return False
    if filters.priority and contract.priority != filters.priority:
        return False
    if filters.created_by and contract.created_by != filters.created_by:
        return False
    return True


def apply_filters(
    contracts: Iterable[Contract],
    filters: Optional[ContractFilters] = None,
    as_of: Optional[date] = None,
    reminder_window_days: Optional[int] = None,
) -> List[Contract]:
    """
    Return the contracts passing every populated filter dimension (logical AND).

    - status: compared against the effective status at as_of, not the stored field
    - search: case-insensitive substring of name, description, company or party
    - tags: match-any
    - start_date/end_date: interval overlap
    - responsible, contracting_company, folder_id, priority, created_by: equality
    """
    if filters is None or filters.is_empty():
        return list(contracts)

    as_of = as_of or date.today()
    search = filters.search.strip().casefold() if filters.search else None
    tags = {normalize_key(t) for t in filters.tags if normalize_key(t)} if filters.tags else None

    return [
        c for c in contracts
        if _matches(c, filters, as_of, reminder_window_days, search, tags)
    ]


def filter_for_export(
    contracts: Iterable[Contract],
    options: ExportOptions,
    as_of: Optional[date] = None,
    reminder_window_days: Optional[int] = None,
) -> List[Contract]:
    """Apply ExportOptions: status inclusion flags, folder and end_date range (inclusive)."""
    included = {
        STATUS_ACTIVE: options.include_active,
        STATUS_EXPIRING_SOON: options.include_expiring_soon,
        STATUS_EXPIRED: options.include_expired,
        STATUS_DRAFT: options.include_draft,
        STATUS_ARCHIVED: options.include_archived,
    }
    as_of = as_of or date.today()
    result = []
    for c in contracts:
        if not included[classify(c, as_of, reminder_window_days)]:
            continue
        if options.folder_id and c.folder_id != options.folder_id:
            continue
        if options.date_from or options.date_to:
            if c.end_date is None:
                continue
            end = as_date(c.end_date)
            if options.date_from and end < options.date_from:
                continue
            if options.date_to and end > options.date_to:
                continue
        result.append(c)
    return result
