"""
Contract Classifier
Derives a contract's effective status from its dates, stored status and archival flag.
Pure functions: the stored `status` field is never touched.
"""

from datetime import date, datetime
from typing import List, Optional

from jurisync.config import config
from jurisync.models import (
    Contract,
    STATUS_ACTIVE, STATUS_ARCHIVED, STATUS_DRAFT, STATUS_EXPIRED, STATUS_EXPIRING_SOON,
)


def has_valid_dates(contract: Contract) -> bool:
    """True when both dates are set and start_date <= end_date."""
    return (
        contract.start_date is not None
        and contract.end_date is not None
        and as_date(contract.start_date) <= as_date(contract.end_date)
    )


def days_remaining(contract: Contract, as_of: Optional[date] = None) -> Optional[int]:
    """Calendar days from as_of to end_date (negative once expired). None without an end date."""
    if contract.end_date is None:
        return None
    as_of = as_of or date.today()
    return (as_date(contract.end_date) - as_date(as_of)).days


def classify(
    contract: Contract,
    as_of: Optional[date] = None,
    reminder_window_days: Optional[int] = None,
) -> str:
    """
    Effective status of a contract at as_of (defaults to today).

    Precedence:
        archived flag  -> 'archived'
        stored draft   -> 'draft'
        invalid record -> 'draft'
        end < as_of    -> 'expired'
        within window  -> 'expiring_soon'
        otherwise      -> 'active'
    """
    if contract.is_archived:
        return STATUS_ARCHIVED
    if contract.status == STATUS_DRAFT:
        return STATUS_DRAFT
    if validate_contract(contract):
        return STATUS_DRAFT

    window = config.REMINDER_WINDOW_DAYS if reminder_window_days is None else reminder_window_days
    remaining = days_remaining(contract, as_of)

    if remaining < 0:
        return STATUS_EXPIRED
    if remaining <= window:
        return STATUS_EXPIRING_SOON
    return STATUS_ACTIVE


def validate_contract(contract: Contract) -> List[str]:
    """
    List the problems that make a record invalid. Empty list means valid.
    Invalid records classify as 'draft' and are left out of financial sums.
    """
    problems = []
    if not contract.id:
        problems.append('missing id')
    if contract.start_date is None:
        problems.append('missing start_date')
    if contract.end_date is None:
        problems.append('missing end_date')
    if contract.start_date is not None and contract.end_date is not None \
            and as_date(contract.start_date) > as_date(contract.end_date):
        problems.append('start_date after end_date')
    if contract.value is None:
        problems.append('missing value')
    elif contract.value < 0:
        problems.append('negative value')
    return problems


def is_valid_record(contract: Contract) -> bool:
    return not validate_contract(contract)


def as_date(value) -> date:
    # datetime is a date subclass; compare on the calendar day only
    return value.date() if isinstance(value, datetime) else value
