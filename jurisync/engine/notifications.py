"""
Expiry Notifications
Picks contracts at a notification offset from their end date and drafts reminder
e-mails to the outbox directory, one text file per notice.
"""

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from jurisync.bus.events import bus, EVENT_NOTIFICATION_DRAFTED
from jurisync.config import config
from jurisync.engine.aggregator import to_money
from jurisync.engine.classifier import days_remaining, has_valid_dates
from jurisync.logging_config import log_call
from jurisync.models import Contract, EmailNotification, STATUS_DRAFT

logger = logging.getLogger(__name__)

# Draft storage
OUTBOX_DIR = Path(__file__).parent.parent.parent / "data" / "outbox"

# characters kept when a contract id goes into a file name
_UNSAFE_FILENAME_RE = re.compile(r'[^\w.-]')

TYPE_WARNING = 'expiry_warning'    # expires today
TYPE_REMINDER = 'expiry_reminder'  # expires in N days


def contracts_needing_notification(
    contracts: Iterable[Contract],
    as_of: Optional[date] = None,
    days: Optional[Sequence[int]] = None,
) -> List[Contract]:
    """Non-archived, non-draft contracts whose days until expiry is one of `days`."""
    as_of = as_of or date.today()
    offsets = set(config.NOTIFY_DAYS_BEFORE if days is None else days)
    return [
        c for c in contracts
        if not c.is_archived
        and c.status != STATUS_DRAFT
        and has_valid_dates(c)
        and days_remaining(c, as_of) in offsets
    ]


def generate_email_notification(contract: Contract, as_of: Optional[date] = None) -> EmailNotification:
    """Plain-text expiry notice addressed to the contract's responsible."""
    as_of = as_of or date.today()
    remaining = days_remaining(contract, as_of)
    expires_today = remaining == 0

    if expires_today:
        subject = f'URGENT: contract "{contract.name}" expires today'
        urgency = 'EXPIRES TODAY'
        action = 'immediate action is required to renew or terminate it.'
    else:
        unit = 'day' if remaining == 1 else 'days'
        subject = f'Reminder: contract "{contract.name}" expires in {remaining} {unit}'
        urgency = f'EXPIRES IN {remaining} {unit.upper()}'
        action = 'we recommend starting the renewal process.'

    value = to_money(contract.value) if contract.value is not None else None
    body = "\n".join([
        f"{urgency}: {contract.name}",
        "",
        f"Contract:            {contract.name}",
        f"Contracting company: {contract.contracting_company or '(not set)'}",
        f"Contracted party:    {contract.contracted_party or '(not set)'}",
        f"End date:            {contract.end_date.strftime('%d/%m/%Y')}",
        f"Value:               {config.CURRENCY} {value:,.2f}" if value is not None else "Value:               (not set)",
        f"Responsible:         {contract.internal_responsible or '(not set)'}",
        "",
        f"Action needed: this contract {urgency.lower()}; {action}",
        f"Open it at {config.API_URL}/contracts/{contract.id}",
        "",
        "This is an automatic message from JuriSync.",
    ])

    return EmailNotification(
        to=contract.responsible_email or '',
        subject=subject,
        body=body,
        contract_id=contract.id,
        type=TYPE_WARNING if expires_today else TYPE_REMINDER,
        days_until_expiry=remaining,
    )


@log_call
def write_notifications(
    contracts: Iterable[Contract],
    as_of: Optional[date] = None,
    outbox: Optional[Union[str, Path]] = None,
    days: Optional[Sequence[int]] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """
    Draft a notice for each contract due a notification.
    Contracts without a responsible e-mail are skipped with a warning.
    Notices that cannot be saved are logged and counted as failed.
    Returns: {'written', 'skipped', 'failed', 'notifications', 'paths'}
    """
    as_of = as_of or date.today()
    outbox = Path(outbox) if outbox else OUTBOX_DIR

    due = contracts_needing_notification(contracts, as_of, days)
    result = {'written': 0, 'skipped': 0, 'failed': 0, 'notifications': [], 'paths': []}

    for contract in due:
        notice = generate_email_notification(contract, as_of)
        if not notice.to:
            logger.warning(f"Contract {contract.id} has no responsible e-mail; notice skipped")
            result['skipped'] += 1
            continue

        result['notifications'].append(notice)
        if dry_run:
            continue

        outbox.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        path = outbox / f"notice_{_UNSAFE_FILENAME_RE.sub('_', str(contract.id))}_{timestamp}.txt"
        try:
            path.write_text(
                f"TO: {notice.to}\n"
                f"TYPE: {notice.type}\n"
                f"GENERATED: {datetime.now().isoformat(timespec='seconds')}\n"
                f"\nSUBJECT: {notice.subject}\n\n{notice.body}\n",
                encoding='utf-8',
            )
        except OSError as e:
            logger.error(f"Could not save notice for contract {contract.id} to {path}: {e}")
            result['failed'] += 1
            continue

        logger.info(f"Notice for contract {contract.id} saved to {path}")
        result['written'] += 1
        result['paths'].append(str(path))

        bus.emit(EVENT_NOTIFICATION_DRAFTED, {
            'contract_id': contract.id,
            'type': notice.type,
            'path': str(path),
        })

    return result
