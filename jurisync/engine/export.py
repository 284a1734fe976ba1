"""
Contract Export
Writes filtered contract lists to CSV (via pandas) or JSON, under ExportOptions.
"""

import json
import logging
from dataclasses import asdict, replace
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from jurisync.bus.events import bus, EVENT_CONTRACTS_EXPORTED
from jurisync.engine.classifier import classify
from jurisync.engine.filters import filter_for_export
from jurisync.engine.records import contracts_to_dicts
from jurisync.logging_config import log_call
from jurisync.models import Contract, ExportOptions, STATUS_LABELS

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    ('name', 'Contract'),
    ('contracting_company', 'Contracting company'),
    ('contracted_party', 'Contracted party'),
    ('start_date', 'Start date'),
    ('end_date', 'End date'),
    ('value', 'Value'),
    ('internal_responsible', 'Responsible'),
    ('responsible_email', 'Responsible e-mail'),
    ('status', 'Status'),
    ('priority', 'Priority'),
    ('file_name', 'File'),
    ('created_at', 'Created'),
]


# =============================================================================
# PRESETS
# =============================================================================

def _month_bounds(as_of: date):
    start = as_of.replace(day=1)
    next_month = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
    return start, next_month - timedelta(days=1)


def preset(name: str, as_of: Optional[date] = None) -> ExportOptions:
    """Named export presets: all_contracts, active_only, expiring_contracts, monthly_report."""
    if name == 'all_contracts':
        return ExportOptions()
    if name == 'active_only':
        return ExportOptions(include_expiring_soon=False, include_expired=False,
                             include_draft=False, include_archived=False)
    if name == 'expiring_contracts':
        return ExportOptions(include_active=False, include_draft=False, include_archived=False)
    if name == 'monthly_report':
        start, end = _month_bounds(as_of or date.today())
        return ExportOptions(include_draft=False, include_archived=False,
                             date_from=start, date_to=end)
    raise ValueError(f"Unknown export preset '{name}'. Choose from: {', '.join(PRESETS)}")


PRESETS = ('all_contracts', 'active_only', 'expiring_contracts', 'monthly_report')


# =============================================================================
# RENDERERS
# =============================================================================

def _write(text: str, path: Optional[Union[str, Path]]) -> None:
    if path is None:
        return
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    logger.info(f"Export written to {path}")


@log_call
def export_csv(
    contracts: Iterable[Contract],
    options: Optional[ExportOptions] = None,
    path: Optional[Union[str, Path]] = None,
    as_of: Optional[date] = None,
) -> str:
    """CSV of the contracts passing `options`; status column holds the effective status label."""
    options = replace(options or ExportOptions(), format='csv')
    as_of = as_of or date.today()
    selected = filter_for_export(contracts, options, as_of)

    rows = []
    for c in selected:
        row = {}
        for attr, header in CSV_COLUMNS:
            value = getattr(c, attr)
            if attr == 'status':
                value = STATUS_LABELS[classify(c, as_of)]
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            elif value is not None and attr == 'value':
                value = str(value)
            row[header] = value
        rows.append(row)

    df = pd.DataFrame(rows, columns=[header for _, header in CSV_COLUMNS])
    text = df.to_csv(index=False)
    _write(text, path)

    bus.emit(EVENT_CONTRACTS_EXPORTED, {'format': 'csv', 'count': len(selected), 'path': str(path) if path else None})
    return text


@log_call
def export_json(
    contracts: Iterable[Contract],
    options: Optional[ExportOptions] = None,
    path: Optional[Union[str, Path]] = None,
    as_of: Optional[date] = None,
) -> str:
    """JSON document with export metadata and the selected contracts (camelCase, ISO dates)."""
    options = replace(options or ExportOptions(), format='json')
    as_of = as_of or date.today()
    selected = filter_for_export(contracts, options, as_of)

    records = contracts_to_dicts(selected)
    for record, c in zip(records, selected):
        record['effectiveStatus'] = classify(c, as_of)

    document = {
        'metadata': {
            'exportDate': datetime.now().isoformat(timespec='seconds'),
            'totalRecords': len(selected),
            'options': asdict(options),
        },
        'contracts': records,
    }
    text = json.dumps(document, indent=2, ensure_ascii=False, default=str)
    _write(text, path)

    bus.emit(EVENT_CONTRACTS_EXPORTED, {'format': 'json', 'count': len(selected), 'path': str(path) if path else None})
    return text
