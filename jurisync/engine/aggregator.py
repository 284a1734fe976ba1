"""
Aggregator - Dashboard statistics and chart-ready series.

All money is accumulated as Decimal. Invalid records (see classifier.validate_contract)
classify as 'draft' (unless archived), are counted under `invalid_contracts`
and are left out of every sum.

Monthly series are bucketed by start_date, the contractual start, for both
monthly_evolution and financial_by_month.
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from jurisync.config import config
from jurisync.engine.classifier import as_date, classify, validate_contract
from jurisync.engine.filters import normalize_key
from jurisync.models import (
    ChartData, Contract, DashboardStats, FinancialPoint, Folder, FolderSlice,
    MonthlyPoint, PrioritySlice, StatusSlice,
    FOLDER_COLORS, PRIORITIES, PRIORITY_COLORS, STATUSES, STATUS_COLORS, STATUS_LABELS,
)

logger = logging.getLogger(__name__)

UNFILED = 'unfiled'
UNASSIGNED = 'unassigned'

_CENT = Decimal('0.01')
_ZERO = Decimal('0')
_MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


# =============================================================================
# HELPERS
# =============================================================================

def to_money(value) -> Decimal:
    """Coerce a stored value to Decimal without going through binary float."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class _KeyCounter:
    """
    Key -> count reduction with one normalization rule for every grouping:
    trimmed, case-folded identity; the first spelling seen is kept as the label.
    """

    def __init__(self, missing_label: str):
        self._missing = missing_label
        self._labels: Dict[str, str] = {}
        self._counts: Dict[str, int] = {}

    def add(self, raw: Optional[str]):
        ident = normalize_key(raw)
        if not ident:
            ident, label = normalize_key(self._missing), self._missing
        else:
            label = str(raw).strip()
        self._labels.setdefault(ident, label)
        self._counts[ident] = self._counts.get(ident, 0) + 1

    def as_dict(self) -> Dict[str, int]:
        return {self._labels[k]: n for k, n in self._counts.items()}


def _month_index(d: date) -> int:
    return d.year * 12 + d.month - 1


def _month_key(index: int) -> Tuple[str, str]:
    year, month0 = divmod(index, 12)
    return f"{year:04d}-{month0 + 1:02d}", f"{_MONTH_ABBR[month0]} {year}"


def _folder_names(folders) -> Dict[str, str]:
    if not folders:
        return {}
    if isinstance(folders, Mapping):
        return dict(folders)
    return {f.id: f.name for f in folders if f.id}


# =============================================================================
# DASHBOARD STATS
# =============================================================================

def aggregate(
    contracts: Iterable[Contract],
    as_of: Optional[date] = None,
    reminder_window_days: Optional[int] = None,
) -> DashboardStats:
    """
    Single-pass reduction of a contract collection into DashboardStats.

    monthly_value covers valid contracts whose start_date falls in the calendar
    month of as_of. average_contract_value divides total_value by the number of
    valid contracts and is 0 when there are none.
    """
    as_of = as_of or date.today()
    current_month = _month_index(as_of)

    status_counts = {s: 0 for s in STATUSES}
    by_folder = _KeyCounter(UNFILED)
    by_responsible = _KeyCounter(UNASSIGNED)
    total = 0
    invalid = 0
    valid = 0
    total_value = _ZERO
    monthly_value = _ZERO

    for c in contracts:
        total += 1
        status_counts[classify(c, as_of, reminder_window_days)] += 1
        by_folder.add(c.folder_id)
        by_responsible.add(c.internal_responsible)

        problems = validate_contract(c)
        if problems:
            invalid += 1
            logger.warning(f"Invalid contract record id={c.id!r}: {', '.join(problems)}")
            continue

        amount = to_money(c.value)
        valid += 1
        total_value += amount
        if _month_index(as_date(c.start_date)) == current_month:
            monthly_value += amount

    average = (total_value / valid).quantize(_CENT, rounding=ROUND_HALF_UP) if valid else _ZERO

    logger.debug(f"aggregate: {total} contracts, {invalid} invalid, total_value={total_value}")
    return DashboardStats(
        total_contracts=total,
        active_contracts=status_counts['active'],
        expiring_soon_contracts=status_counts['expiring_soon'],
        expired_contracts=status_counts['expired'],
        draft_contracts=status_counts['draft'],
        archived_contracts=status_counts['archived'],
        invalid_contracts=invalid,
        total_value=total_value,
        monthly_value=monthly_value,
        average_contract_value=average,
        contracts_by_folder=by_folder.as_dict(),
        contracts_by_responsible=by_responsible.as_dict(),
    )


# =============================================================================
# CHART DATA
# =============================================================================

def month_window(as_of: date, months: int) -> List[Tuple[str, str]]:
    """(key, label) for the `months` calendar months ending with as_of's month, oldest first."""
    last = _month_index(as_of)
    return [_month_key(i) for i in range(last - months + 1, last + 1)]


def build_chart_data(
    contracts: Iterable[Contract],
    as_of: Optional[date] = None,
    months: Optional[int] = None,
    folders: Optional[Union[Mapping[str, str], Iterable[Folder]]] = None,
    reminder_window_days: Optional[int] = None,
) -> ChartData:
    """
    Chart-ready series for the dashboard.

    contracts_by_status / contracts_by_priority: one slice per value present, fixed order.
    monthly_evolution / financial_by_month: zero-filled, chronological, bucketed by start_date.
    contracts_by_folder: descending count, then label.
    """
    as_of = as_of or date.today()
    months = config.CHART_WINDOW_MONTHS if months is None else months
    if months < 1:
        raise ValueError(f"months must be at least 1, got {months}")

    window = month_window(as_of, months)
    first = _month_index(as_of) - months + 1
    month_counts = [0] * months
    month_values = [_ZERO] * months

    status_counts = {s: 0 for s in STATUSES}
    priority_counts: Dict[str, int] = {}
    by_folder = _KeyCounter(UNFILED)
    names = _folder_names(folders)

    for c in contracts:
        status_counts[classify(c, as_of, reminder_window_days)] += 1
        priority = c.priority or 'unset'
        priority_counts[priority] = priority_counts.get(priority, 0) + 1
        by_folder.add(names.get(c.folder_id, c.folder_id))

        if validate_contract(c):
            continue
        slot = _month_index(as_date(c.start_date)) - first
        if 0 <= slot < months:
            month_counts[slot] += 1
            month_values[slot] += to_money(c.value)

    status_slices = tuple(
        StatusSlice(status=s, label=STATUS_LABELS[s], count=n, color=STATUS_COLORS[s])
        for s, n in status_counts.items() if n
    )

    ordered_priorities = [p for p in PRIORITIES if p in priority_counts] + \
        sorted(p for p in priority_counts if p not in PRIORITIES)
    priority_slices = tuple(
        PrioritySlice(priority=p, count=priority_counts[p], color=PRIORITY_COLORS.get(p, '#6b7280'))
        for p in ordered_priorities
    )

    folder_counts = sorted(by_folder.as_dict().items(), key=lambda kv: (-kv[1], kv[0]))
    folder_slices = tuple(
        FolderSlice(folder=label, count=n, color=FOLDER_COLORS[i % len(FOLDER_COLORS)])
        for i, (label, n) in enumerate(folder_counts)
    )

    monthly = tuple(
        MonthlyPoint(month=key, label=label, contracts=month_counts[i], value=month_values[i])
        for i, (key, label) in enumerate(window)
    )
    financial = tuple(
        FinancialPoint(month=key, label=label, value=month_values[i])
        for i, (key, label) in enumerate(window)
    )

    return ChartData(
        contracts_by_status=status_slices,
        monthly_evolution=monthly,
        financial_by_month=financial,
        contracts_by_folder=folder_slices,
        contracts_by_priority=priority_slices,
    )
