"""
Unit tests for the Contract Filter (jurisync/engine/filters.py).
Pure Python, no mocking required.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from jurisync.engine.filters import apply_filters, filter_for_export, normalize_key
from jurisync.engine.records import contracts_from_payload
from jurisync.models import Contract, ContractFilters, ExportOptions


TODAY = date(2026, 10, 18)


def _contract(id, **kwargs):
    defaults = dict(
        id=id,
        name=f'Contract {id}',
        contracting_company='Tech Solutions Ltda',
        contracted_party='Digital Systems Inc',
        start_date=date(2026, 1, 1),
        end_date=date(2027, 12, 31),
        value=Decimal('1000.00'),
        internal_responsible='João Silva',
        priority='medium',
        created_by='u1',
    )
    defaults.update(kwargs)
    return Contract(**defaults)


@pytest.fixture
def portfolio():
    return [
        _contract('1', name='IT services', tags=['urgent', 'legal'], priority='high',
                  end_date=TODAY + timedelta(days=10), folder_id='f-legal'),
        _contract('2', name='Office lease', tags=['finance'], contracting_company='Imobiliária Central',
                  internal_responsible='Ana Costa', start_date=date(2025, 10, 1), end_date=date(2026, 9, 30)),
        _contract('3', name='Materials supply', description='Yearly steel supply', tags=[],
                  contracted_party='Fornecedora ABC', created_by='u2', folder_id='f-ops'),
        _contract('4', name='Consulting', status='draft', tags=['Urgent '], priority='low'),
        _contract('5', name='Old maintenance', is_archived=True, end_date=TODAY + timedelta(days=3)),
    ]


def ids(contracts):
    return [c.id for c in contracts]


# ---------------------------------------------------------------------------
# Identity and idempotence
# ---------------------------------------------------------------------------

def test_empty_filter_returns_everything_in_order(portfolio):
    result = apply_filters(portfolio, ContractFilters(), as_of=TODAY)
    assert result == portfolio
    assert result is not portfolio


def test_none_filter_returns_everything(portfolio):
    assert apply_filters(portfolio, None, as_of=TODAY) == portfolio


def test_blank_values_count_as_unset(portfolio):
    assert apply_filters(portfolio, ContractFilters(search='', tags=[]), as_of=TODAY) == portfolio


@pytest.mark.parametrize('criteria', [
    ContractFilters(status='expiring_soon'),
    ContractFilters(search='o'),
    ContractFilters(tags=['urgent']),
    ContractFilters(start_date=date(2026, 10, 1), end_date=date(2026, 10, 31)),
    ContractFilters(priority='medium', responsible='João Silva'),
])
def test_filter_is_idempotent(portfolio, criteria):
    once = apply_filters(portfolio, criteria, as_of=TODAY)
    assert apply_filters(once, criteria, as_of=TODAY) == once


def test_input_not_mutated(portfolio):
    snapshot = list(portfolio)
    apply_filters(portfolio, ContractFilters(status='expired'), as_of=TODAY)
    assert portfolio == snapshot


def test_accepts_any_iterable(portfolio):
    result = apply_filters(iter(portfolio), ContractFilters(priority='high'), as_of=TODAY)
    assert ids(result) == ['1']


# ---------------------------------------------------------------------------
# Status uses the effective status
# ---------------------------------------------------------------------------

def test_status_matches_effective_not_stored(portfolio):
    # contract 1 is stored as 'active' but ends in 10 days
    assert ids(apply_filters(portfolio, ContractFilters(status='expiring_soon'), as_of=TODAY)) == ['1']


def test_status_expired(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(status='expired'), as_of=TODAY)) == ['2']


def test_status_archived_and_draft(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(status='archived'), as_of=TODAY)) == ['5']
    assert ids(apply_filters(portfolio, ContractFilters(status='draft'), as_of=TODAY)) == ['4']


def test_status_respects_custom_window(portfolio):
    criteria = ContractFilters(status='expiring_soon')
    assert apply_filters(portfolio, criteria, as_of=TODAY, reminder_window_days=5) == []


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def test_search_is_case_insensitive_on_name(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(search='office LEASE'), as_of=TODAY)) == ['2']


def test_search_matches_description(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(search='steel'), as_of=TODAY)) == ['3']


def test_search_matches_company_and_party(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(search='imobiliária'), as_of=TODAY)) == ['2']
    assert ids(apply_filters(portfolio, ContractFilters(search='fornecedora'), as_of=TODAY)) == ['3']


def test_search_ignores_responsible(portfolio):
    assert apply_filters(portfolio, ContractFilters(search='Ana Costa'), as_of=TODAY) == []



def test_search_over_numeric_fields_from_loaded_records():
    loaded = contracts_from_payload([
        {'id': 1, 'name': 2026, 'contractingCompany': 12345},
        {'id': 2, 'name': 'Acme supply'},
    ])
    assert ids(apply_filters(loaded, ContractFilters(search='acme'), as_of=TODAY)) == ['2']
    assert ids(apply_filters(loaded, ContractFilters(search='23'), as_of=TODAY)) == ['1']


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

def test_tags_match_any():
    contracts = [_contract('a', tags=['urgent', 'legal']), _contract('b', tags=['finance'])]
    assert ids(apply_filters(contracts, ContractFilters(tags=['urgent']), as_of=TODAY)) == ['a']


def test_tags_match_any_of_several(portfolio):
    result = apply_filters(portfolio, ContractFilters(tags=['finance', 'legal']), as_of=TODAY)
    assert ids(result) == ['1', '2']


def test_tags_compare_trimmed_and_case_folded(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(tags=['URGENT']), as_of=TODAY)) == ['1', '4']


def test_contract_without_tags_never_matches_tag_filter(portfolio):
    assert '3' not in ids(apply_filters(portfolio, ContractFilters(tags=['legal']), as_of=TODAY))


# ---------------------------------------------------------------------------
# Date range overlap
# ---------------------------------------------------------------------------

def test_range_overlap_not_containment():
    c = _contract('x', start_date=date(2026, 1, 1), end_date=date(2026, 6, 30))
    criteria = ContractFilters(start_date=date(2026, 6, 1), end_date=date(2026, 12, 31))
    assert apply_filters([c], criteria, as_of=TODAY) == [c]


def test_range_touching_edges_overlaps():
    c = _contract('x', start_date=date(2026, 1, 1), end_date=date(2026, 6, 30))
    assert apply_filters([c], ContractFilters(start_date=date(2026, 6, 30)), as_of=TODAY) == [c]
    assert apply_filters([c], ContractFilters(end_date=date(2026, 1, 1)), as_of=TODAY) == [c]


def test_range_disjoint_excluded():
    c = _contract('x', start_date=date(2026, 1, 1), end_date=date(2026, 6, 30))
    assert apply_filters([c], ContractFilters(start_date=date(2026, 7, 1)), as_of=TODAY) == []
    assert apply_filters([c], ContractFilters(end_date=date(2025, 12, 31)), as_of=TODAY) == []


def test_invalid_dates_never_pass_date_filter():
    broken = _contract('x', start_date=date(2026, 5, 1), end_date=date(2026, 1, 1))
    missing = _contract('y', end_date=None)
    criteria = ContractFilters(start_date=date(2020, 1, 1))
    assert apply_filters([broken, missing], criteria, as_of=TODAY) == []


# ---------------------------------------------------------------------------
# Exact-match dimensions and AND combination
# ---------------------------------------------------------------------------

def test_exact_match_fields(portfolio):
    assert ids(apply_filters(portfolio, ContractFilters(responsible='Ana Costa'), as_of=TODAY)) == ['2']
    assert ids(apply_filters(portfolio, ContractFilters(folder_id='f-ops'), as_of=TODAY)) == ['3']
    assert ids(apply_filters(portfolio, ContractFilters(priority='low'), as_of=TODAY)) == ['4']
    assert ids(apply_filters(portfolio, ContractFilters(created_by='u2'), as_of=TODAY)) == ['3']
    assert ids(apply_filters(
        portfolio, ContractFilters(contracting_company='Imobiliária Central'), as_of=TODAY)) == ['2']


def test_responsible_is_exact_not_substring(portfolio):
    assert apply_filters(portfolio, ContractFilters(responsible='Ana'), as_of=TODAY) == []


def test_dimensions_combine_with_and(portfolio):
    criteria = ContractFilters(tags=['urgent'], priority='high')
    assert ids(apply_filters(portfolio, criteria, as_of=TODAY)) == ['1']
    criteria = ContractFilters(tags=['urgent'], priority='critical')
    assert apply_filters(portfolio, criteria, as_of=TODAY) == []


def test_filters_empty_collection():
    assert apply_filters([], ContractFilters(status='active'), as_of=TODAY) == []


# ---------------------------------------------------------------------------
# normalize_key
# ---------------------------------------------------------------------------

def test_normalize_key():
    assert normalize_key('  Legal ') == 'legal'
    assert normalize_key(None) == ''


# ---------------------------------------------------------------------------
# filter_for_export
# ---------------------------------------------------------------------------

def test_export_all_keeps_everything(portfolio):
    assert filter_for_export(portfolio, ExportOptions(), as_of=TODAY) == portfolio


def test_export_status_flags(portfolio):
    options = ExportOptions(include_draft=False, include_archived=False, include_expired=False)
    assert ids(filter_for_export(portfolio, options, as_of=TODAY)) == ['1', '3']


def test_export_folder(portfolio):
    assert ids(filter_for_export(portfolio, ExportOptions(folder_id='f-legal'), as_of=TODAY)) == ['1']


def test_export_end_date_range_inclusive(portfolio):
    options = ExportOptions(date_from=date(2026, 9, 30), date_to=date(2026, 10, 31))
    assert ids(filter_for_export(portfolio, options, as_of=TODAY)) == ['1', '2', '5']
