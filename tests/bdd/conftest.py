"""
Shared fixtures and step definitions for BDD tests.

- runner, mock_api, context: available to all scenario files in this directory
- no_logging: autouse, prevents log file creation during tests
- contract Given steps and the output Then steps: shared across feature files
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from pytest_bdd import given, then, parsers

from jurisync.models import Contract


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_api():
    """The REST client the CLI instantiates; steps set list_contracts.return_value."""
    with patch("jurisync.cli.main.ApiClient") as mock_cls:
        mock_cls.return_value.list_contracts.return_value = []
        yield mock_cls.return_value


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {}


@pytest.fixture(autouse=True)
def no_logging():
    with patch("jurisync.cli.main.configure_logging"):
        yield


# ---------------------------------------------------------------------------
# Shared Given steps: contracts served by the mocked API, dated from today
# ---------------------------------------------------------------------------

def _add_contract(context, mock_api, name, **kwargs):
    today = date.today()
    defaults = dict(
        id=name.lower().replace(" ", "-"),
        name=name,
        start_date=today - timedelta(days=60),
        end_date=today + timedelta(days=365),
        value=Decimal("1000.00"),
        internal_responsible="João Silva",
        responsible_email="joao@example.com",
    )
    defaults.update(kwargs)
    contracts = context.setdefault("contracts", [])
    contracts.append(Contract(**defaults))
    mock_api.list_contracts.return_value = contracts


@given("there are no contracts")
def no_contracts(context, mock_api):
    context["contracts"] = []
    mock_api.list_contracts.return_value = []


@given(parsers.parse('an active contract "{name}" ending in {days:d} days'))
def active_contract(context, mock_api, name, days):
    _add_contract(context, mock_api, name, end_date=date.today() + timedelta(days=days))


@given(parsers.parse('an active contract "{name}" ending in {days:d} days tagged "{tag}"'))
def tagged_contract(context, mock_api, name, days, tag):
    _add_contract(context, mock_api, name, end_date=date.today() + timedelta(days=days), tags=[tag])


@given(parsers.parse('an archived contract "{name}" ending in {days:d} days'))
def archived_contract(context, mock_api, name, days):
    _add_contract(context, mock_api, name, end_date=date.today() + timedelta(days=days), is_archived=True)


@given(parsers.parse('an active contract "{name}" worth "{value}"'))
def valued_contract(context, mock_api, name, value):
    _add_contract(context, mock_api, name, value=Decimal(value))


@given(parsers.parse('a contract "{name}" starting after it ends'))
def reversed_contract(context, mock_api, name):
    today = date.today()
    _add_contract(context, mock_api, name,
                  start_date=today + timedelta(days=30), end_date=today + timedelta(days=10))


# ---------------------------------------------------------------------------
# Shared Then steps
# ---------------------------------------------------------------------------

@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@then(parsers.parse('the output does not contain "{text}"'))
def output_lacks(context, text):
    assert text not in context["result"].output, (
        f"Did not expect {text!r} in output:\n{context['result'].output}"
    )
