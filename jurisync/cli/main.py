#!/usr/bin/env python3
"""
JuriSync Terminal CLI
Command-line interface for contract listing, dashboards, exports and expiry notices.
"""

import logging
import click
from datetime import date
from typing import List, Optional

from jurisync.bus.events import bus, EVENT_CONTRACTS_IMPORTED
from jurisync.config import config
from jurisync.engine import aggregator, classifier, export, filters, importer, notifications
from jurisync.engine.api_client import ApiClient, ApiError
from jurisync.models import ContractFilters, Contract, STATUSES, PRIORITIES, STATUS_LABELS
from jurisync.logging_config import configure_logging, log_call

_DATE = click.DateTime(formats=['%Y-%m-%d'])

file_option = click.option(
    '--file', 'file', type=click.Path(dir_okay=False),
    help='Read contracts from a JSON/CSV/XLSX file instead of the API',
)


def _load_contracts(file: Optional[str]) -> List[Contract]:
    """Contracts from a file when given, otherwise from the REST API."""
    if file:
        return importer.load_contracts(file)
    return ApiClient().list_contracts()


def _money(value) -> str:
    return f"{config.CURRENCY} {value:,.2f}"


def _fail(message: str, exc: Exception, level: int = logging.ERROR):
    logging.getLogger("jurisync").log(level, f"{message}: {exc}")
    click.echo(f"Error: {exc}", err=True)


def _warn_invalid_rows(event_data):
    if event_data.get('invalid'):
        click.echo(
            f"⚠️  {event_data['invalid']} of {event_data['count']} records in "
            f"{event_data['path']} are invalid and count as drafts (see log)",
            err=True,
        )


@click.group()
def cli():
    """JuriSync - Contract Management"""
    configure_logging()
    bus.off(EVENT_CONTRACTS_IMPORTED, _warn_invalid_rows)
    bus.on(EVENT_CONTRACTS_IMPORTED, _warn_invalid_rows)


# =============================================================================
# CONTRACTS COMMANDS
# =============================================================================

@cli.group()
def contracts():
    """Browse contracts"""
    pass


@contracts.command('list')
@file_option
@click.option('--status', type=click.Choice(STATUSES), help='Effective status')
@click.option('--search', help='Text in name, description, company or party')
@click.option('--tag', 'tags', multiple=True, help='Tag (repeatable, matches any)')
@click.option('--priority', type=click.Choice(PRIORITIES), help='Priority')
@click.option('--responsible', help='Internal responsible (exact)')
@click.option('--company', help='Contracting company (exact)')
@click.option('--folder', 'folder_id', help='Folder ID')
@click.option('--created-by', help='Creator (exact)')
@click.option('--from', 'date_from', type=_DATE, help='Overlaps range starting YYYY-MM-DD')
@click.option('--to', 'date_to', type=_DATE, help='Overlaps range ending YYYY-MM-DD')
@log_call
def contracts_list(file, status, search, tags, priority, responsible, company, folder_id,
                   created_by, date_from, date_to):
    """List contracts matching the given filters"""
    criteria = ContractFilters(
        status=status,
        search=search,
        tags=list(tags) or None,
        priority=priority,
        responsible=responsible,
        contracting_company=company,
        folder_id=folder_id,
        created_by=created_by,
        start_date=date_from.date() if date_from else None,
        end_date=date_to.date() if date_to else None,
    )

    try:
        loaded = _load_contracts(file)
    except (ApiError, ValueError, OSError) as e:
        _fail("contracts_list failed to load contracts", e)
        return

    today = date.today()
    results = filters.apply_filters(loaded, criteria, as_of=today)

    if not results:
        click.echo("No contracts found.")
        return

    click.echo(f"\nFound {len(results)} contracts:\n")
    click.echo(f"{'ID':<10} {'Name':<34} {'Ends':<12} {'Value':>16} {'Status':<14}")
    click.echo("-" * 90)

    for c in results:
        ends = str(c.end_date) if c.end_date else '(no date)'
        value = _money(c.value) if c.value is not None else '(not set)'
        click.echo(
            f"{(c.id or '')[:8]:<10} {c.name[:32]:<34} {ends:<12} "
            f"{value:>16} {STATUS_LABELS[classifier.classify(c, today)]:<14}"
        )


@contracts.command('show')
@click.argument('contract_id')
@file_option
@log_call
def contracts_show(contract_id, file):
    """Show full contract details"""
    logger = logging.getLogger("jurisync")
    try:
        if file:
            contract = next((c for c in importer.load_contracts(file) if c.id == contract_id), None)
        else:
            contract = ApiClient().get_contract(contract_id)
    except ApiError as e:
        if e.status_code == 404:
            contract = None
        else:
            _fail(f"contracts_show failed for {contract_id}", e)
            return
    except (ValueError, OSError) as e:
        _fail(f"contracts_show failed for {contract_id}", e)
        return

    if not contract:
        logger.warning(f"contracts_show | contract_id={contract_id} not found")
        click.echo(f"Contract {contract_id} not found.", err=True)
        return

    today = date.today()
    remaining = classifier.days_remaining(contract, today)
    problems = classifier.validate_contract(contract)

    click.echo(f"\n{'='*80}")
    click.echo(f"CONTRACT {contract.id}: {contract.name}")
    click.echo(f"{'='*80}")
    click.echo(f"Company:      {contract.contracting_company or '(not set)'}")
    click.echo(f"Party:        {contract.contracted_party or '(not set)'}")
    click.echo(f"Period:       {contract.start_date or '?'} -> {contract.end_date or '?'}")
    click.echo(f"Value:        {_money(contract.value) if contract.value is not None else '(not set)'}")
    click.echo(f"Responsible:  {contract.internal_responsible or '(not set)'}"
               f"{f' <{contract.responsible_email}>' if contract.responsible_email else ''}")
    click.echo(f"Priority:     {contract.priority}")
    click.echo(f"Folder:       {contract.folder_id or '(unfiled)'}")
    click.echo(f"Tags:         {', '.join(contract.tags) or '(none)'}")
    click.echo(f"Stored:       {contract.status}")
    click.echo(f"Effective:    {STATUS_LABELS[classifier.classify(contract, today)]}")
    if remaining is not None:
        click.echo(f"Days left:    {remaining}")

    if problems:
        click.echo(f"\nInvalid record: {', '.join(problems)}")

    if contract.description:
        click.echo(f"\nDescription:\n{contract.description}")

    if contract.comments:
        click.echo(f"\n{'='*80}")
        click.echo("COMMENTS")
        click.echo(f"{'='*80}")
        for comment in contract.comments:
            click.echo(f"\n[{comment.created_at or '?'}] {comment.author or 'unknown'}")
            click.echo(f"  {comment.content[:200]}")

    click.echo()


# =============================================================================
# DASHBOARD COMMANDS
# =============================================================================

@cli.command('dashboard')
@file_option
@log_call
def dashboard(file):
    """Summary statistics for all contracts"""
    try:
        loaded = _load_contracts(file)
    except (ApiError, ValueError, OSError) as e:
        _fail("dashboard failed to load contracts", e)
        return

    stats = aggregator.aggregate(loaded)

    click.echo(f"\n{'='*60}")
    click.echo("DASHBOARD")
    click.echo(f"{'='*60}")
    click.echo(f"Total contracts:     {stats.total_contracts}")
    click.echo(f"  Active:            {stats.active_contracts}")
    click.echo(f"  Expiring soon:     {stats.expiring_soon_contracts}")
    click.echo(f"  Expired:           {stats.expired_contracts}")
    click.echo(f"  Draft:             {stats.draft_contracts}")
    click.echo(f"  Archived:          {stats.archived_contracts}")
    click.echo(f"Total value:         {_money(stats.total_value)}")
    click.echo(f"Started this month:  {_money(stats.monthly_value)}")
    click.echo(f"Average value:       {_money(stats.average_contract_value)}")

    if stats.invalid_contracts:
        click.echo(f"\n⚠️  {stats.invalid_contracts} invalid records excluded from totals (see log)")

    if stats.contracts_by_responsible:
        click.echo("\nBy responsible:")
        for name, count in sorted(stats.contracts_by_responsible.items(), key=lambda kv: (-kv[1], kv[0])):
            click.echo(f"  {name[:40]:<42} {count}")

    if stats.contracts_by_folder:
        click.echo("\nBy folder:")
        for folder, count in sorted(stats.contracts_by_folder.items(), key=lambda kv: (-kv[1], kv[0])):
            click.echo(f"  {folder[:40]:<42} {count}")

    click.echo()


@cli.command('charts')
@file_option
@click.option('--months', type=click.IntRange(min=1), default=None,
              help=f'Months in the monthly series (default: {config.CHART_WINDOW_MONTHS})')
@log_call
def charts(file, months):
    """Chart series as text: status, monthly evolution, financial by month"""
    try:
        loaded = _load_contracts(file)
    except (ApiError, ValueError, OSError) as e:
        _fail("charts failed to load contracts", e)
        return

    folders = None
    if not file:
        try:
            folders = ApiClient().list_folders()
        except ApiError as e:
            # slices fall back to folder ids
            _fail("charts could not load folder names", e, level=logging.WARNING)

    data = aggregator.build_chart_data(loaded, months=months, folders=folders)

    click.echo("\nBY STATUS")
    click.echo("-" * 40)
    if not data.contracts_by_status:
        click.echo("  (no contracts)")
    for s in data.contracts_by_status:
        click.echo(f"  {s.label:<16} {s.count:>6}  {s.color}")

    click.echo("\nBY PRIORITY")
    click.echo("-" * 40)
    for p in data.contracts_by_priority:
        click.echo(f"  {p.priority:<16} {p.count:>6}")

    click.echo("\nBY FOLDER")
    click.echo("-" * 40)
    for f in data.contracts_by_folder:
        click.echo(f"  {f.folder[:30]:<32} {f.count:>6}")

    click.echo("\nMONTHLY EVOLUTION (by start date)")
    click.echo("-" * 40)
    for point in data.monthly_evolution:
        click.echo(f"  {point.label:<10} {point.contracts:>5}  {_money(point.value):>20}")

    click.echo()


@cli.command('expiring')
@file_option
@click.option('--days', type=click.IntRange(min=0), default=None,
              help=f'Reminder window in days (default: {config.REMINDER_WINDOW_DAYS})')
@log_call
def expiring(file, days):
    """Contracts expiring within the reminder window"""
    try:
        loaded = _load_contracts(file)
    except (ApiError, ValueError, OSError) as e:
        _fail("expiring failed to load contracts", e)
        return

    today = date.today()
    criteria = ContractFilters(status='expiring_soon')
    results = filters.apply_filters(loaded, criteria, as_of=today, reminder_window_days=days)
    results.sort(key=lambda c: c.end_date)

    if not results:
        click.echo("No contracts expiring soon. ✓")
        return

    click.echo(f"\n⚠️  {len(results)} contracts expiring soon:\n")
    click.echo(f"{'ID':<10} {'Name':<34} {'Ends':<12} {'Days':>5}  {'Responsible':<20}")
    click.echo("-" * 86)
    for c in results:
        click.echo(
            f"{(c.id or '')[:8]:<10} {c.name[:32]:<34} {str(c.end_date):<12} "
            f"{classifier.days_remaining(c, today):>5}  {(c.internal_responsible or '')[:20]:<20}"
        )


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@cli.command('notify')
@file_option
@click.option('--dry-run', is_flag=True, help='List the notices without writing them')
@log_call
def notify(file, dry_run):
    """Draft expiry notices for contracts due a reminder today"""
    try:
        loaded = _load_contracts(file)
    except (ApiError, ValueError, OSError) as e:
        _fail("notify failed to load contracts", e)
        return

    try:
        result = notifications.write_notifications(loaded, dry_run=dry_run)
    except OSError as e:
        _fail("notify could not prepare the outbox", e)
        return

    if not result['notifications'] and not result['skipped']:
        click.echo("No contracts need a notice today.")
        return

    for notice in result['notifications']:
        click.echo(f"• {notice.to}: {notice.subject}")

    if dry_run:
        click.echo(f"\n(dry run) {len(result['notifications'])} notices would be written")
    else:
        click.echo(f"\n✓ {result['written']} notices written to the outbox")
    if result.get('failed'):
        click.echo(f"⚠️  {result['failed']} notices could not be saved (see log)", err=True)
    if result['skipped']:
        click.echo(f"{result['skipped']} contracts skipped (no responsible e-mail)", err=True)


# =============================================================================
# IMPORT / EXPORT
# =============================================================================

@cli.command('export')
@click.argument('fmt', metavar='FORMAT', type=click.Choice(['csv', 'json']))
@file_option
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write to this path (default: stdout)')
@click.option('--preset', type=click.Choice(export.PRESETS), default='all_contracts', show_default=True)
@log_call
def export_cmd(fmt, file, output, preset):
    """Export contracts to CSV or JSON"""
    try:
        loaded = _load_contracts(file)
    except (ApiError, ValueError, OSError) as e:
        _fail("export failed to load contracts", e)
        return

    options = export.preset(preset)
    writer = export.export_csv if fmt == 'csv' else export.export_json
    text = writer(loaded, options, path=output)

    if output:
        click.echo(f"✓ Exported to {output}")
    else:
        click.echo(text)


@cli.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@log_call
def import_cmd(path):
    """Validate a contracts file and summarize it"""
    try:
        loaded = importer.load_contracts(path)
    except ValueError as e:
        _fail(f"import failed for {path}", e, level=logging.WARNING)
        return

    invalid = [(c, classifier.validate_contract(c)) for c in loaded]
    invalid = [(c, problems) for c, problems in invalid if problems]

    click.echo(f"\nRead {len(loaded)} contracts from {path}")
    if not invalid:
        click.echo("✓ All records valid")
        return

    click.echo(f"⚠️  {len(invalid)} invalid records:")
    for c, problems in invalid[:20]:
        click.echo(f"  {c.id or '(no id)'}: {', '.join(problems)}")
    if len(invalid) > 20:
        click.echo(f"\n... and {len(invalid) - 20} more")


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
