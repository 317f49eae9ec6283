# daybook/cli.py
import functools
import logging
import click
from dotenv import load_dotenv
from daybook.app import Daybook
from daybook.config import load_config, setup_logging
from daybook.core.errors import DaybookError
from daybook.core.models import day_sort_key

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ['income', 'expense']


def _book(ctx):
    """Open the daybook on first use and close it with the root context."""
    book = ctx.meta.get('book')
    if book is None:
        root = ctx.find_root()
        try:
            book = Daybook.from_config(ctx.meta['config'])
            book.init()
        except DaybookError as e:
            raise click.ClickException(f"({e.kind.value}) {e}")
        ctx.meta['book'] = book
        root.call_on_close(book.close)
    return book


def reports_errors(func):
    """Turn daybook errors into a one-line message and exit code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DaybookError as e:
            raise click.ClickException(f"({e.kind.value}) {e}")
        except ValueError as e:
            raise click.ClickException(str(e))
    return wrapper


@click.group()
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to config.yaml'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with DAYBOOK_* settings'
)
@click.option(
    '--log-level', 'log_level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    help='Logging verbosity (overrides config)'
)
@click.pass_context
def main(ctx, config_path, db_path, env_file, log_level):
    """
    Store dated income/expense transactions and notes, and keep the index
    of days that have at least one transaction in step with them.
    """
    if env_file:
        load_dotenv(env_file)

    cfg = load_config(config_path)
    if db_path:
        cfg['db_path'] = db_path
    setup_logging(log_level or cfg.get('log_level'))

    ctx.meta['config'] = cfg


@main.command()
@click.pass_context
def init(ctx):
    """Create the database and seed default settings."""
    book = _book(ctx)
    click.echo(f"Daybook ready (installed {book.get_install_date()}).")


@main.command()
@click.argument('description')
@click.argument('amount', type=float)
@click.option('--type', 'transaction_type', required=True,
              type=click.Choice(TRANSACTION_TYPES), help='income or expense')
@click.option('--date', 'date_string', required=True, help='Date as DD.MM.YYYY')
@click.pass_context
@reports_errors
def add(ctx, description, amount, transaction_type, date_string):
    """Add a transaction."""
    tx_id = _book(ctx).add_transaction(description, amount, transaction_type, date_string)
    click.echo(f"Added transaction {tx_id}.")


@main.command()
@click.argument('tx_id', type=int)
@click.option('--description', required=True)
@click.option('--amount', required=True, type=float)
@click.option('--type', 'transaction_type', required=True,
              type=click.Choice(TRANSACTION_TYPES))
@click.option('--date', 'date_string', required=True, help='Date as DD.MM.YYYY')
@click.pass_context
@reports_errors
def update(ctx, tx_id, description, amount, transaction_type, date_string):
    """Overwrite every field of transaction TX_ID."""
    _book(ctx).update_transaction({
        'id': tx_id,
        'description': description,
        'amount': amount,
        'transaction_type': transaction_type,
        'date': date_string,
    })
    click.echo(f"Updated transaction {tx_id}.")


@main.command()
@click.argument('tx_id', type=int)
@click.pass_context
@reports_errors
def delete(ctx, tx_id):
    """Delete transaction TX_ID."""
    _book(ctx).delete_transaction(tx_id)
    click.echo(f"Deleted transaction {tx_id}.")


@main.command('list')
@click.pass_context
@reports_errors
def list_transactions(ctx):
    """List transactions, oldest first."""
    txs = sorted(
        _book(ctx).list_transactions(),
        key=lambda tx: (day_sort_key(tx['date']), tx['id']),
    )
    for tx in txs:
        click.echo(
            f"{tx['id']}\t{tx['date']}\t{tx['transaction_type']}\t"
            f"{tx['amount']:.2f}\t{tx['description']}"
        )


@main.command()
@click.pass_context
@reports_errors
def days(ctx):
    """List the days that have transactions, oldest first."""
    for day in sorted(_book(ctx).list_days(), key=day_sort_key):
        click.echo(day)


@main.command()
@click.pass_context
@reports_errors
def verify(ctx):
    """Check that the day index matches the stored transactions."""
    report = _book(ctx).days.verify()
    if report.ok:
        click.echo("Day index is consistent.")
        return
    for day in report.stale:
        click.echo(f"stale day marker: {day}", err=True)
    for day in report.missing:
        click.echo(f"missing day marker: {day}", err=True)
    ctx.exit(1)


@main.group()
def note():
    """Manage free-text notes."""


@note.command('add')
@click.argument('content')
@click.pass_context
@reports_errors
def note_add(ctx, content):
    note_id = _book(ctx).add_note(content)
    click.echo(f"Added note {note_id}.")


@note.command('list')
@click.pass_context
@reports_errors
def note_list(ctx):
    for item in _book(ctx).list_notes():
        click.echo(f"{item['id']}\t{item['content']}")


@note.command('update')
@click.argument('note_id', type=int)
@click.argument('content')
@click.pass_context
@reports_errors
def note_update(ctx, note_id, content):
    _book(ctx).update_note({'id': note_id, 'content': content})
    click.echo(f"Updated note {note_id}.")


@note.command('delete')
@click.argument('note_id', type=int)
@click.pass_context
@reports_errors
def note_delete(ctx, note_id):
    _book(ctx).delete_note(note_id)
    click.echo(f"Deleted note {note_id}.")


@main.command()
@click.argument('value', required=False)
@click.pass_context
@reports_errors
def currency(ctx, value):
    """Show the currency symbol, or set it to VALUE."""
    book = _book(ctx)
    if value is not None:
        book.set_currency(value)
    click.echo(book.get_currency())


@main.command()
@click.argument('value', required=False)
@click.pass_context
@reports_errors
def language(ctx, value):
    """Show the interface language code, or set it to VALUE."""
    book = _book(ctx)
    if value is not None:
        book.set_language(value)
    click.echo(book.get_language())


@main.command('install-date')
@click.pass_context
@reports_errors
def install_date(ctx):
    """Show the date the daybook was first set up."""
    click.echo(_book(ctx).get_install_date())


@main.command()
@click.option(
    '--output', 'output_format',
    default='csv',
    type=click.Choice(['csv', 'excel']),
    help='Export target: csv or excel'
)
@click.option(
    '--output-dir', 'output_dir',
    default=None,
    type=click.Path(file_okay=False),
    help='Directory for the exported file (overrides config)'
)
@click.pass_context
@reports_errors
def export(ctx, output_format, output_dir):
    """Export all transactions grouped by month."""
    cfg = dict(ctx.meta['config'])
    if output_dir:
        cfg['output_dir'] = output_dir
    path = _book(ctx).export(output_format, cfg)
    if path is None:
        click.echo("No transactions to export.")
    else:
        click.echo(f"Exported transactions to {path}.")
