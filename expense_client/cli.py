# expense_client/cli.py
import logging
import os
from contextlib import contextmanager
from datetime import date
from pathlib import Path

import click
from dotenv import load_dotenv

from expense_client.config import DEFAULT_CONFIG, load_config, set_value
from expense_client.currency import SUPPORTED_CURRENCIES, format_currency, get_currency_symbol
from expense_client.errors import ExpenseClientError
from expense_client.gateway import ApiGateway
from expense_client.loaders import get_loader
from expense_client.outputs import get_output
from expense_client.session import SessionStore
from expense_client.store import ExpenseStore
from expense_client.utils import current_month
from expense_client.views import ListViewModel, SummaryViewModel

SESSION_EXPIRED = "Session expired, please log in again."


def build_store(cfg):
    """Wire session persistence, the HTTP gateway and the store together."""
    session_store = SessionStore(Path(str(cfg['session_file'])))
    gateway = ApiGateway(
        session_store,
        str(cfg['api_url']),
        timeout=float(cfg['request_timeout']),
    )
    gateway.on_unauthenticated(lambda: click.echo(SESSION_EXPIRED, err=True))
    store = ExpenseStore(gateway, session_store)
    store.load_user()
    return store


@contextmanager
def _reporting():
    try:
        yield
    except ExpenseClientError as exc:
        raise click.ClickException(exc.message) from exc


def _store(ctx):
    if 'store' not in ctx.obj:
        ctx.obj['store'] = build_store(ctx.obj['config'])
    return ctx.obj['store']


def _format_row(tx, currency):
    sign = '-' if tx.type == 'expense' else '+'
    return (
        f"{tx.id or '':<26} {tx.date.strftime('%b %d, %Y'):<13} "
        f"{tx.description[:30]:<30} {tx.category:<15} {sign}{format_currency(tx.amount, currency)}"
    )


month_option = click.option(
    '--month',
    default=None,
    help='Month as YYYY-MM (default: current month)'
)


@click.group()
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (default: ~/.expense_client/config.yaml)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with EXPENSE_CLIENT_* settings'
)
@click.pass_context
def main(ctx, config_path, env_file):
    """
    Track income and expenses stored on a remote expense API: sign in, list
    and filter a month's transactions, record new ones, view the monthly
    summary and export a month to CSV.
    """
    if env_file:
        load_dotenv(env_file)
    logging.basicConfig(level=os.getenv("EXPENSE_CLIENT_LOG_LEVEL", "WARNING").upper())
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = Path(config_path) if config_path else None
    ctx.obj['config'] = load_config(ctx.obj['config_path'])


@main.command()
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
@click.pass_context
def login(ctx, email, password):
    """Sign in and load the current month's transactions."""
    store = _store(ctx)
    with _reporting():
        user = store.login(email, password)
    click.echo(f"Login successful! Welcome, {user.name}.")
    click.echo(f"Loaded {len(store.expenses)} transaction(s) for {current_month()}.")


@main.command()
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_context
def register(ctx, name, email, password):
    """Create an account and sign in."""
    with _reporting():
        _store(ctx).register(name, email, password)
    click.echo("Registration successful!")


@main.command()
@click.pass_context
def logout(ctx):
    """Forget the stored session."""
    _store(ctx).logout()
    click.echo("Logged out.")


@main.command(name='list')
@month_option
@click.option('--type', 'type_filter', default='all',
              type=click.Choice(['all', 'expense', 'income']))
@click.option('--category', default='all', help='Only show this category')
@click.option('--search', default='', help='Match description or category')
@click.option('--sort', 'sort_by', default='date',
              type=click.Choice(['date', 'amount', 'category']))
@click.option('--order', 'sort_order', default='desc', type=click.Choice(['asc', 'desc']))
@click.option('--output', 'output_format', default=None, type=click.Choice(['csv', 'excel']),
              help='Also write the listed rows to a file')
@click.pass_context
def list_expenses(ctx, month, type_filter, category, search, sort_by, sort_order, output_format):
    """Show a month's transactions, filtered and sorted."""
    cfg = ctx.obj['config']
    store = _store(ctx)
    with _reporting():
        view = ListViewModel(store, month=month, debounce_seconds=float(cfg['debounce_seconds']))
        try:
            view.refresh()
            view.set_filter('type', type_filter)
            view.set_filter('category', category)
            view.set_filter('search', search)
            view.sort(sort_by, sort_order)
        finally:
            view.close()

    if not view.visible:
        click.echo(f"No transactions found for {view.month}.")
    for tx in view.visible:
        click.echo(_format_row(tx, store.currency))

    if output_format and view.visible:
        path = get_output(output_format, cfg).append(view.visible, month=view.month)
        click.echo(f"Wrote {len(view.visible)} transaction(s) to {path}.")


@main.command()
@click.option('--description', prompt=True)
@click.option('--amount', prompt=True, help='Non-negative amount, e.g. 4.50')
@click.option('--category', prompt=True, default='Other', show_default=True)
@click.option('--date', 'date_str', default=lambda: date.today().isoformat(),
              help='YYYY-MM-DD (default: today)')
@click.option('--type', 'kind', default='expense', type=click.Choice(['expense', 'income']))
@click.pass_context
def add(ctx, description, amount, category, date_str, kind):
    """Record a new transaction."""
    store = _store(ctx)
    with _reporting():
        tx = store.add_expense({
            'description': description,
            'amount': amount,
            'category': category,
            'date': date_str,
            'type': kind,
        })
    click.echo(f"Expense added successfully! ({tx.id})")


@main.command()
@click.argument('expense_id')
@month_option
@click.option('--description', default=None)
@click.option('--amount', default=None)
@click.option('--category', default=None)
@click.option('--date', 'date_str', default=None, help='YYYY-MM-DD')
@click.option('--type', 'kind', default=None, type=click.Choice(['expense', 'income']))
@click.pass_context
def edit(ctx, expense_id, month, description, amount, category, date_str, kind):
    """Change a transaction; unspecified fields keep their current value."""
    store = _store(ctx)
    month = month or current_month()
    with _reporting():
        store.fetch_expenses(month)
        current = next((tx for tx in store.expenses if tx.id == expense_id), None)
        if current is None:
            raise click.ClickException(f"Expense {expense_id} not found in {month}.")
        data = current.to_payload()
        for key, value in (('description', description), ('amount', amount),
                           ('category', category), ('date', date_str), ('type', kind)):
            if value is not None:
                data[key] = value
        store.update_expense(expense_id, data)
    click.echo("Expense updated successfully!")


@main.command()
@click.argument('expense_id')
@month_option
@click.option('--yes', is_flag=True, default=False, help='Do not ask for confirmation')
@click.pass_context
def delete(ctx, expense_id, month, yes):
    """Delete a transaction and reload the month."""
    store = _store(ctx)
    confirm = (lambda prompt: True) if yes else click.confirm
    with _reporting():
        view = ListViewModel(store, month=month)
        try:
            deleted = view.delete(expense_id, confirm)
        finally:
            view.close()
    click.echo("Expense deleted successfully!" if deleted else "Cancelled.")


@main.command()
@month_option
@click.pass_context
def summary(ctx, month):
    """Show income, expenses, balance and the category breakdown."""
    with _reporting():
        view = SummaryViewModel(_store(ctx), month=month)
    result = view.load()
    if result is None:
        raise click.ClickException(view.error or "Failed to load summary")

    click.echo(f"Summary for {view.month}")
    click.echo(f"  Total Income:   {view.format_amount(result.total_income)}")
    click.echo(f"  Total Expenses: {view.format_amount(result.total_expenses)}")
    click.echo(f"  Balance:        {view.format_amount(result.balance)}")
    if not view.rows:
        click.echo("No expenses recorded for this month.")
        return
    click.echo("")
    for row in view.rows:
        click.echo(f"  {row.category:<15} {row.amount:>14} {row.percentage_label:>7}")


@main.command()
@month_option
@click.option('--dest', default=None, type=click.Path(file_okay=False),
              help='Directory to save the export into (default: export_dir from config)')
@click.pass_context
def export(ctx, month, dest):
    """Download a month's export file."""
    cfg = ctx.obj['config']
    month = month or current_month()
    with _reporting():
        artifact = _store(ctx).export_expenses(month)
    path = artifact.save(dest or cfg['export_dir'])
    click.echo(f"Expenses exported successfully to {path}.")

    if path.suffix.lower() == '.csv':
        try:
            txs = get_loader('csv', cfg).load(artifact.content)
        except (RuntimeError, ValueError) as exc:
            click.echo(f"Could not read back export: {exc}", err=True)
            return
        click.echo(f"Export contains {len(txs)} transaction(s).")


@main.command()
@click.argument('code', required=False)
@click.pass_context
def currency(ctx, code):
    """Show or change the preferred display currency."""
    store = _store(ctx)
    if not code:
        for item, name in SUPPORTED_CURRENCIES.items():
            marker = '*' if item == store.currency else ' '
            click.echo(f"{marker} {item}  {name} ({get_currency_symbol(item)})")
        return
    with _reporting():
        new_code = store.update_currency(code)
    click.echo(f"Currency updated successfully! Now using {new_code} ({get_currency_symbol(new_code)}).")


@main.command()
@click.option('--name', prompt=True)
@click.pass_context
def profile(ctx, name):
    """Update the profile name."""
    with _reporting():
        user = _store(ctx).update_user({'name': name})
    click.echo(f"Profile updated successfully! Name: {user.name}")


@main.command(name='set-config')
@click.argument('key', type=click.Choice(
    [k for k, v in DEFAULT_CONFIG.items() if not isinstance(v, (dict, list))]))
@click.argument('value')
@click.pass_context
def set_config(ctx, key, value):
    """Persist a configuration value (api_url, session_file, ...)."""
    if isinstance(DEFAULT_CONFIG[key], (int, float)):
        try:
            value = float(value)
        except ValueError:
            raise click.BadParameter(f"{key} must be a number", param_hint='VALUE')
    cfg = set_value(key, value, ctx.obj['config_path'])
    click.echo(f"{key} = {cfg[key]}")
