import click

from cli.resolve_account import resolve_account
from cli.resolve_transaction import resolve_transaction


@click.group()
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx):
    pass


# Single transaction lookup
cli.add_command(resolve_transaction, "resolve_transaction")

# Account history
cli.add_command(resolve_account, "resolve_account")
