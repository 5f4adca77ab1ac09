import asyncio
from typing import Any, Dict, Optional

import click

from cli.render import account_to_dict, labeled_to_dict, to_json
from config.settings import settings
from explorer.classifier import SORT_COLUMNS
from explorer.explorer import Explorer
from utils.logger_utils import configure_logging, get_logger

logger = get_logger("Resolve Account CLI")


async def _resolve(address: str, page_size: int, page: int, order_by: Optional[str], descending: bool) -> Dict[str, Any]:
    async with Explorer() as explorer:
        account = await explorer.resolve_account(address, page_size, page)
        data = account_to_dict(account)
        if order_by:
            labeled = explorer.label_transactions(account.transactions, order_by, descending)
            data["labeled_transactions"] = [labeled_to_dict(tx) for tx in labeled]
        return data


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("address", type=str)
@click.option("-s", "--page-size", default=1000, show_default=True, type=click.IntRange(min=1), help="Transactions per page.")
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1), help="Page number, newest first.")
@click.option(
    "--order-by",
    default=None,
    type=click.Choice(sorted(SORT_COLUMNS)),
    help="Also print the page as labeled rows, sorted by this column.",
)
@click.option("--descending", is_flag=True, default=False, help="Sort labeled rows in descending order.")
@click.option("--log-file", default=None, show_default=True, type=str, help="Path to the log file.")
def resolve_account(address: str, page_size: int, page: int, order_by: Optional[str], descending: bool, log_file: str):
    """
    Prints an account overview as JSON: stake, transaction count, slot
    delegation and one page of its mined transactions.
    """
    configure_logging(log_file, settings.app.log_level)
    logger.info(f"Resolving account {address} (page {page}, size {page_size})...")

    try:
        data = asyncio.run(_resolve(address, page_size, page, order_by, descending))
    except KeyboardInterrupt:
        logger.info("Resolution interrupted by user.")
        return
    except Exception as e:
        logger.exception(f"Failed to resolve account {address}:")
        raise e

    click.echo(to_json(data))
