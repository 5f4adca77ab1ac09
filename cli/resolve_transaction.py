import asyncio

import click

from cli.render import record_to_dict, to_json
from config.settings import settings
from explorer.explorer import Explorer
from explorer.models.transaction import NOT_FOUND, TransactionRecord
from explorer.rpc_client import RpcClient
from utils.logger_utils import configure_logging, get_logger

logger = get_logger("Resolve Transaction CLI")


async def _resolve(tx_hash: str, provider_uri: str) -> TransactionRecord:
    rpc_client = RpcClient(
        provider_uri.split(","),
        source="public-node",
        max_retries=settings.ethereum.max_retries,
        timeout=settings.ethereum.rpc_timeout,
        rpc_min_interval=settings.ethereum.rpc_min_interval,
    )
    async with Explorer(rpc_client=rpc_client) as explorer:
        return await explorer.resolve_transaction(tx_hash)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("tx_hash", type=str)
@click.option(
    "-p",
    "--provider-uri",
    default=",".join(settings.ethereum.provider_uri_list),
    show_default=True,
    type=str,
    help="Comma-separated Ethereum node URIs, tried in order on failure.",
)
@click.option("--log-file", default=None, show_default=True, type=str, help="Path to the log file.")
def resolve_transaction(tx_hash: str, provider_uri: str, log_file: str):
    """
    Resolves a transaction hash against the public node and the private relay,
    and prints its lifecycle state and enriched details as JSON.
    """
    configure_logging(log_file, settings.app.log_level)
    logger.info(f"Resolving transaction {tx_hash}...")

    try:
        record = asyncio.run(_resolve(tx_hash, provider_uri))
    except KeyboardInterrupt:
        logger.info("Resolution interrupted by user.")
        return
    except Exception as e:
        logger.exception(f"Failed to resolve transaction {tx_hash}:")
        raise e

    click.echo(to_json(record_to_dict(record)))
    if record.lifecycle_state == NOT_FOUND:
        raise click.exceptions.Exit(1)
