from typing import Any, Dict, List

from eth_utils import to_checksum_address

from explorer.clients.etherscan_client import EtherscanClient
from explorer.clients.subgraph_client import SubgraphClient
from explorer.mappers.block_mapper import BlockMapper
from explorer.mappers.transaction_mapper import TransactionMapper
from explorer.models.account import AccountOverview
from explorer.models.transaction import MinedTransaction
from explorer.rpc_client import RpcClient
from utils.async_utils import settle_all
from utils.formatter_utils import parse_quantity
from utils.logger_utils import get_logger

logger = get_logger("Account Resolver")


def unique_block_numbers(json_dicts: List[Dict[str, Any]]) -> List[int]:
    """Distinct block numbers of a transaction page, in first-seen order."""
    seen = {}
    for json_dict in json_dicts:
        number = parse_quantity(json_dict.get("blockNumber"))
        if number is not None:
            seen.setdefault(number, None)
    return list(seen)


class AccountResolver(object):
    """
    Builds an account's overview: one page of its mined history plus its
    current stake, transaction count and slot delegation.

    Block metadata, relay-producer membership and relay records are fetched
    once per page and shared by every transaction of that page.
    """

    def __init__(
        self,
        etherscan_client: EtherscanClient,
        rpc_client: RpcClient,
        relay_rpc_client: RpcClient,
        subgraph_client: SubgraphClient,
        transaction_mapper: TransactionMapper = None,
        block_mapper: BlockMapper = None,
    ):
        self._etherscan_client = etherscan_client
        self._rpc_client = rpc_client
        self._relay_rpc_client = relay_rpc_client
        self._subgraph_client = subgraph_client
        self._transaction_mapper = transaction_mapper or TransactionMapper()
        self._block_mapper = block_mapper or BlockMapper()

    async def resolve(self, address: str, page_size: int = 1000, page: int = 1) -> AccountOverview:
        account = address.lower()
        results = await settle_all(
            transactions=self.get_account_transactions(account, page_size, page),
            stake=self._subgraph_client.get_stake(account),
            tx_count=self._rpc_client.get_transaction_count(to_checksum_address(account)),
            slot_delegates=self._subgraph_client.get_slot_delegates(),
        )
        # The history is the page itself; without it there is nothing to show
        if not results["transactions"].ok:
            raise results["transactions"].error

        for name in ("stake", "tx_count", "slot_delegates"):
            if not results[name].ok:
                logger.warning(f"Account lookup '{name}' failed for {account}: {results[name].error!r}")

        stake = results["stake"].value
        slot_delegates = results["slot_delegates"].value
        return AccountOverview(
            address=to_checksum_address(account),
            sender_stake=stake.staked if stake is not None else None,
            staker_rank=stake.rank if stake is not None else None,
            slot_delegate=slot_delegates.get(account) if slot_delegates is not None else None,
            tx_count=results["tx_count"].value,
            transactions=results["transactions"].value,
        )

    async def get_account_transactions(self, address: str, page_size: int = 1000, page: int = 1) -> List[MinedTransaction]:
        json_dicts = await self._etherscan_client.get_account_transactions(address, page_size, page)
        if not json_dicts:
            return []

        block_numbers = unique_block_numbers(json_dicts)
        results = await settle_all(
            blocks=self._rpc_client.get_blocks(block_numbers),
            relay_blocks=self._subgraph_client.filter_relay_blocks(block_numbers),
            relay_records=self._relay_rpc_client.get_transactions([json_dict["hash"] for json_dict in json_dicts]),
        )
        for name, outcome in results.items():
            if not outcome.ok:
                logger.warning(f"Page lookup '{name}' failed for {address}: {outcome.error!r}")

        block_infos = {}
        if results["blocks"].ok:
            block_infos = {
                number: self._block_mapper.json_dict_to_block_info(block)
                for number, block in results["blocks"].value.items()
            }
        relay_blocks = results["relay_blocks"].value
        relay_records = results["relay_records"].value

        transactions = []
        for json_dict in json_dicts:
            block_number = parse_quantity(json_dict.get("blockNumber"))
            tx_hash = json_dict["hash"].lower()
            transactions.append(self._transaction_mapper.explorer_dict_to_mined(
                json_dict,
                block_info=block_infos.get(block_number),
                from_relay_producer=block_number in relay_blocks if relay_blocks is not None else None,
                via_private_relay=relay_records.get(tx_hash) is not None if relay_records is not None else None,
            ))
        return transactions
