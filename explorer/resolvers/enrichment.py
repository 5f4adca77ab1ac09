from decimal import Decimal
from typing import Any, Dict

from explorer.clients.bundle_client import BundleClient
from explorer.clients.subgraph_client import SubgraphClient
from explorer.mappers.block_mapper import BlockMapper
from explorer.models.transaction import MinedTransaction
from explorer.rpc_client import RpcClient
from explorer.service.calldata_decoder_service import CalldataDecoderService
from utils.async_utils import Settled, settle_all
from utils.formatter_utils import gwei_to_wei, wei_to_ether
from utils.logger_utils import get_logger

logger = get_logger("Transaction Enricher")


class TransactionEnricher(object):
    """
    Completes a mined record with stake, relay-producer, bundle, slot, block and
    calldata information. The six lookups run concurrently and each one may fail
    on its own: a failed lookup leaves its fields empty and the rest still land.
    """

    def __init__(
        self,
        rpc_client: RpcClient,
        subgraph_client: SubgraphClient,
        bundle_client: BundleClient,
        calldata_decoder: CalldataDecoderService,
        block_mapper: BlockMapper = None,
    ):
        self._rpc_client = rpc_client
        self._subgraph_client = subgraph_client
        self._bundle_client = bundle_client
        self._calldata_decoder = calldata_decoder
        self._block_mapper = block_mapper or BlockMapper()

    async def enrich(self, transaction: MinedTransaction) -> MinedTransaction:
        block_number = transaction.block_number
        results = await settle_all(
            stake=self._subgraph_client.get_stake(transaction.from_address, block_number),
            relay_producer=self._subgraph_client.is_relay_block(block_number),
            bundles=self._bundle_client.get_bundled_transactions(block_number),
            # Delegation as it stood when the block was being built
            slot_delegates=self._subgraph_client.get_slot_delegates(block_number - 1),
            block=self._rpc_client.get_blocks([block_number]),
            decoded_call=self._calldata_decoder.decode(transaction.to_address, transaction.input),
        )
        for name, outcome in results.items():
            if not outcome.ok:
                logger.warning(f"Enrichment lookup '{name}' failed for {transaction.hash}: {outcome.error!r}")

        try:
            return self.merge(transaction, results)
        except Exception as e:
            logger.error(f"Could not merge enrichment for {transaction.hash}, keeping the unenriched record: {e}")
            return transaction

    def merge(self, transaction: MinedTransaction, results: Dict[str, Settled]) -> MinedTransaction:
        updates: Dict[str, Any] = {"pending": False}

        if transaction.gas_used is not None:
            updates["gas_cost"] = wei_to_ether(transaction.gas_used * gwei_to_wei(transaction.gas_price))

        stake = results["stake"]
        if stake.ok:
            updates["sender_stake"] = stake.value.staked
            updates["sender_rank"] = stake.value.rank

        relay_producer = results["relay_producer"]
        if relay_producer.ok:
            updates["from_relay_producer"] = relay_producer.value

        updates.update(self._bundle_fields(transaction, results["bundles"]))

        slot_delegates = results["slot_delegates"]
        if slot_delegates.ok:
            updates["to_slot"] = slot_delegates.value.get(transaction.to_address.lower())

        block = results["block"]
        if block.ok:
            block_dict = block.value.get(transaction.block_number)
            if block_dict is not None:
                block_info = self._block_mapper.json_dict_to_block_info(block_dict)
                updates["timestamp"] = block_info.timestamp
                updates["block_tx_count"] = block_info.transaction_count
            else:
                logger.warning(f"Block {transaction.block_number} missing from node response")

        decoded = results["decoded_call"]
        if decoded.ok and decoded.value is not None:
            updates["contract_name"] = decoded.value.contract_name
            updates["decoded_call"] = decoded.value
            if decoded.value.parsed:
                updates["input"] = decoded.value.to_text()
                updates["raw_input"] = transaction.input

        return MinedTransaction(**{**transaction.model_dump(), **updates})

    @staticmethod
    def _bundle_fields(transaction: MinedTransaction, bundles: Settled) -> Dict[str, Any]:
        if not bundles.ok:
            return {}
        if not bundles.value.success:
            logger.warning(f"Bundle index unavailable for block {transaction.block_number}")
            return {}

        bundle = bundles.value.get(transaction.hash)
        if bundle is None:
            return {}

        miner_tip = wei_to_ether(bundle.miner_tip) if bundle.miner_tip is not None else Decimal(0)
        return {"bundle_index": bundle.bundle_index, "miner_tip": miner_tip}
