from explorer.mappers.transaction_mapper import TransactionMapper, get_field
from explorer.models.transaction import TransactionNotFound, TransactionRecord
from explorer.resolvers.enrichment import TransactionEnricher
from explorer.rpc_client import RpcClient
from utils.async_utils import settle_all
from utils.exceptions import PrimarySourceError
from utils.formatter_utils import parse_quantity
from utils.logger_utils import get_logger

logger = get_logger("Transaction Resolver")


class TransactionResolver(object):
    """
    Resolves a hash against the public node and the private relay, and decides
    which lifecycle state the transaction is in:

    1. The relay knows it and it has no block number yet: pending, private.
    2. The node has the transaction but no receipt: pending, public.
    3. The node has a receipt: mined, then enriched.
    4. Nobody knows it: not found.
    """

    def __init__(
        self,
        rpc_client: RpcClient,
        relay_rpc_client: RpcClient,
        enricher: TransactionEnricher,
        transaction_mapper: TransactionMapper = None,
    ):
        self._rpc_client = rpc_client
        self._relay_rpc_client = relay_rpc_client
        self._enricher = enricher
        self._transaction_mapper = transaction_mapper or TransactionMapper()

    async def resolve(self, tx_hash: str) -> TransactionRecord:
        results = await settle_all(
            request=self._rpc_client.get_transaction(tx_hash),
            receipt=self._rpc_client.get_transaction_receipt(tx_hash),
            relay_record=self._relay_rpc_client.get_transaction(tx_hash),
        )
        for name, outcome in results.items():
            if not outcome.ok:
                raise PrimarySourceError(tx_hash, f"{name} lookup failed: {outcome.error}") from outcome.error

        request = results["request"].value
        receipt = results["receipt"].value
        relay_record = results["relay_record"].value
        via_private_relay = relay_record is not None

        if via_private_relay and parse_quantity(get_field(relay_record, "blockNumber")) is None:
            return self._transaction_mapper.relay_dict_to_pending_private(relay_record)

        if request is not None and receipt is None:
            return self._transaction_mapper.json_dict_to_pending_public(request, via_private_relay)

        if receipt is not None:
            if request is None:
                raise PrimarySourceError(tx_hash, "receipt found without its transaction object")
            mined = self._transaction_mapper.json_dicts_to_mined(request, receipt, via_private_relay)
            return await self._enricher.enrich(mined)

        logger.debug(f"No source knows transaction {tx_hash}")
        return TransactionNotFound(hash=tx_hash)
