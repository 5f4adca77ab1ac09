from decimal import Decimal
from typing import Iterable, List

from config.settings import settings
from explorer.classifier import label_transactions, sort_transactions
from explorer.clients.bundle_client import BundleClient
from explorer.clients.etherscan_client import EtherscanClient
from explorer.clients.subgraph_client import SubgraphClient
from explorer.models.account import AccountOverview
from explorer.models.labeled_transaction import LabeledTransaction
from explorer.models.transaction import MinedTransaction, TransactionRecord
from explorer.resolvers.account_resolver import AccountResolver
from explorer.resolvers.enrichment import TransactionEnricher
from explorer.resolvers.transaction_resolver import TransactionResolver
from explorer.rpc_client import RpcClient
from explorer.service.calldata_decoder_service import CalldataDecoderService
from utils.logger_utils import get_logger

logger = get_logger("Explorer")


class Explorer(object):
    """
    Wires the source clients to the resolvers. Clients not passed in are built
    from settings; every client is closed when the explorer is.
    """

    def __init__(
        self,
        rpc_client: RpcClient = None,
        relay_rpc_client: RpcClient = None,
        subgraph_client: SubgraphClient = None,
        bundle_client: BundleClient = None,
        etherscan_client: EtherscanClient = None,
    ):
        self.rpc_client = rpc_client or RpcClient(
            settings.ethereum.provider_uri_list,
            source="public-node",
            max_retries=settings.ethereum.max_retries,
            timeout=settings.ethereum.rpc_timeout,
            rpc_min_interval=settings.ethereum.rpc_min_interval,
        )
        self.relay_rpc_client = relay_rpc_client or RpcClient(
            settings.relay.rpc_uri,
            source="relay-rpc",
            max_retries=settings.ethereum.max_retries,
            timeout=settings.relay.request_timeout,
        )
        self.subgraph_client = subgraph_client or SubgraphClient()
        self.bundle_client = bundle_client or BundleClient()
        self.etherscan_client = etherscan_client or EtherscanClient()

        self.calldata_decoder = CalldataDecoderService(self.etherscan_client)
        self.enricher = TransactionEnricher(
            self.rpc_client,
            self.subgraph_client,
            self.bundle_client,
            self.calldata_decoder,
        )
        self.transaction_resolver = TransactionResolver(self.rpc_client, self.relay_rpc_client, self.enricher)
        self.account_resolver = AccountResolver(
            self.etherscan_client,
            self.rpc_client,
            self.relay_rpc_client,
            self.subgraph_client,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        for client in (self.rpc_client, self.relay_rpc_client, self.subgraph_client, self.bundle_client, self.etherscan_client):
            await client.close()
        logger.debug("Explorer clients closed.")

    async def resolve_transaction(self, tx_hash: str) -> TransactionRecord:
        return await self.transaction_resolver.resolve(tx_hash)

    async def resolve_account(self, address: str, page_size: int = 1000, page: int = 1) -> AccountOverview:
        return await self.account_resolver.resolve(address, page_size, page)

    def label_transactions(
        self,
        records: Iterable[MinedTransaction],
        order_by: str = "position",
        descending: bool = False,
        min_sender_stake: Decimal = None,
    ) -> List[LabeledTransaction]:
        """Labels mined records as block-view rows and sorts them by one column."""
        if min_sender_stake is None:
            min_sender_stake = settings.labels.min_sender_stake
        return sort_transactions(label_transactions(records, min_sender_stake), order_by, descending)
