from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from explorer.models.registry import BundleIndex, StakeSnapshot
from explorer.models.transaction import MinedTransaction
from explorer.resolvers.enrichment import TransactionEnricher
from explorer.resolvers.transaction_resolver import TransactionResolver

SENDER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"
GWEI = 10 ** 9


def make_request(tx_hash="0xdef", block_number="0xa", **overrides):
    request = {
        "hash": tx_hash,
        "from": SENDER,
        "to": RECIPIENT,
        "nonce": "0x5",
        "value": hex(10 ** 18),
        "gas": "0x5208",
        "gasPrice": hex(30 * GWEI),
        "maxPriorityFeePerGas": hex(2 * GWEI),
        "input": "0x",
        "blockNumber": block_number,
        "transactionIndex": "0x3",
    }
    request.update(overrides)
    return request


def make_receipt(tx_hash="0xdef", status="0x1", gas_used="0x5208", block_number="0xa"):
    return {
        "transactionHash": tx_hash,
        "blockNumber": block_number,
        "status": status,
        "gasUsed": gas_used,
        "logs": [],
    }


def make_block(number=10, tx_count=2, timestamp=1650000000, base_fee=28 * GWEI):
    return {
        "number": hex(number),
        "timestamp": hex(timestamp),
        "baseFeePerGas": hex(base_fee),
        "transactions": ["0x%064x" % i for i in range(tx_count)],
    }


def make_mined(**overrides):
    fields = dict(
        hash="0xdef",
        from_address=SENDER,
        to_address=RECIPIENT,
        nonce=5,
        value=Decimal(1),
        gas_limit=21000,
        gas_price=Decimal(30),
        input="0x",
        block_number=10,
    )
    fields.update(overrides)
    return MinedTransaction(**fields)


@pytest.fixture
def sources():
    """Every upstream source as a mock, answering for a plain mined transfer in block 10."""
    rpc_client = MagicMock()
    rpc_client.get_transaction = AsyncMock(return_value=make_request())
    rpc_client.get_transaction_receipt = AsyncMock(return_value=make_receipt())
    rpc_client.get_blocks = AsyncMock(return_value={10: make_block()})

    relay_rpc_client = MagicMock()
    relay_rpc_client.get_transaction = AsyncMock(return_value=None)

    subgraph_client = MagicMock()
    subgraph_client.get_stake = AsyncMock(return_value=StakeSnapshot(staked=Decimal(500), rank=3))
    subgraph_client.is_relay_block = AsyncMock(return_value=True)
    subgraph_client.get_slot_delegates = AsyncMock(return_value={})

    bundle_client = MagicMock()
    bundle_client.get_bundled_transactions = AsyncMock(return_value=BundleIndex(success=True))

    calldata_decoder = MagicMock()
    calldata_decoder.decode = AsyncMock(return_value=None)

    return SimpleNamespace(
        rpc_client=rpc_client,
        relay_rpc_client=relay_rpc_client,
        subgraph_client=subgraph_client,
        bundle_client=bundle_client,
        calldata_decoder=calldata_decoder,
    )


@pytest.fixture
def enricher(sources):
    return TransactionEnricher(
        sources.rpc_client,
        sources.subgraph_client,
        sources.bundle_client,
        sources.calldata_decoder,
    )


@pytest.fixture
def resolver(sources, enricher):
    return TransactionResolver(sources.rpc_client, sources.relay_rpc_client, enricher)
