import logging
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from conftest import GWEI, RECIPIENT, SENDER, make_receipt, make_request
from explorer.models.registry import BundleIndex, BundleInfo
from explorer.models.transaction import (
    MINED,
    NOT_FOUND,
    PENDING_PRIVATE,
    PENDING_PUBLIC,
    MinedTransaction,
    PendingPrivateTransaction,
    PendingPublicTransaction,
    TransactionNotFound,
)
from utils.exceptions import PrimarySourceError, SourceFetchError


def relay_record(tx_hash="0x123", block_number=None, gas_price=40 * GWEI, priority_fee=40 * GWEI):
    # The relay answers with lower-cased keys
    record = {
        "hash": tx_hash,
        "from": SENDER,
        "to": RECIPIENT,
        "nonce": "0x7",
        "value": "0x0",
        "gas": "0x5208",
        "gasprice": hex(gas_price),
        "input": "0x",
        "blocknumber": block_number,
    }
    if priority_fee is not None:
        record["maxpriorityfeepergas"] = hex(priority_fee)
    return record


@pytest.mark.asyncio
async def test_request_without_receipt_is_pending_public(resolver, sources):
    sources.rpc_client.get_transaction.return_value = make_request("0xabc", block_number=None)
    sources.rpc_client.get_transaction_receipt.return_value = None

    record = await resolver.resolve("0xabc")

    assert isinstance(record, PendingPublicTransaction)
    assert record.lifecycle_state == PENDING_PUBLIC
    assert record.pending is True
    assert record.via_private_relay is False
    assert record.display_status == "pending-public"
    sources.subgraph_client.get_stake.assert_not_awaited()


@pytest.mark.asyncio
async def test_relay_record_without_block_is_pending_private(resolver, sources):
    sources.rpc_client.get_transaction.return_value = None
    sources.rpc_client.get_transaction_receipt.return_value = None
    sources.relay_rpc_client.get_transaction.return_value = relay_record()

    record = await resolver.resolve("0x123")

    assert isinstance(record, PendingPrivateTransaction)
    assert record.lifecycle_state == PENDING_PRIVATE
    assert record.pending is True
    assert record.via_private_relay is True
    assert record.nonce == 7
    assert record.gas_price == Decimal(40)
    assert record.priority_fee == Decimal(40)
    assert record.base_fee is None


@pytest.mark.asyncio
async def test_pending_private_fee_split_uses_relay_gas_price(resolver, sources):
    sources.rpc_client.get_transaction.return_value = None
    sources.rpc_client.get_transaction_receipt.return_value = None
    sources.relay_rpc_client.get_transaction.return_value = relay_record(gas_price=40 * GWEI, priority_fee=3 * GWEI)

    record = await resolver.resolve("0x123")

    assert record.lifecycle_state == PENDING_PRIVATE
    assert record.gas_price == Decimal(40)
    assert record.priority_fee == Decimal(3)
    assert record.base_fee == Decimal(37)


@pytest.mark.asyncio
async def test_pending_private_without_priority_fee_keeps_flat_gas_price(resolver, sources):
    sources.rpc_client.get_transaction.return_value = None
    sources.rpc_client.get_transaction_receipt.return_value = None
    sources.relay_rpc_client.get_transaction.return_value = relay_record(priority_fee=None)

    record = await resolver.resolve("0x123")

    assert record.lifecycle_state == PENDING_PRIVATE
    assert record.gas_price == Decimal(40)
    assert record.priority_fee is None
    assert record.base_fee is None


@pytest.mark.asyncio
async def test_unmined_relay_record_wins_over_public_request(resolver, sources):
    sources.rpc_client.get_transaction.return_value = make_request("0x123", block_number=None)
    sources.rpc_client.get_transaction_receipt.return_value = None
    sources.relay_rpc_client.get_transaction.return_value = relay_record()

    record = await resolver.resolve("0x123")

    assert record.lifecycle_state == PENDING_PRIVATE
    # Fields come from the relay only
    assert record.nonce == 7


@pytest.mark.asyncio
async def test_mined_relay_record_without_receipt_is_pending_public(resolver, sources):
    sources.rpc_client.get_transaction.return_value = make_request("0x123", block_number=None)
    sources.rpc_client.get_transaction_receipt.return_value = None
    sources.relay_rpc_client.get_transaction.return_value = relay_record(block_number="0xa")

    record = await resolver.resolve("0x123")

    assert record.lifecycle_state == PENDING_PUBLIC
    assert record.via_private_relay is True
    assert record.submission_channel == "private-relay"


@pytest.mark.asyncio
async def test_receipt_resolves_to_enriched_mined_record(resolver, sources):
    record = await resolver.resolve("0xdef")

    assert isinstance(record, MinedTransaction)
    assert record.lifecycle_state == MINED
    assert record.pending is False
    assert record.block_number == 10
    assert record.index == 3
    assert record.status == 1
    assert record.gas_used == 21000
    assert record.gas_cost == Decimal("0.00063")
    assert record.priority_fee == Decimal(2)
    assert record.base_fee == Decimal(28)
    assert record.sender_stake == Decimal(500)
    assert record.from_relay_producer is True
    assert record.display_status == "success"


@pytest.mark.asyncio
async def test_bundled_transaction_carries_bundle_index_and_miner_tip(resolver, sources):
    sources.bundle_client.get_bundled_transactions.return_value = BundleIndex(
        success=True,
        bundles={"0xdef": BundleInfo(bundle_index=3, miner_tip=2 * 10 ** 16)},
    )

    record = await resolver.resolve("0xdef")

    assert record.bundle_index == 3
    assert record.miner_tip == Decimal("0.02")
    assert record.miner_reward == Decimal("0.02063")
    assert record.submission_channel == "bundle"


@pytest.mark.asyncio
async def test_mined_relay_transaction_is_flagged_private(resolver, sources):
    sources.relay_rpc_client.get_transaction.return_value = relay_record("0xdef", block_number="0xa")

    record = await resolver.resolve("0xdef")

    assert record.lifecycle_state == MINED
    assert record.via_private_relay is True
    assert record.submission_channel == "private-relay"


@pytest.mark.asyncio
async def test_failed_transaction_status(resolver, sources):
    sources.rpc_client.get_transaction_receipt.return_value = make_receipt(status="0x0")

    record = await resolver.resolve("0xdef")

    assert record.status == 0
    assert record.display_status == "fail"


@pytest.mark.asyncio
async def test_resolving_twice_yields_identical_records(resolver, sources):
    sources.bundle_client.get_bundled_transactions.return_value = BundleIndex(
        success=True,
        bundles={"0xdef": BundleInfo(bundle_index=1, miner_tip=10 ** 15)},
    )
    sources.subgraph_client.get_slot_delegates.return_value = {RECIPIENT: 4}

    first = await resolver.resolve("0xdef")
    second = await resolver.resolve("0xdef")

    assert first == second
    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_unknown_hash_is_not_found(resolver, sources, caplog):
    sources.rpc_client.get_transaction.return_value = None
    sources.rpc_client.get_transaction_receipt.return_value = None

    with caplog.at_level(logging.DEBUG):
        record = await resolver.resolve("0x404")

    assert isinstance(record, TransactionNotFound)
    assert record.lifecycle_state == NOT_FOUND
    assert record.hash == "0x404"
    assert any("0x404" in message for message in caplog.messages)


@pytest.mark.asyncio
async def test_receipt_without_request_raises(resolver, sources):
    sources.rpc_client.get_transaction.return_value = None

    with pytest.raises(PrimarySourceError) as exc_info:
        await resolver.resolve("0xdef")

    assert exc_info.value.tx_hash == "0xdef"


@pytest.mark.asyncio
async def test_primary_source_failure_propagates(resolver, sources):
    sources.relay_rpc_client.get_transaction = AsyncMock(side_effect=SourceFetchError("relay-rpc", "timeout"))

    with pytest.raises(PrimarySourceError) as exc_info:
        await resolver.resolve("0xdef")

    assert isinstance(exc_info.value.__cause__, SourceFetchError)
    # The other primary lookups still ran to completion
    sources.rpc_client.get_transaction.assert_awaited_once_with("0xdef")
    sources.rpc_client.get_transaction_receipt.assert_awaited_once_with("0xdef")
