from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from explorer.rpc_client import RpcClient
from utils.exceptions import SourceFetchError


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("explorer.rpc_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


def answer(payload, result):
    return {"jsonrpc": "2.0", "id": payload["id"], "result": result}


@pytest.mark.asyncio
async def test_get_transaction_returns_result():
    client = RpcClient("http://node")
    tx = {"hash": "0xabc", "nonce": "0x1"}

    with patch.object(client, "_post", AsyncMock(side_effect=lambda url, payload: (200, answer(payload, tx)))) as mock_post:
        assert await client.get_transaction("0xabc") == tx

    url, payload = mock_post.call_args.args
    assert url == "http://node"
    assert payload["method"] == "eth_getTransactionByHash"
    assert payload["params"] == ["0xabc"]


@pytest.mark.asyncio
async def test_null_result_means_unknown():
    client = RpcClient("http://node")

    with patch.object(client, "_post", AsyncMock(side_effect=lambda url, payload: (200, answer(payload, None)))):
        assert await client.get_transaction_receipt("0xabc") is None


@pytest.mark.asyncio
async def test_fails_over_to_next_url():
    client = RpcClient(["http://first", "http://second"])
    responses = iter([(502, None)])

    async def post(url, payload):
        if url == "http://first":
            return next(responses)
        return 200, answer(payload, "0x10")

    with patch.object(client, "_post", AsyncMock(side_effect=post)) as mock_post:
        assert await client.get_transaction_count("0x1111111111111111111111111111111111111111") == 16

    assert [call.args[0] for call in mock_post.call_args_list] == ["http://first", "http://second"]


@pytest.mark.asyncio
async def test_retriable_rpc_error_then_success():
    client = RpcClient("http://node")
    answers = iter([
        lambda payload: {"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32000, "message": "header not found"}},
        lambda payload: answer(payload, {"hash": "0xabc"}),
    ])

    with patch.object(client, "_post", AsyncMock(side_effect=lambda url, payload: (200, next(answers)(payload)))):
        assert await client.get_transaction("0xabc") == {"hash": "0xabc"}


@pytest.mark.asyncio
async def test_non_retriable_rpc_error_raises_immediately():
    client = RpcClient("http://node", max_retries=3)
    error = lambda url, payload: (200, {"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32602, "message": "invalid argument"}})

    with patch.object(client, "_post", AsyncMock(side_effect=error)) as mock_post:
        with pytest.raises(SourceFetchError) as exc_info:
            await client.get_transaction("0xnot-a-hash")

    assert exc_info.value.source == "public-node"
    assert mock_post.await_count == 1


@pytest.mark.asyncio
async def test_exhausted_retries_raise_source_error():
    client = RpcClient(["http://first", "http://second"], source="relay-rpc", max_retries=2)

    with patch.object(client, "_post", AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))) as mock_post:
        with pytest.raises(SourceFetchError) as exc_info:
            await client.get_transaction("0xabc")

    assert exc_info.value.source == "relay-rpc"
    assert mock_post.await_count == 4


@pytest.mark.asyncio
async def test_get_blocks_sends_one_batch_and_skips_failed_items():
    client = RpcClient("http://node")

    async def post(url, payload):
        first, second, third = payload
        # Batch answers may come back in any order
        return 200, [
            {"jsonrpc": "2.0", "id": third["id"], "error": {"code": -32602, "message": "bad block"}},
            answer(first, {"number": first["params"][0]}),
            answer(second, None),
        ]

    with patch.object(client, "_post", AsyncMock(side_effect=post)) as mock_post:
        blocks = await client.get_blocks([100, 101, 102])

    assert mock_post.await_count == 1
    payload = mock_post.call_args.args[1]
    assert [item["params"] for item in payload] == [["0x64", False], ["0x65", False], ["0x66", False]]
    assert blocks == {100: {"number": "0x64"}}


@pytest.mark.asyncio
async def test_get_transactions_keys_by_lower_case_hash():
    client = RpcClient("http://node")

    async def post(url, payload):
        return 200, [answer(item, {"hash": item["params"][0]} if item["params"][0] == "0xABC" else None) for item in payload]

    with patch.object(client, "_post", AsyncMock(side_effect=post)):
        transactions = await client.get_transactions(["0xABC", "0xdef"])

    assert transactions == {"0xabc": {"hash": "0xABC"}, "0xdef": None}


@pytest.mark.asyncio
async def test_empty_batches_skip_the_network():
    client = RpcClient("http://node")

    with patch.object(client, "_post", AsyncMock()) as mock_post:
        assert await client.get_blocks([]) == {}
        assert await client.get_transactions([]) == {}

    mock_post.assert_not_awaited()


def test_requires_a_url():
    with pytest.raises(ValueError):
        RpcClient([])
