import aiohttp
import asyncio
import random
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from utils.exceptions import RetriableValueError, SourceFetchError
from utils.logger_utils import get_logger
from utils.rpc_utils import rpc_response_batch_to_results, rpc_response_to_result

logger = get_logger("Rpc Client")


class RpcClient(object):
    """
    Async JSON-RPC client supporting batch requests and failover across several URLs.
    Uses a persistent ClientSession for connection pooling, with adaptive rate
    limiting and exponential backoff on 429s.

    The same client serves the public node and the private relay's RPC; `source`
    only names it in logs and errors.

    A JSON null result is returned as None ("unknown transaction", "no receipt").
    Failures after all retries raise SourceFetchError, never return None.
    """
    def __init__(
        self,
        rpc_url: Union[str, List[str]],
        source: str = "public-node",
        max_retries: int = 3,
        timeout: int = 30,
        rpc_min_interval: float = 0.0,
    ):
        if isinstance(rpc_url, str):
            self.rpc_urls = [rpc_url]
        else:
            self.rpc_urls = list(rpc_url)

        if not self.rpc_urls:
            raise ValueError("At least one RPC URL must be provided.")

        self.source = source
        self.id_counter = 0
        self.max_retries = max_retries
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        self._session: Optional[aiohttp.ClientSession] = None

        self._last_request_time = 0.0
        self._min_interval = rpc_min_interval

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Lazy loads or returns the existing session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=100, force_close=False)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    def _generate_id(self) -> int:
        self.id_counter += 1
        return self.id_counter

    def _payload(self, method: str, params: List[Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "method": method, "params": params, "id": self._generate_id()}

    async def _enforce_rate_limit(self):
        elapsed = time.time() - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = time.time()

    async def _handle_429_backoff(self, url: str, attempt: int, method_name: str):
        """
        Adaptive handling for 429 Too Many Requests: slow the client down
        permanently (up to 2s per request) and back off with jitter.
        """
        previous_interval = self._min_interval
        self._min_interval = min(max(self._min_interval, 0.1) * 1.5, 2.0)

        if self._min_interval > previous_interval:
            logger.warning(f"RPC 429 Rate Limit at {url}. Increasing per-request delay from {previous_interval:.2f}s to {self._min_interval:.2f}s")

        backoff_time = (2 ** (attempt - 1)) + random.uniform(0, 1)
        logger.warning(f"RPC 429 at {url} for {method_name}. Backing off for {backoff_time:.2f}s...")
        await asyncio.sleep(backoff_time)

    async def _post(self, url: str, payload: Union[Dict, List[Dict]]) -> Tuple[int, Any]:
        session = await self._get_session()
        await self._enforce_rate_limit()
        async with session.post(url, json=payload) as response:
            if response.status == 200:
                return response.status, await response.json(content_type=None)
            return response.status, None

    async def _send(self, method_name: str, payload: Union[Dict, List[Dict]]) -> Any:
        """
        Posts the payload, walking every URL on each attempt. Returns the decoded
        JSON body of the first 200 answer that is not a retriable RPC error.
        """
        last_error: Optional[str] = None
        for attempt in range(1, self.max_retries + 1):
            for url in self.rpc_urls:
                try:
                    status, data = await self._post(url, payload)
                    if status == 200:
                        if isinstance(payload, dict) and isinstance(data, dict):
                            return rpc_response_to_result(data)
                        if isinstance(payload, list) and isinstance(data, list):
                            return data
                        last_error = f"unexpected answer {data}"
                    elif status == 429:
                        await self._handle_429_backoff(url, attempt, method_name)
                        last_error = "rate limited"
                    else:
                        last_error = f"HTTP {status}"
                        logger.error(f"[{self.source}] RPC HTTP Error {status} ({method_name}) at {url}. Trying next provider...")
                except RetriableValueError as e:
                    last_error = str(e)
                    logger.warning(f"[{self.source}] Retriable RPC error in {method_name} at {url}: {e}")
                except ValueError as e:
                    raise SourceFetchError(self.source, f"{method_name} failed: {e}") from e
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    last_error = repr(e)
                    logger.warning(f"[{self.source}] Network error in {method_name} at {url}: {e!r}")

            if attempt < self.max_retries:
                wait_time = (2 ** (attempt - 1)) + random.uniform(0, 1)
                logger.warning(f"[{self.source}] All providers failed for {method_name} (Attempt {attempt}). Retrying in {wait_time:.2f}s...")
                await asyncio.sleep(wait_time)

        raise SourceFetchError(self.source, f"{method_name} failed after {self.max_retries} attempts: {last_error}")

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._send("eth_getTransactionByHash", self._payload("eth_getTransactionByHash", [tx_hash]))

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._send("eth_getTransactionReceipt", self._payload("eth_getTransactionReceipt", [tx_hash]))

    async def get_transaction_count(self, address: str, block: str = "latest") -> int:
        result = await self._send("eth_getTransactionCount", self._payload("eth_getTransactionCount", [address, block]))
        return int(result, 16)

    async def get_transactions(self, tx_hashes: Iterable[str]) -> Dict[str, Optional[Dict[str, Any]]]:
        """
        Batched eth_getTransactionByHash. Returns {lower-cased hash: transaction or None}.
        Hashes whose batch item errored are left out of the map.
        """
        tx_hashes = list(tx_hashes)
        if not tx_hashes:
            return {}

        payloads = [self._payload("eth_getTransactionByHash", [tx_hash]) for tx_hash in tx_hashes]
        response = await self._send(f"batch eth_getTransactionByHash ({len(payloads)})", payloads)
        results = rpc_response_batch_to_results(response)

        transactions: Dict[str, Optional[Dict[str, Any]]] = {}
        for tx_hash, payload in zip(tx_hashes, payloads):
            result = results.get(payload["id"])
            if isinstance(result, Exception):
                logger.warning(f"[{self.source}] Lookup of {tx_hash} failed in batch: {result}")
                continue
            transactions[tx_hash.lower()] = result
        return transactions

    async def get_blocks(self, block_numbers: Iterable[int], full_transactions: bool = False) -> Dict[int, Dict[str, Any]]:
        """
        Fetches block headers for the given block numbers in a single batch request,
        one item per block number. Blocks whose item errored or came back null are
        left out of the map and logged.
        """
        block_numbers = list(block_numbers)
        if not block_numbers:
            return {}

        payloads = [
            self._payload("eth_getBlockByNumber", [hex(number), full_transactions])
            for number in block_numbers
        ]
        response = await self._send(f"batch eth_getBlockByNumber ({len(payloads)})", payloads)
        results = rpc_response_batch_to_results(response)

        blocks: Dict[int, Dict[str, Any]] = {}
        for number, payload in zip(block_numbers, payloads):
            result = results.get(payload["id"])
            if result is None or isinstance(result, Exception):
                logger.warning(f"[{self.source}] Missing metadata for block {number}: {result}")
                continue
            blocks[number] = result
        return blocks
