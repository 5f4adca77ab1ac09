from typing import Any, Dict, Iterable, Optional, Set

from config.settings import settings
from explorer.clients.http_client import HttpClient
from explorer.models.registry import StakeSnapshot
from utils.exceptions import SourceFetchError
from utils.formatter_utils import parse_quantity, wei_to_ether
from utils.logger_utils import get_logger

logger = get_logger("Subgraph Client")

STAKER_QUERY = """
query staker($id: ID!) {
  staker(id: $id%s) {
    id
    staked
    rank
  }
}
"""

SLOTS_QUERY = """
query slots {
  slots(first: 100%s) {
    id
    delegate
  }
}
"""

RELAY_BLOCKS_QUERY = """
query relayBlocks($numbers: [BigInt!]!) {
  blocks(first: 1000, where: { number_in: $numbers, fromActiveProducer: true }) {
    number
  }
}
"""


def _block_arg(block_number: Optional[int]) -> str:
    return "" if block_number is None else f", block: {{ number: {int(block_number)} }}"


class SubgraphClient(HttpClient):
    """
    Reads the relay's subgraph: staking registry, slot delegation and the set
    of blocks produced by relay-affiliated producers. Every query can be pinned
    to a historical block height.
    """

    source = "relay-subgraph"

    def __init__(self, subgraph_uri: str = None, timeout: int = None):
        super().__init__(
            subgraph_uri or settings.relay.subgraph_uri,
            timeout=timeout or settings.relay.request_timeout,
        )

    async def _query(self, query: str, variables: Dict[str, Any] = None) -> Dict[str, Any]:
        body = await self._request("POST", json={"query": query, "variables": variables or {}})
        if not isinstance(body, dict):
            raise SourceFetchError(self.source, f"Unexpected GraphQL answer: {body}")
        if body.get("errors"):
            raise SourceFetchError(self.source, f"GraphQL errors: {body['errors']}")
        return body.get("data") or {}

    async def get_stake(self, address: str, block_number: Optional[int] = None) -> StakeSnapshot:
        """Stake and rank of an address, as of block_number (latest if None)."""
        data = await self._query(STAKER_QUERY % _block_arg(block_number), {"id": address.lower()})
        staker = data.get("staker")
        if not staker:
            return StakeSnapshot(staked=0, rank=None)
        return StakeSnapshot(
            staked=wei_to_ether(parse_quantity(staker.get("staked")) or 0),
            rank=parse_quantity(staker.get("rank")),
        )

    async def get_slot_delegates(self, block_number: Optional[int] = None) -> Dict[str, int]:
        """Map of lower-cased delegate address -> slot id, as of block_number (latest if None)."""
        data = await self._query(SLOTS_QUERY % _block_arg(block_number))
        delegates: Dict[str, int] = {}
        for slot in data.get("slots") or []:
            delegate = slot.get("delegate")
            if delegate:
                delegates[delegate.lower()] = int(slot["id"])
        return delegates

    async def filter_relay_blocks(self, block_numbers: Iterable[int]) -> Set[int]:
        """Subset of block_numbers that were produced by a relay-affiliated producer."""
        numbers = sorted(set(block_numbers))
        if not numbers:
            return set()
        data = await self._query(RELAY_BLOCKS_QUERY, {"numbers": [str(n) for n in numbers]})
        return {int(block["number"]) for block in data.get("blocks") or []}

    async def is_relay_block(self, block_number: int) -> bool:
        return block_number in await self.filter_relay_blocks([block_number])
