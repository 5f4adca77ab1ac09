from typing import Dict

from config.settings import settings
from explorer.clients.http_client import HttpClient
from explorer.models.registry import BundleIndex, BundleInfo
from utils.exceptions import SourceFetchError
from utils.formatter_utils import parse_quantity
from utils.logger_utils import get_logger

logger = get_logger("Bundle Client")


class BundleClient(HttpClient):
    """
    Reads the MEV-bundle index (Flashbots blocks API) for a single block.
    """

    source = "bundle-index"

    def __init__(self, api_url: str = None, timeout: int = None):
        super().__init__(api_url or settings.bundles.api_url, timeout=timeout or settings.bundles.request_timeout)

    async def get_bundled_transactions(self, block_number: int) -> BundleIndex:
        """
        Returns the bundle index of a block. A block without bundles yields a
        successful, empty index; an unreachable index yields success=False.
        """
        try:
            data = await self._request("GET", "blocks", params={"block_number": block_number})
        except SourceFetchError as e:
            logger.warning(f"Bundle index unavailable for block {block_number}: {e}")
            return BundleIndex(success=False)

        bundles: Dict[str, BundleInfo] = {}
        for block in (data or {}).get("blocks") or []:
            if parse_quantity(block.get("block_number")) != block_number:
                continue
            for tx in block.get("transactions") or []:
                tx_hash = tx.get("transaction_hash")
                bundle_index = parse_quantity(tx.get("bundle_index"))
                if not tx_hash or bundle_index is None:
                    continue
                bundles[tx_hash.lower()] = BundleInfo(
                    bundle_index=bundle_index,
                    miner_tip=parse_quantity(tx.get("coinbase_transfer")),
                )

        logger.debug(f"Block {block_number} has {len(bundles)} bundled transactions")
        return BundleIndex(success=True, bundles=bundles)
