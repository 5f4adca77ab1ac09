from typing import Any, Dict, List, Optional

from config.settings import settings
from explorer.clients.http_client import HttpClient
from utils.exceptions import SourceFetchError
from utils.logger_utils import get_logger

logger = get_logger("Etherscan Client")

NO_RECORDS_MESSAGES = ("No transactions found", "No records found")


class EtherscanClient(HttpClient):
    """
    Explorer API client: paginated account history and verified contract sources.
    """

    source = "etherscan"

    def __init__(self, api_url: str = None, api_key: Optional[str] = None, timeout: int = None):
        super().__init__(api_url or settings.etherscan.api_url, timeout=timeout or settings.etherscan.request_timeout)
        self.api_key = api_key if api_key is not None else settings.etherscan.api_key

    async def _call(self, params: Dict[str, Any]) -> Any:
        if self.api_key:
            params = {**params, "apikey": self.api_key}
        data = await self._request("GET", params=params)
        if not isinstance(data, dict):
            raise SourceFetchError(self.source, f"Unexpected answer: {data}")

        if str(data.get("status")) == "1":
            return data.get("result")
        if data.get("message") in NO_RECORDS_MESSAGES:
            return []
        raise SourceFetchError(self.source, f"{params.get('module')}/{params.get('action')} failed: {data.get('message')} {data.get('result')}")

    async def get_account_transactions(self, address: str, page_size: int, page: int = 1) -> List[Dict[str, Any]]:
        """
        One page of an account's mined transactions, newest first.
        """
        logger.info(f"Fetching transactions page {page} (size {page_size}) for {address}...")
        result = await self._call({
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": page,
            "offset": page_size,
            "sort": "desc",
        })
        return result or []

    async def get_contract_source(self, address: str) -> Optional[Dict[str, Any]]:
        """
        Verified source entry of a contract (ContractName, ABI, ...), or None.
        """
        result = await self._call({"module": "contract", "action": "getsourcecode", "address": address})
        if not result:
            return None
        return result[0]
