import asyncio
from typing import Any, Dict, Optional

import aiohttp

from config.settings import settings
from utils.exceptions import SourceFetchError
from utils.logger_utils import get_logger

logger = get_logger("Http Client")


class HttpClient(object):
    """
    Base class for the REST/GraphQL source clients.
    Owns a pooled aiohttp session and retries 429s and network errors with
    exponential backoff. Any request that does not end in a 200 raises
    SourceFetchError, so callers can tell "no data" from "source down".
    """

    source = "http"

    def __init__(self, base_url: str, timeout: int = 30, max_retries: int = 3, base_wait: float = 1.0, headers: Optional[Dict[str, str]] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        self.base_wait = base_wait
        self.headers = {"User-Agent": f"{settings.app.name}/1.0"}
        if headers:
            self.headers.update(headers)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(limit=100, force_close=False)
            self.session = aiohttp.ClientSession(connector=connector, timeout=self.timeout, headers=self.headers)
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def _request(self, method: str, endpoint: str = "", params: Dict[str, Any] = None, json: Any = None) -> Any:
        url = f"{self.base_url}/{endpoint}" if endpoint else self.base_url
        session = await self._get_session()

        for attempt in range(self.max_retries):
            wait_time = self.base_wait * (2 ** attempt)
            try:
                async with session.request(method, url, params=params, json=json) as response:
                    if response.status == 200:
                        try:
                            return await response.json(content_type=None)
                        except ValueError as e:
                            raise SourceFetchError(self.source, f"Malformed JSON from {url}: {e}") from e

                    if response.status == 429 or response.status >= 500:
                        logger.warning(f"[{self.source}] HTTP {response.status} on {url}. Retrying in {wait_time}s... (Attempt {attempt + 1}/{self.max_retries})")
                    else:
                        raise SourceFetchError(self.source, f"HTTP {response.status} {response.reason} on {url}")

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"[{self.source}] Error requesting {url}: {e!r} (Attempt {attempt + 1}/{self.max_retries})")

            if attempt < self.max_retries - 1:
                await asyncio.sleep(wait_time)

        raise SourceFetchError(self.source, f"Max retries reached for {url}")
