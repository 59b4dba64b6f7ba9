"""
JSON-RPC transport shared by the bundler and execution providers
"""

import itertools
import logging
from typing import Any, List, Optional

import httpx

from aa_wallet.config import DEFAULT_RPC_TIMEOUT, is_url
from aa_wallet.exceptions import ConfigurationError, RPCError

logger = logging.getLogger(__name__)


class RPCBase:
    """Minimal JSON-RPC 2.0 client over HTTP"""

    error_class = RPCError

    def __init__(self, url: str, timeout: float = DEFAULT_RPC_TIMEOUT, client: Optional[httpx.AsyncClient] = None):
        if not is_url(url):
            raise ConfigurationError(f"Invalid RPC url: {url!r}", {"url": url})
        self.url = url
        self.timeout = timeout
        self._client = client
        self._ids = itertools.count(1)

    async def send(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send an RPC call and return its `result` member"""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params) if params is not None else [],
            "id": next(self._ids),
        }
        logger.debug(f"RPC request to {self.url}: {payload}")
        response = await self._get_client().post(
            self.url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return self._unwrap(method, response.json())

    def _unwrap(self, method: str, body: Any) -> Any:
        if not isinstance(body, dict):
            raise self.error_class(f"Malformed response to {method}", method=method, endpoint=self.url)
        if body.get("error") is not None:
            error = body["error"]
            if isinstance(error, dict):
                message = error.get("message", "Unknown error")
                code = error.get("code")
                data = error.get("data")
            else:
                message, code, data = str(error), None, None
            logger.error(f"RPC error from {method}: {message}")
            raise self.error_class(message, code=code, data=data, method=method, endpoint=self.url)
        if "result" not in body:
            raise self.error_class(f"Missing result in response to {method}", method=method, endpoint=self.url)
        return body["result"]

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
