"""
Thin JSON-RPC client for probing configured endpoints.

Only read-only methods are issued. Transport and protocol failures are mapped to
internal exceptions that the tool layer turns into safe, user-facing messages.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from mesc.config import ServiceConfig, default_config
from mesc.errors import MescError
from mesc.types import to_chain_id

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """Base exception for JSON-RPC errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str | int] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class UnauthorizedError(RpcError):
    """Raised when the endpoint rejects the request due to missing auth."""


class RateLimitedError(RpcError):
    """Raised when the endpoint throttles the request."""


class NodeUnreachableError(RpcError):
    """Raised when the endpoint cannot be reached."""


def _parse_quantity(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError:
            return None
    return None


class RpcClient:
    """Async client for the small JSON-RPC surface used to ping endpoints."""

    def __init__(
        self,
        config: ServiceConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None
        self._ids = itertools.count(1)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _map_error(self, status_code: int, error: Any = None) -> RpcError:
        code: Optional[str | int] = None
        message: Optional[str] = None
        if isinstance(error, dict):
            raw_code = error.get("code")
            if isinstance(raw_code, (str, int)):
                code = raw_code
            raw_message = error.get("message")
            if isinstance(raw_message, str):
                message = raw_message
        lowered = (message or "").lower()
        if status_code in {401, 403} or "unauthorized" in lowered:
            return UnauthorizedError(
                "Unauthorized or API key required.", code=code, status_code=status_code
            )
        if status_code == 429 or code == -32005 or "rate limit" in lowered:
            return RateLimitedError("Endpoint rate limit exceeded.", code=code, status_code=status_code)
        if code == -32601:
            return RpcError("Method not supported by endpoint.", code=code, status_code=status_code)
        if status_code == 404:
            return RpcError("Endpoint not found.", code=code, status_code=status_code)
        return RpcError("JSON-RPC error.", code=code, status_code=status_code)

    def _process_response(self, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            error = data.get("error") if isinstance(data, dict) else None
            raise self._map_error(response.status_code, error)

        if not isinstance(data, dict):
            raise RpcError("Unexpected response from endpoint.", status_code=response.status_code)
        if data.get("error") is not None:
            raise self._map_error(response.status_code, data["error"])
        if "result" not in data:
            raise RpcError("Unexpected response from endpoint.", status_code=response.status_code)
        return data["result"]

    async def request(self, url: str, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send one JSON-RPC call to url and return its result field."""
        client = await self._get_client()
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            response = await client.post(url, json=payload)
        except httpx.RequestError as exc:
            logger.warning("endpoint unreachable for method %s", method)
            raise NodeUnreachableError("Node unreachable") from exc
        return self._process_response(response)

    async def fetch_chain_id(self, url: str) -> str:
        """Return the endpoint's chain id as a decimal string."""
        result = await self.request(url, "eth_chainId")
        try:
            return to_chain_id(result)
        except MescError as exc:
            raise RpcError("Unexpected chain id from endpoint.") from exc

    async def fetch_block_number(self, url: str) -> int:
        """Return the latest block number."""
        result = _parse_quantity(await self.request(url, "eth_blockNumber"))
        if result is None:
            raise RpcError("Unexpected block number from endpoint.")
        return result

    async def fetch_client_version(self, url: str) -> str:
        """Return the node's client version string."""
        result = await self.request(url, "web3_clientVersion")
        if not isinstance(result, str):
            raise RpcError("Unexpected client version from endpoint.")
        return result


default_client = RpcClient()
