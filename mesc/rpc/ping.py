"""Concurrent latency checks against configured endpoints."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from mesc.rpc.client import RpcClient, RpcError
from mesc.types import Endpoint

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PingResult:
    endpoint: Endpoint
    latency_ms: Optional[float] = None
    block_number: Optional[int] = None
    client_version: Optional[str] = None
    chain_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def chain_id_matches(self) -> Optional[bool]:
        if self.chain_id is None or self.endpoint.chain_id is None:
            return None
        return self.chain_id == self.endpoint.chain_id

    def to_dict(self, *, url: Optional[str] = None) -> Dict[str, Any]:
        return {
            "name": self.endpoint.name,
            "url": url if url is not None else self.endpoint.url,
            "configuredChainId": self.endpoint.chain_id,
            "chainId": self.chain_id,
            "chainIdMatches": self.chain_id_matches,
            "latencyMs": self.latency_ms,
            "blockNumber": self.block_number,
            "clientVersion": self.client_version,
            "error": self.error,
        }


async def ping_endpoint(
    endpoint: Endpoint, client: RpcClient, *, fields: Iterable[str] = ("block_number",)
) -> PingResult:
    """
    Ping one endpoint.

    Latency is measured on the eth_blockNumber call. Optional fields are
    ``client_version`` and ``chain_id``; a failure on any call is recorded in
    ``error`` rather than raised.
    """
    result = PingResult(endpoint=endpoint)
    wanted = set(fields)
    try:
        start = time.perf_counter()
        result.block_number = await client.fetch_block_number(endpoint.url)
        result.latency_ms = round((time.perf_counter() - start) * 1000, 2)
        if "client_version" in wanted:
            result.client_version = await client.fetch_client_version(endpoint.url)
        if "chain_id" in wanted:
            result.chain_id = await client.fetch_chain_id(endpoint.url)
    except RpcError as exc:
        logger.info("ping failed for endpoint %s: %s", endpoint.name, exc)
        result.error = str(exc)
    return result


async def ping_endpoints(
    endpoints: Iterable[Endpoint],
    client: RpcClient,
    *,
    concurrency: int = 8,
    fields: Iterable[str] = ("block_number",),
) -> List[PingResult]:
    """Ping endpoints concurrently; results keep the input order."""
    semaphore = asyncio.Semaphore(max(1, concurrency))
    field_list = tuple(fields)

    async def _bounded(endpoint: Endpoint) -> PingResult:
        async with semaphore:
            return await ping_endpoint(endpoint, client, fields=field_list)

    return list(await asyncio.gather(*(_bounded(endpoint) for endpoint in endpoints)))
