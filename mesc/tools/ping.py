"""Endpoint probing tool."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from mesc.config import MASKED_URL, default_config
from mesc.errors import MescError
from mesc.loading import load_config
from mesc.queries import find_endpoints
from mesc.rpc import default_client
from mesc.rpc import ping_endpoints as ping_many
from mesc.tools.endpoints import error_message
from mesc.tools.validators import clamp_limit, normalize_chain_id
from mesc.types import EndpointQuery, RpcConfig

logger = logging.getLogger(__name__)


async def ping_endpoints(
    chain_id: Any = None,
    name_contains: Optional[str] = None,
    limit: Optional[int] = None,
    include_client_version: bool = False,
    reveal: bool = False,
    *,
    client=default_client,
    config: Optional[RpcConfig] = None,
) -> Dict[str, Any]:
    """
    Ping matching endpoints and report latency and chain state.

    Args:
        chain_id: only ping endpoints on this chain.
        name_contains: only ping endpoints whose name contains this text.
        limit: maximum endpoints to ping (bounded by max_ping_endpoints).
        include_client_version: also call web3_clientVersion.
        reveal: include raw URLs in the output.
        client: RPC client (override for testing).
        config: pre-loaded MESC config (override for testing).

    Returns:
        Dict with a ``results`` list, or an error dict.
    """
    query = EndpointQuery()
    if chain_id is not None:
        normalized = normalize_chain_id(chain_id)
        if normalized is None:
            return {"error": "Invalid chain id."}
        query.chain_id(normalized)
    if name_contains:
        query.name(name_contains)
    effective_limit = clamp_limit(
        limit,
        default=default_config.max_ping_endpoints,
        max_value=default_config.max_ping_endpoints,
    )
    try:
        loaded = config if config is not None else load_config()
        endpoints = find_endpoints(query, config=loaded)[:effective_limit]
    except MescError as exc:
        return {"error": error_message(exc)}

    fields = ["block_number", "chain_id"]
    if include_client_version:
        fields.append("client_version")
    try:
        results = await ping_many(
            endpoints, client, concurrency=default_config.ping_concurrency, fields=fields
        )
    except Exception:
        logger.exception("Unexpected error pinging endpoints")
        return {"error": "Unexpected error while pinging endpoints."}

    return {
        "count": len(results),
        "results": [
            result.to_dict(url=None if reveal else MASKED_URL) for result in results
        ],
    }
