"""
Lightweight JSON-RPC surface for MCP-style tooling.

Maps tool names to the implementations in ``mesc.tools``. URLs are masked
unless the caller passes ``reveal``; authentication is left to whatever hosts
the HTTP server.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mesc.config import default_config
from mesc.tools import (
    get_defaults,
    get_endpoint,
    get_metadata,
    get_status,
    list_endpoints,
    ping_endpoints,
    validate_chain_id,
)
from mesc.tools.validators import ENDPOINT_NAME_REGEX, QUERY_MAX_LENGTH

CHAIN_ID_SCHEMA: Dict[str, Any] = {
    "type": ["string", "integer"],
    "description": "Chain id as an integer, decimal string or 0x-prefixed hex string",
}
PROFILE_SCHEMA: Dict[str, Any] = {
    "type": "string",
    "description": "Profile name (e.g. the name of the calling tool)",
    "pattern": ENDPOINT_NAME_REGEX.pattern,
}
REVEAL_SCHEMA: Dict[str, Any] = {
    "type": "boolean",
    "description": "Include raw endpoint URLs (may contain API keys)",
}

ToolCallable = Callable[..., Awaitable[Any]] | Callable[..., Any]


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    params: Dict[str, Any]
    input_schema: Dict[str, Any]
    callable: ToolCallable


def _object_schema(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required or [],
        "additionalProperties": False,
    }


TOOL_REGISTRY: Dict[str, ToolDefinition] = {
    "get_status": ToolDefinition(
        name="get_status",
        description="Report whether MESC is enabled, its config mode and active overrides.",
        params={},
        input_schema=_object_schema({}),
        callable=get_status,
    ),
    "list_endpoints": ToolDefinition(
        name="list_endpoints",
        description="List configured RPC endpoints, optionally filtered by chain, name or url.",
        params={
            "chain_id": "string|integer (optional)",
            "name_contains": "string (optional)",
            "url_contains": "string (optional)",
            "reveal": "boolean (optional, default false)",
        },
        input_schema=_object_schema(
            {
                "chain_id": CHAIN_ID_SCHEMA,
                "name_contains": {"type": "string", "maxLength": QUERY_MAX_LENGTH},
                "url_contains": {"type": "string", "maxLength": QUERY_MAX_LENGTH},
                "reveal": REVEAL_SCHEMA,
            }
        ),
        callable=list_endpoints,
    ),
    "get_endpoint": ToolDefinition(
        name="get_endpoint",
        description="Resolve an endpoint by name, chain id or network name; default endpoint if no query.",
        params={
            "query": "string (optional)",
            "profile": "string (optional)",
            "reveal": "boolean (optional, default false)",
        },
        input_schema=_object_schema(
            {
                "query": {
                    "type": "string",
                    "description": "Endpoint name, chain id or network name",
                    "minLength": 1,
                    "maxLength": QUERY_MAX_LENGTH,
                },
                "profile": PROFILE_SCHEMA,
                "reveal": REVEAL_SCHEMA,
            }
        ),
        callable=get_endpoint,
    ),
    "get_defaults": ToolDefinition(
        name="get_defaults",
        description="Return the default endpoint and per-network default endpoints.",
        params={"profile": "string (optional)"},
        input_schema=_object_schema({"profile": PROFILE_SCHEMA}),
        callable=get_defaults,
    ),
    "get_metadata": ToolDefinition(
        name="get_metadata",
        description="Return global metadata merged with profile metadata.",
        params={"profile": "string (optional)"},
        input_schema=_object_schema({"profile": PROFILE_SCHEMA}),
        callable=get_metadata,
    ),
    "validate_chain_id": ToolDefinition(
        name="validate_chain_id",
        description="Validate and normalize a chain id without reading the config.",
        params={"chain_id": "string|integer (required)"},
        input_schema=_object_schema({"chain_id": CHAIN_ID_SCHEMA}, required=["chain_id"]),
        callable=validate_chain_id,
    ),
    "ping_endpoints": ToolDefinition(
        name="ping_endpoints",
        description="Ping configured endpoints and report latency, block number and chain id.",
        params={
            "chain_id": "string|integer (optional)",
            "name_contains": "string (optional)",
            "limit": "integer (optional)",
            "include_client_version": "boolean (optional)",
            "reveal": "boolean (optional, default false)",
        },
        input_schema=_object_schema(
            {
                "chain_id": CHAIN_ID_SCHEMA,
                "name_contains": {"type": "string", "maxLength": QUERY_MAX_LENGTH},
                "limit": {
                    "type": "integer",
                    "minimum": 0,
                    "maximum": default_config.max_ping_endpoints,
                    "description": f"Optional max endpoints (0-{default_config.max_ping_endpoints})",
                },
                "include_client_version": {"type": "boolean"},
                "reveal": REVEAL_SCHEMA,
            }
        ),
        callable=ping_endpoints,
    ),
}


def list_tools() -> List[Dict[str, Any]]:
    """Return a simple list of available tools."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "params": tool.params,
            "inputSchema": tool.input_schema,
        }
        for tool in TOOL_REGISTRY.values()
    ]


async def call_tool(tool_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Dispatch to a tool by name."""
    params = params or {}
    tool = TOOL_REGISTRY.get(tool_name)
    if tool is None:
        return {"error": f"Unknown tool: {tool_name}"}

    allowed = set(tool.input_schema.get("properties", {}))
    if set(params) - allowed:
        return {"error": "Invalid parameters."}

    try:
        result = tool.callable(**params)
        if inspect.isawaitable(result):
            return await result
        return result
    except TypeError:
        return {"error": "Invalid parameters."}
    except Exception:
        return {"error": "Unexpected error while calling tool."}
