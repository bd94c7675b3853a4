"""LLM- and HTTP-facing tool implementations."""

from .endpoints import (
    get_defaults,
    get_endpoint,
    get_metadata,
    get_status,
    list_endpoints,
    validate_chain_id,
)
from .ping import ping_endpoints

__all__ = [
    "get_status",
    "list_endpoints",
    "get_endpoint",
    "get_defaults",
    "get_metadata",
    "validate_chain_id",
    "ping_endpoints",
]
