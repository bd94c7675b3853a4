"""JSON-RPC client used to ping MESC endpoints."""

from .client import (
    NodeUnreachableError,
    RateLimitedError,
    RpcClient,
    RpcError,
    UnauthorizedError,
    default_client,
)
from .ping import PingResult, ping_endpoint, ping_endpoints

__all__ = [
    "RpcClient",
    "RpcError",
    "UnauthorizedError",
    "RateLimitedError",
    "NodeUnreachableError",
    "default_client",
    "PingResult",
    "ping_endpoint",
    "ping_endpoints",
]
