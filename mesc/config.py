"""
Runtime settings for the MESC tools, CLI and HTTP server.

These settings only govern how this package behaves (logging, RPC timeouts,
rate limits). The endpoint configuration itself is loaded by ``mesc.loading``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict


def _load_float(env_var: str, default: float) -> float:
    raw_value = os.getenv(env_var)
    if raw_value:
        try:
            return float(raw_value)
        except ValueError:
            return default
    return default


def _load_int(env_var: str, default: int) -> int:
    raw_value = os.getenv(env_var)
    if raw_value:
        try:
            return int(raw_value)
        except ValueError:
            return default
    return default


def _load_timeout() -> float:
    return _load_float("MESC_RPC_TIMEOUT", 10.0)


def _parse_rate_limits(raw: str | None) -> Dict[str, float]:
    """Parse ``tool=qps`` pairs separated by commas; malformed pairs are skipped."""
    limits: Dict[str, float] = {}
    if not raw:
        return limits
    for item in raw.split(","):
        tool, sep, value = item.strip().partition("=")
        if not sep or not tool:
            continue
        try:
            limits[tool.strip()] = float(value)
        except ValueError:
            continue
    return limits


DEFAULT_TIMEOUT = _load_timeout()
DEFAULT_RATE_LIMIT_QPS = _load_float("MESC_SERVER_RATE_LIMIT_QPS", 5.0)
DEFAULT_PING_CONCURRENCY = _load_int("MESC_PING_CONCURRENCY", 8)
MAX_PING_ENDPOINTS = 50
MASKED_URL = "*" * 8
LOG_LEVEL = os.getenv("MESC_SERVER_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("MESC_SERVER_LOG_FORMAT", "json")  # json or plain


@dataclass(slots=True)
class ServiceConfig:
    """Runtime configuration for MESC tooling."""

    timeout: float = DEFAULT_TIMEOUT
    rate_limit_qps: float = DEFAULT_RATE_LIMIT_QPS
    ping_concurrency: int = DEFAULT_PING_CONCURRENCY
    max_ping_endpoints: int = MAX_PING_ENDPOINTS
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    per_tool_rate_limits: Dict[str, float] = field(
        default_factory=lambda: _parse_rate_limits(os.getenv("MESC_SERVER_TOOL_RATE_LIMITS"))
    )


default_config = ServiceConfig()
