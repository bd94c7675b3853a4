"""Shared validation helpers for MESC tools."""

from __future__ import annotations

import re
from typing import Any, Optional

from mesc.errors import MescError
from mesc.types import to_chain_id

ENDPOINT_NAME_REGEX = re.compile(r"^[A-Za-z0-9_.\-]{1,128}$")
QUERY_MAX_LENGTH = 128


def normalize_chain_id(value: Any) -> Optional[str]:
    """Return the canonical chain id or None when value is not one."""
    if value is None:
        return None
    try:
        return to_chain_id(value)
    except MescError:
        return None


def is_valid_endpoint_name(name: Optional[str]) -> bool:
    if not name or not isinstance(name, str):
        return False
    return bool(ENDPOINT_NAME_REGEX.fullmatch(name))


def is_valid_query(value: Optional[str]) -> bool:
    """Free-form lookups: non-blank and bounded in length."""
    if not value or not isinstance(value, str):
        return False
    stripped = value.strip()
    return 0 < len(stripped) <= QUERY_MAX_LENGTH


def clamp_limit(value: Optional[int], *, default: int, max_value: int) -> int:
    """Clamp limit-style integers to configured bounds."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    if parsed < 0:
        return default
    return min(parsed, max_value)
