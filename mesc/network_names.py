"""Well-known network names and lookups between names and chain ids."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from mesc.errors import InvalidChainIdError
from mesc.types import to_chain_id

KNOWN_NETWORK_NAMES: Dict[str, str] = {
    "ethereum": "1",
    "goerli": "5",
    "optimism": "10",
    "cronos": "25",
    "bsc": "56",
    "gnosis": "100",
    "polygon": "137",
    "fantom": "250",
    "zksync": "324",
    "pgn": "424",
    "polygon_zkevm": "1101",
    "moonbeam": "1284",
    "mantle": "5000",
    "holesky": "17000",
    "base": "8453",
    "arbitrum": "42161",
    "celo": "42220",
    "avalanche": "43114",
    "linea": "59144",
    "blast": "81457",
    "scroll": "534352",
    "zora": "7777777",
    "sepolia": "11155111",
}


def merged_network_names(custom: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Built-in names overlaid with user-configured names."""
    names = dict(KNOWN_NETWORK_NAMES)
    if custom:
        names.update(custom)
    return names


def network_name_to_chain_id(name: str, custom: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Resolve a network name (case-insensitive) to its chain id."""
    if not name:
        return None
    lowered = name.strip().lower()
    for candidate, chain_id in merged_network_names(custom).items():
        if candidate.lower() == lowered:
            return chain_id
    return None


def chain_id_to_network_name(chain_id, custom: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Resolve a chain id to a network name, preferring user-configured names."""
    try:
        normalized = to_chain_id(chain_id)
    except InvalidChainIdError:
        return None
    for name, candidate in (custom or {}).items():
        if candidate == normalized:
            return name
    for name, candidate in KNOWN_NETWORK_NAMES.items():
        if candidate == normalized:
            return name
    return None
