"""
Endpoint lookups against a MESC config.

Every function accepts an already-loaded ``config``; when omitted the config is
loaded from the environment on each call.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mesc.errors import InvalidChainIdError
from mesc.loading import load_config
from mesc.network_names import network_name_to_chain_id
from mesc.types import Endpoint, EndpointQuery, Profile, RpcConfig, to_chain_id


def _resolve(config: Optional[RpcConfig]) -> RpcConfig:
    return config if config is not None else load_config()


def _profile(config: RpcConfig, profile: Optional[str]) -> Optional[Profile]:
    if profile is None:
        return None
    return config.profiles.get(profile)


def _disabled_by_profile(config: RpcConfig, profile: Optional[str]) -> bool:
    selected = _profile(config, profile)
    return selected is not None and not selected.use_mesc


def get_default_endpoint(
    profile: Optional[str] = None, *, config: Optional[RpcConfig] = None
) -> Optional[Endpoint]:
    """Return the profile's default endpoint, falling back to the global default."""
    config = _resolve(config)
    if _disabled_by_profile(config, profile):
        return None
    selected = _profile(config, profile)
    name = config.default_endpoint
    if selected is not None and selected.default_endpoint is not None:
        name = selected.default_endpoint
    if name is None:
        return None
    return config.endpoints.get(name)


def get_endpoint_by_network(
    chain_id: Any, profile: Optional[str] = None, *, config: Optional[RpcConfig] = None
) -> Optional[Endpoint]:
    """Return the default endpoint for a chain id, honoring profile network defaults."""
    normalized = to_chain_id(chain_id)
    config = _resolve(config)
    if _disabled_by_profile(config, profile):
        return None
    selected = _profile(config, profile)
    name = None
    if selected is not None:
        name = selected.network_defaults.get(normalized)
    if name is None:
        name = config.network_defaults.get(normalized)
    if name is None:
        return None
    return config.endpoints.get(name)


def get_endpoint_by_name(
    name: str, profile: Optional[str] = None, *, config: Optional[RpcConfig] = None
) -> Optional[Endpoint]:
    config = _resolve(config)
    if _disabled_by_profile(config, profile):
        return None
    return config.endpoints.get(name)


def get_endpoint_by_query(
    user_input: str, profile: Optional[str] = None, *, config: Optional[RpcConfig] = None
) -> Optional[Endpoint]:
    """
    Resolve free-form user input to an endpoint.

    The input is tried, in order, as an endpoint name, a chain id (decimal or
    hex) and a network name. Returns None when nothing matches.
    """
    config = _resolve(config)
    if _disabled_by_profile(config, profile):
        return None
    value = user_input.strip()
    if not value:
        return None

    endpoint = config.endpoints.get(value)
    if endpoint is not None:
        return endpoint

    try:
        chain_id: Optional[str] = to_chain_id(value)
    except InvalidChainIdError:
        chain_id = network_name_to_chain_id(value, config.network_names)
    if chain_id is None:
        return None
    return get_endpoint_by_network(chain_id, profile, config=config)


def find_endpoints(
    query: Optional[EndpointQuery] = None, *, config: Optional[RpcConfig] = None
) -> List[Endpoint]:
    """Return endpoints matching every set filter of the query, sorted by name."""
    config = _resolve(config)
    query = query or EndpointQuery()
    matches = [endpoint for endpoint in config.endpoints.values() if query.matches(endpoint)]
    return sorted(matches, key=lambda endpoint: endpoint.name)


def get_global_metadata(
    profile: Optional[str] = None, *, config: Optional[RpcConfig] = None
) -> Dict[str, Any]:
    """Global metadata with the profile's metadata layered on top."""
    config = _resolve(config)
    metadata = dict(config.global_metadata)
    selected = _profile(config, profile)
    if selected is not None:
        metadata.update(selected.profile_metadata)
    return metadata
