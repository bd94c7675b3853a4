"""Config-backed tools: status, endpoint lookups, defaults and metadata."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from mesc.config import MASKED_URL
from mesc.errors import (
    ConfigReadError,
    IntegrityError,
    InvalidChainIdError,
    InvalidConfigModeError,
    InvalidInputError,
    InvalidJsonError,
    MescError,
    MescNotEnabledError,
)
from mesc.loading import PATH_ENV_VAR, get_config_mode, is_mesc_enabled, load_config
from mesc.network_names import chain_id_to_network_name
from mesc.overrides import OVERRIDE_ENV_VARS
from mesc.queries import find_endpoints, get_default_endpoint, get_endpoint_by_query, get_global_metadata
from mesc.types import Endpoint, EndpointQuery, RpcConfig, chain_id_sort_key
from mesc.tools.validators import is_valid_endpoint_name, is_valid_query, normalize_chain_id

logger = logging.getLogger(__name__)


def error_message(exc: MescError) -> str:
    """Map library exceptions to safe, user-facing messages."""
    if isinstance(exc, MescNotEnabledError):
        return "MESC is not enabled."
    if isinstance(exc, InvalidConfigModeError):
        return "Invalid MESC_MODE."
    if isinstance(exc, ConfigReadError):
        return "Could not read MESC config."
    if isinstance(exc, InvalidJsonError):
        return "Invalid MESC config JSON."
    if isinstance(exc, InvalidChainIdError):
        return "Invalid chain id."
    if isinstance(exc, IntegrityError):
        return f"Invalid MESC config: {exc}"
    if isinstance(exc, InvalidInputError):
        return "Invalid MESC override."
    return "MESC error."


def endpoint_payload(endpoint: Endpoint, *, reveal: bool = False, config: Optional[RpcConfig] = None) -> Dict[str, Any]:
    network_names = config.network_names if config is not None else None
    return {
        "name": endpoint.name,
        "url": endpoint.url if reveal else MASKED_URL,
        "chainId": endpoint.chain_id,
        "network": chain_id_to_network_name(endpoint.chain_id, network_names)
        if endpoint.chain_id is not None
        else None,
        "metadata": dict(endpoint.endpoint_metadata),
    }


def _load(config: Optional[RpcConfig]) -> RpcConfig:
    return config if config is not None else load_config()


def get_status() -> Dict[str, Any]:
    """
    Describe how MESC is configured in this environment.

    Returns:
        Dict with mode, enabled flag, config path and counts, or an error dict.
    """
    try:
        mode = get_config_mode()
    except InvalidConfigModeError as exc:
        return {"error": error_message(exc)}
    status: Dict[str, Any] = {
        "enabled": is_mesc_enabled(),
        "mode": mode.value,
        "path": os.getenv(PATH_ENV_VAR) or None,
        "overrides": [name for name in OVERRIDE_ENV_VARS if os.getenv(name)],
    }
    if not status["enabled"]:
        return status
    try:
        config = load_config()
    except MescError as exc:
        status["error"] = error_message(exc)
        return status
    status.update(
        {
            "mescVersion": config.mesc_version,
            "endpointCount": len(config.endpoints),
            "profileCount": len(config.profiles),
            "defaultEndpoint": config.default_endpoint,
        }
    )
    return status


def list_endpoints(
    chain_id: Any = None,
    name_contains: Optional[str] = None,
    url_contains: Optional[str] = None,
    reveal: bool = False,
    *,
    config: Optional[RpcConfig] = None,
) -> Dict[str, Any]:
    """List configured endpoints, optionally filtered; URLs are masked unless reveal."""
    query = EndpointQuery()
    if chain_id is not None:
        normalized = normalize_chain_id(chain_id)
        if normalized is None:
            return {"error": "Invalid chain id."}
        query.chain_id(normalized)
    if name_contains:
        query.name(name_contains)
    if url_contains:
        query.url(url_contains)
    try:
        loaded = _load(config)
        endpoints = find_endpoints(query, config=loaded)
    except MescError as exc:
        return {"error": error_message(exc)}
    except Exception:
        logger.exception("Unexpected error listing endpoints")
        return {"error": "Unexpected error while listing endpoints."}
    ordered = sorted(endpoints, key=lambda endpoint: chain_id_sort_key(endpoint.chain_id))
    return {
        "count": len(ordered),
        "endpoints": [endpoint_payload(endpoint, reveal=reveal, config=loaded) for endpoint in ordered],
    }


def get_endpoint(
    query: Optional[str] = None,
    profile: Optional[str] = None,
    reveal: bool = False,
    *,
    config: Optional[RpcConfig] = None,
) -> Dict[str, Any]:
    """
    Resolve an endpoint by name, chain id or network name.

    With no query the (profile) default endpoint is returned.
    """
    if query is not None and not is_valid_query(query):
        return {"error": "Invalid query."}
    if profile is not None and not is_valid_endpoint_name(profile):
        return {"error": "Invalid profile."}
    try:
        loaded = _load(config)
        if query is None:
            endpoint = get_default_endpoint(profile, config=loaded)
        else:
            endpoint = get_endpoint_by_query(query, profile, config=loaded)
    except MescError as exc:
        return {"error": error_message(exc)}
    except Exception:
        logger.exception("Unexpected error resolving endpoint")
        return {"error": "Unexpected error while resolving endpoint."}
    if endpoint is None:
        return {"error": "Endpoint not found."}
    return endpoint_payload(endpoint, reveal=reveal, config=loaded)


def get_defaults(profile: Optional[str] = None, *, config: Optional[RpcConfig] = None) -> Dict[str, Any]:
    """Return the global default endpoint and per-network defaults."""
    if profile is not None and not is_valid_endpoint_name(profile):
        return {"error": "Invalid profile."}
    try:
        loaded = _load(config)
        default = get_default_endpoint(profile, config=loaded)
    except MescError as exc:
        return {"error": error_message(exc)}
    selected = loaded.profiles.get(profile) if profile is not None else None
    network_defaults: Dict[str, str] = {}
    if selected is None or selected.use_mesc:
        network_defaults.update(loaded.network_defaults)
        if selected is not None:
            network_defaults.update(selected.network_defaults)
    return {
        "profile": profile,
        "defaultEndpoint": default.name if default is not None else None,
        "networkDefaults": [
            {
                "chainId": chain_id,
                "network": chain_id_to_network_name(chain_id, loaded.network_names),
                "endpoint": name,
            }
            for chain_id, name in sorted(network_defaults.items(), key=lambda item: chain_id_sort_key(item[0]))
        ],
    }


def get_metadata(profile: Optional[str] = None, *, config: Optional[RpcConfig] = None) -> Dict[str, Any]:
    if profile is not None and not is_valid_endpoint_name(profile):
        return {"error": "Invalid profile."}
    try:
        return {"metadata": get_global_metadata(profile, config=_load(config))}
    except MescError as exc:
        return {"error": error_message(exc)}


def validate_chain_id(chain_id: Any) -> Dict[str, Any]:
    """Validate and normalize a chain id without loading any config."""
    normalized = normalize_chain_id(chain_id)
    if normalized is None:
        return {"isValid": False}
    return {
        "isValid": True,
        "chainId": normalized,
        "network": chain_id_to_network_name(normalized),
    }
