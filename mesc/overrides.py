"""
Environment variable overrides layered on top of a loaded config.

Each override variable is optional. Values are whitespace-separated lists of
``key=value`` tokens except the two metadata variables, which hold JSON.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from mesc.errors import InvalidChainIdError, InvalidInputError, InvalidJsonError, MissingEndpointError
from mesc.network_names import network_name_to_chain_id
from mesc.types import Endpoint, Profile, RpcConfig, to_chain_id

logger = logging.getLogger(__name__)

OVERRIDE_ENV_VARS = (
    "MESC_NETWORK_NAMES",
    "MESC_ENDPOINTS",
    "MESC_NETWORK_DEFAULTS",
    "MESC_DEFAULT_ENDPOINT",
    "MESC_PROFILES",
    "MESC_GLOBAL_METADATA",
    "MESC_ENDPOINT_METADATA",
)

ENDPOINT_TOKEN_REGEX = re.compile(r"^(?P<name>[A-Za-z0-9_.\-]+)(?::(?P<chain>[0-9A-Za-z]+))?=(?P<url>.+)$")


def _tokens(raw: Optional[str]) -> List[str]:
    return (raw or "").split()


def _split_pair(token: str, variable: str) -> Tuple[str, str]:
    key, sep, value = token.partition("=")
    if not sep or not key or not value:
        raise InvalidInputError(f"{variable}: expected key=value, got {token!r}", code="INVALID_INPUT")
    return key, value


def _resolve_chain(value: str, config: RpcConfig) -> str:
    try:
        return to_chain_id(value)
    except InvalidChainIdError:
        pass
    chain_id = network_name_to_chain_id(value, config.network_names)
    if chain_id is None:
        raise InvalidChainIdError(f"unknown network: {value!r}", code="INVALID_CHAIN_ID")
    return chain_id


def _resolve_endpoint_name(value: str, config: RpcConfig) -> str:
    """Interpret value as an endpoint name, a chain id or a network name."""
    if value in config.endpoints:
        return value
    try:
        chain_id = _resolve_chain(value, config)
    except InvalidChainIdError as exc:
        raise MissingEndpointError(f"unknown endpoint: {value!r}", code="MISSING_ENDPOINT") from exc
    endpoint_name = config.network_defaults.get(chain_id)
    if endpoint_name is None:
        raise MissingEndpointError(f"no default endpoint for network {value!r}", code="MISSING_ENDPOINT")
    return endpoint_name


def endpoint_name_from_url(url: str) -> str:
    """Derive an endpoint name from a URL host, e.g. eth.llamarpc.com -> llamarpc."""
    try:
        parsed = urlparse(url if "://" in url else f"http://{url}")
        port = parsed.port
    except ValueError as exc:
        raise InvalidInputError(f"MESC_ENDPOINTS: invalid url {url!r}", code="INVALID_INPUT") from exc
    host = parsed.hostname or url
    labels = [label for label in host.split(".") if label]
    if len(labels) >= 2 and not all(label.isdigit() for label in labels):
        return labels[-2]
    if port is not None:
        return f"{host}_{port}"
    return host


def apply_network_names(config: RpcConfig, raw: Optional[str]) -> None:
    for token in _tokens(raw):
        name, chain = _split_pair(token, "MESC_NETWORK_NAMES")
        config.network_names[name] = to_chain_id(chain)


def apply_endpoints(config: RpcConfig, raw: Optional[str]) -> None:
    for token in _tokens(raw):
        match = ENDPOINT_TOKEN_REGEX.fullmatch(token)
        if match:
            name = match.group("name")
            url = match.group("url")
            chain = match.group("chain")
            chain_id = to_chain_id(chain) if chain else None
        else:
            url = token
            name = endpoint_name_from_url(url)
            chain_id = None
        existing = config.endpoints.get(name)
        if existing is not None:
            existing.url = url
            if chain_id is not None:
                existing.chain_id = chain_id
        else:
            config.endpoints[name] = Endpoint(name=name, url=url, chain_id=chain_id)


def apply_network_defaults(config: RpcConfig, raw: Optional[str]) -> None:
    for token in _tokens(raw):
        if "=" in token:
            network, endpoint_name = _split_pair(token, "MESC_NETWORK_DEFAULTS")
            chain_id = _resolve_chain(network, config)
        else:
            endpoint_name = token
            endpoint = config.endpoints.get(endpoint_name)
            if endpoint is None:
                raise MissingEndpointError(f"unknown endpoint: {endpoint_name!r}", code="MISSING_ENDPOINT")
            if endpoint.chain_id is None:
                raise InvalidInputError(
                    f"endpoint {endpoint_name!r} has no chain id to use as network default",
                    code="INVALID_INPUT",
                )
            chain_id = endpoint.chain_id
        config.network_defaults[chain_id] = endpoint_name


def apply_default_endpoint(config: RpcConfig, raw: Optional[str]) -> None:
    value = (raw or "").strip()
    if value:
        config.default_endpoint = _resolve_endpoint_name(value, config)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"true", "1", "yes", "y"}:
        return True
    if lowered in {"false", "0", "no", "n"}:
        return False
    raise InvalidInputError(f"MESC_PROFILES: expected boolean, got {value!r}", code="INVALID_INPUT")


def apply_profiles(config: RpcConfig, raw: Optional[str]) -> None:
    for token in _tokens(raw):
        key, value = _split_pair(token, "MESC_PROFILES")
        parts = key.split(".")
        profile_name = parts[0]
        profile = config.profiles.get(profile_name)
        if profile is None:
            profile = Profile(name=profile_name)
            config.profiles[profile_name] = profile
        if parts[1:] == ["default_endpoint"]:
            profile.default_endpoint = _resolve_endpoint_name(value, config)
        elif len(parts) == 3 and parts[1] == "network_defaults":
            profile.network_defaults[_resolve_chain(parts[2], config)] = value
        elif parts[1:] == ["use_mesc"]:
            profile.use_mesc = _parse_bool(value)
        else:
            raise InvalidInputError(f"MESC_PROFILES: unsupported key {key!r}", code="INVALID_INPUT")


def _parse_json_object(raw: str, variable: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise InvalidJsonError(f"{variable} is not valid JSON", code="INVALID_JSON") from exc
    if not isinstance(data, dict):
        raise InvalidJsonError(f"{variable} must be a JSON object", code="INVALID_JSON")
    return data


def apply_global_metadata(config: RpcConfig, raw: Optional[str]) -> None:
    if raw:
        config.global_metadata.update(_parse_json_object(raw, "MESC_GLOBAL_METADATA"))


def apply_endpoint_metadata(config: RpcConfig, raw: Optional[str]) -> None:
    if not raw:
        return
    for name, metadata in _parse_json_object(raw, "MESC_ENDPOINT_METADATA").items():
        endpoint = config.endpoints.get(name)
        if endpoint is None:
            raise MissingEndpointError(f"unknown endpoint: {name!r}", code="MISSING_ENDPOINT")
        if not isinstance(metadata, dict):
            raise InvalidJsonError(
                f"MESC_ENDPOINT_METADATA entry for {name!r} must be an object", code="INVALID_JSON"
            )
        endpoint.endpoint_metadata.update(metadata)


def apply_overrides(config: RpcConfig) -> RpcConfig:
    """Apply every MESC_* override variable present in the environment, in place."""
    applied = [name for name in OVERRIDE_ENV_VARS if os.getenv(name)]
    if applied:
        logger.debug("applying MESC overrides: %s", ", ".join(applied))
    apply_network_names(config, os.getenv("MESC_NETWORK_NAMES"))
    apply_endpoints(config, os.getenv("MESC_ENDPOINTS"))
    apply_network_defaults(config, os.getenv("MESC_NETWORK_DEFAULTS"))
    apply_default_endpoint(config, os.getenv("MESC_DEFAULT_ENDPOINT"))
    apply_profiles(config, os.getenv("MESC_PROFILES"))
    apply_global_metadata(config, os.getenv("MESC_GLOBAL_METADATA"))
    apply_endpoint_metadata(config, os.getenv("MESC_ENDPOINT_METADATA"))
    return config
