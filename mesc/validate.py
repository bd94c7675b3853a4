"""Structural validation of a loaded RpcConfig."""

from __future__ import annotations

from typing import Dict

from mesc.errors import IntegrityError, InvalidChainIdError
from mesc.types import Endpoint, RpcConfig, is_chain_id


def _check_network_defaults(
    network_defaults: Dict[str, str], endpoints: Dict[str, Endpoint], *, where: str
) -> None:
    for chain_id, endpoint_name in network_defaults.items():
        if not is_chain_id(chain_id):
            raise InvalidChainIdError(
                f"{where} network default key is not a chain id: {chain_id!r}",
                code="INVALID_CHAIN_ID",
            )
        endpoint = endpoints.get(endpoint_name)
        if endpoint is None:
            raise IntegrityError(
                f"{where} network default for chain {chain_id} references unknown endpoint {endpoint_name!r}",
                code="MISSING_ENDPOINT",
            )
        if endpoint.chain_id != chain_id:
            raise IntegrityError(
                f"{where} network default for chain {chain_id} uses endpoint {endpoint_name!r} "
                f"on chain {endpoint.chain_id_string()}",
                code="CHAIN_ID_MISMATCH",
            )


def validate_config(config: RpcConfig) -> None:
    """
    Check a config for internal consistency.

    Raises:
        IntegrityError: references between sections do not line up.
        InvalidChainIdError: a chain id field holds a non-decimal value.
    """
    if not isinstance(config.mesc_version, str):
        raise IntegrityError("mesc_version must be a string", code="INVALID_VERSION")

    for key, endpoint in config.endpoints.items():
        if key != endpoint.name:
            raise IntegrityError(
                f"endpoint key {key!r} does not match endpoint name {endpoint.name!r}",
                code="NAME_MISMATCH",
            )
        if endpoint.chain_id is not None and not is_chain_id(endpoint.chain_id):
            raise InvalidChainIdError(
                f"endpoint {key!r} has invalid chain id {endpoint.chain_id!r}",
                code="INVALID_CHAIN_ID",
            )

    if config.default_endpoint is not None and config.default_endpoint not in config.endpoints:
        raise IntegrityError(
            f"default endpoint {config.default_endpoint!r} is not a configured endpoint",
            code="MISSING_ENDPOINT",
        )

    _check_network_defaults(config.network_defaults, config.endpoints, where="global")

    for name, chain_id in config.network_names.items():
        if not is_chain_id(chain_id):
            raise InvalidChainIdError(
                f"network name {name!r} maps to invalid chain id {chain_id!r}",
                code="INVALID_CHAIN_ID",
            )

    for key, profile in config.profiles.items():
        if key != profile.name:
            raise IntegrityError(
                f"profile key {key!r} does not match profile name {profile.name!r}",
                code="NAME_MISMATCH",
            )
        if profile.default_endpoint is not None and profile.default_endpoint not in config.endpoints:
            raise IntegrityError(
                f"profile {key!r} default endpoint {profile.default_endpoint!r} is not a configured endpoint",
                code="MISSING_ENDPOINT",
            )
        _check_network_defaults(profile.network_defaults, config.endpoints, where=f"profile {key!r}")
