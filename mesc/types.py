"""
Core MESC data model.

Chain ids are kept as plain decimal strings; ``to_chain_id`` is the single entry
point that turns user-supplied values into that canonical form.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from mesc.errors import InvalidChainIdError, InvalidJsonError, MescNotImplementedError

MESC_VERSION = "MESC 1.0"
NULL_CHAIN_ID = "0"
CHAIN_ID_SORT_WIDTH = 79

DECIMAL_REGEX = re.compile(r"^[0-9]+$")
HEX_REGEX = re.compile(r"^0[xX][0-9a-fA-F]+$")


def is_chain_id(value: Any) -> bool:
    """Return True if value is already a canonical decimal chain id string."""
    return isinstance(value, str) and bool(DECIMAL_REGEX.fullmatch(value))


def to_chain_id(value: Any) -> str:
    """
    Convert an int, decimal string or 0x-prefixed hex string into a chain id.

    Raises:
        InvalidChainIdError: the value is not an unsigned integer representation.
        MescNotImplementedError: binary chain ids were supplied.
    """
    if isinstance(value, (bytes, bytearray)):
        raise MescNotImplementedError("binary chain_id", code="NOT_IMPLEMENTED")
    if isinstance(value, bool):
        raise InvalidChainIdError(f"invalid chain id: {value!r}", code="INVALID_CHAIN_ID")
    if isinstance(value, int):
        if value < 0:
            raise InvalidChainIdError(f"invalid chain id: {value}", code="INVALID_CHAIN_ID")
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        if DECIMAL_REGEX.fullmatch(stripped):
            return stripped
        if HEX_REGEX.fullmatch(stripped):
            return str(int(stripped, 16))
    raise InvalidChainIdError(f"invalid chain id: {value!r}", code="INVALID_CHAIN_ID")


def chain_id_sort_key(chain_id: Optional[str]) -> str:
    """Sort key giving numeric order for decimal chain ids of any length."""
    return (chain_id or NULL_CHAIN_ID).rjust(CHAIN_ID_SORT_WIDTH, "0")


class ConfigMode(str, Enum):
    PATH = "PATH"
    ENV = "ENV"
    DISABLED = "DISABLED"


def _require_dict(value: Any, label: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidJsonError(f"{label} must be an object", code="INVALID_JSON")
    return value


def _optional_chain_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return to_chain_id(value)
    if not isinstance(value, str):
        raise InvalidJsonError(f"chain_id must be a string, got {value!r}", code="INVALID_JSON")
    return value


@dataclass(slots=True)
class Endpoint:
    name: str
    url: str
    chain_id: Optional[str] = None
    endpoint_metadata: Dict[str, Any] = field(default_factory=dict)

    def chain_id_string(self) -> str:
        return self.chain_id if self.chain_id is not None else "-"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "chain_id": self.chain_id,
            "endpoint_metadata": dict(self.endpoint_metadata),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Endpoint":
        data = _require_dict(data, "endpoint")
        for key in ("name", "url"):
            if not isinstance(data.get(key), str):
                raise InvalidJsonError(f"endpoint field {key!r} must be a string", code="INVALID_JSON")
        return cls(
            name=data["name"],
            url=data["url"],
            chain_id=_optional_chain_id(data.get("chain_id")),
            endpoint_metadata=dict(_require_dict(data.get("endpoint_metadata"), "endpoint_metadata")),
        )


@dataclass(slots=True)
class Profile:
    name: str
    default_endpoint: Optional[str] = None
    network_defaults: Dict[str, str] = field(default_factory=dict)
    profile_metadata: Dict[str, Any] = field(default_factory=dict)
    use_mesc: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "default_endpoint": self.default_endpoint,
            "network_defaults": dict(self.network_defaults),
            "profile_metadata": dict(self.profile_metadata),
            "use_mesc": self.use_mesc,
        }

    @classmethod
    def from_dict(cls, data: Any, *, name: Optional[str] = None) -> "Profile":
        data = _require_dict(data, "profile")
        profile_name = data.get("name", name)
        if not isinstance(profile_name, str):
            raise InvalidJsonError("profile name must be a string", code="INVALID_JSON")
        default_endpoint = data.get("default_endpoint")
        if default_endpoint is not None and not isinstance(default_endpoint, str):
            raise InvalidJsonError("profile default_endpoint must be a string", code="INVALID_JSON")
        return cls(
            name=profile_name,
            default_endpoint=default_endpoint,
            network_defaults=dict(_require_dict(data.get("network_defaults"), "network_defaults")),
            profile_metadata=dict(_require_dict(data.get("profile_metadata"), "profile_metadata")),
            use_mesc=bool(data.get("use_mesc", True)),
        )


@dataclass(slots=True)
class RpcConfig:
    mesc_version: str = MESC_VERSION
    default_endpoint: Optional[str] = None
    network_defaults: Dict[str, str] = field(default_factory=dict)
    network_names: Dict[str, str] = field(default_factory=dict)
    endpoints: Dict[str, Endpoint] = field(default_factory=dict)
    profiles: Dict[str, Profile] = field(default_factory=dict)
    global_metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mesc_version": self.mesc_version,
            "default_endpoint": self.default_endpoint,
            "network_defaults": dict(self.network_defaults),
            "network_names": dict(self.network_names),
            "endpoints": {name: endpoint.to_dict() for name, endpoint in self.endpoints.items()},
            "profiles": {name: profile.to_dict() for name, profile in self.profiles.items()},
            "global_metadata": dict(self.global_metadata),
        }

    def serialize(self) -> str:
        try:
            return json.dumps(self.to_dict())
        except (TypeError, ValueError) as exc:
            raise InvalidJsonError("could not serialize config", code="INVALID_JSON") from exc

    def validate(self) -> None:
        from mesc.validate import validate_config

        validate_config(self)

    @classmethod
    def from_dict(cls, data: Any) -> "RpcConfig":
        data = _require_dict(data, "config")
        default_endpoint = data.get("default_endpoint")
        if default_endpoint is not None and not isinstance(default_endpoint, str):
            raise InvalidJsonError("default_endpoint must be a string", code="INVALID_JSON")
        endpoints = {
            key: Endpoint.from_dict(value)
            for key, value in _require_dict(data.get("endpoints"), "endpoints").items()
        }
        profiles = {
            key: Profile.from_dict(value, name=key)
            for key, value in _require_dict(data.get("profiles"), "profiles").items()
        }
        network_names = {
            key: value if isinstance(value, str) else str(value)
            for key, value in _require_dict(data.get("network_names"), "network_names").items()
        }
        return cls(
            mesc_version=data.get("mesc_version", MESC_VERSION),
            default_endpoint=default_endpoint,
            network_defaults=dict(_require_dict(data.get("network_defaults"), "network_defaults")),
            network_names=network_names,
            endpoints=endpoints,
            profiles=profiles,
            global_metadata=dict(_require_dict(data.get("global_metadata"), "global_metadata")),
        )

    @classmethod
    def from_json(cls, raw: str) -> "RpcConfig":
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise InvalidJsonError("config is not valid JSON", code="INVALID_JSON") from exc
        return cls.from_dict(data)


@dataclass(slots=True)
class EndpointQuery:
    """Filter used by ``find_endpoints``; setters return self for chaining."""

    chain_id_filter: Optional[str] = None
    name_contains: Optional[str] = None
    url_contains: Optional[str] = None

    def chain_id(self, chain_id: Any) -> "EndpointQuery":
        self.chain_id_filter = to_chain_id(chain_id)
        return self

    def name(self, query: str) -> "EndpointQuery":
        self.name_contains = str(query)
        return self

    def url(self, query: str) -> "EndpointQuery":
        self.url_contains = str(query)
        return self

    def matches(self, endpoint: Endpoint) -> bool:
        if self.chain_id_filter is not None and endpoint.chain_id != self.chain_id_filter:
            return False
        if self.name_contains is not None and self.name_contains not in endpoint.name:
            return False
        if self.url_contains is not None and self.url_contains not in endpoint.url:
            return False
        return True
