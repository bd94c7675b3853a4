"""
MESC: Multiple Endpoint Shared Configuration.

Load, validate and query the RPC endpoint configuration shared by crypto tools
on this machine. See DESIGN.md for the module layout.
"""

__version__ = "1.0.0"

from mesc.errors import (  # noqa: E402
    ConfigReadError,
    IntegrityError,
    InvalidChainIdError,
    InvalidConfigModeError,
    InvalidInputError,
    InvalidJsonError,
    MescError,
    MescNotEnabledError,
    MescNotImplementedError,
    MissingEndpointError,
)
from mesc.loading import get_config_mode, is_mesc_enabled, load_config  # noqa: E402
from mesc.queries import (  # noqa: E402
    find_endpoints,
    get_default_endpoint,
    get_endpoint_by_name,
    get_endpoint_by_network,
    get_endpoint_by_query,
    get_global_metadata,
)
from mesc.types import ConfigMode, Endpoint, EndpointQuery, Profile, RpcConfig, to_chain_id  # noqa: E402

__all__ = [
    "__version__",
    "ConfigMode",
    "Endpoint",
    "EndpointQuery",
    "Profile",
    "RpcConfig",
    "to_chain_id",
    "get_config_mode",
    "is_mesc_enabled",
    "load_config",
    "find_endpoints",
    "get_default_endpoint",
    "get_endpoint_by_name",
    "get_endpoint_by_network",
    "get_endpoint_by_query",
    "get_global_metadata",
    "MescError",
    "MescNotEnabledError",
    "InvalidConfigModeError",
    "InvalidChainIdError",
    "IntegrityError",
    "MissingEndpointError",
    "ConfigReadError",
    "InvalidJsonError",
    "MescNotImplementedError",
    "InvalidInputError",
]
