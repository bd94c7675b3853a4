import copy
import json
import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from mesc.metrics import default_metrics  # noqa: E402
from mesc.types import RpcConfig  # noqa: E402

MESC_ENV_VARS = (
    "MESC_MODE",
    "MESC_PATH",
    "MESC_ENV",
    "MESC_NETWORK_NAMES",
    "MESC_ENDPOINTS",
    "MESC_NETWORK_DEFAULTS",
    "MESC_DEFAULT_ENDPOINT",
    "MESC_PROFILES",
    "MESC_GLOBAL_METADATA",
    "MESC_ENDPOINT_METADATA",
)

SAMPLE_CONFIG = {
    "mesc_version": "MESC 1.0",
    "default_endpoint": "local_ethereum",
    "network_defaults": {"1": "local_ethereum", "10": "llama_optimism"},
    "network_names": {"testnet": "31337"},
    "endpoints": {
        "local_ethereum": {
            "name": "local_ethereum",
            "url": "http://localhost:8545",
            "chain_id": "1",
            "endpoint_metadata": {},
        },
        "llama_optimism": {
            "name": "llama_optimism",
            "url": "https://optimism.llamarpc.com",
            "chain_id": "10",
            "endpoint_metadata": {"rate_limit_rps": 10},
        },
        "alchemy_ethereum": {
            "name": "alchemy_ethereum",
            "url": "https://eth-mainnet.g.alchemy.com/v2/SECRET",
            "chain_id": "1",
            "endpoint_metadata": {},
        },
        "anvil": {
            "name": "anvil",
            "url": "http://127.0.0.1:8546",
            "chain_id": "31337",
            "endpoint_metadata": {},
        },
    },
    "profiles": {
        "xyz_tool": {
            "name": "xyz_tool",
            "default_endpoint": "alchemy_ethereum",
            "network_defaults": {"1": "alchemy_ethereum"},
            "profile_metadata": {"api": "v2"},
            "use_mesc": True,
        },
        "off": {
            "name": "off",
            "default_endpoint": None,
            "network_defaults": {},
            "profile_metadata": {},
            "use_mesc": False,
        },
    },
    "global_metadata": {"creator": "tests", "api": "v1"},
}


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


@pytest.fixture(autouse=True)
def clean_mesc_env(monkeypatch):
    for name in MESC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    from mesc import server

    server.rate_limiter._limiters.clear()
    yield
    server.rate_limiter._limiters.clear()


@pytest.fixture
def config_data():
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def rpc_config(config_data):
    return RpcConfig.from_dict(config_data)


@pytest.fixture
def config_path(tmp_path, config_data):
    path = tmp_path / "mesc.json"
    path.write_text(json.dumps(config_data), encoding="utf-8")
    return path


@pytest.fixture
def mesc_path_env(monkeypatch, config_path):
    monkeypatch.setenv("MESC_PATH", str(config_path))
    return config_path
