import json

import pytest
from click.testing import CliRunner

from mesc import __version__
from mesc.cli import cli
from mesc.rpc import PingResult
from mesc.types import Endpoint


@pytest.fixture
def runner():
    return CliRunner()


def test_help_without_subcommand(runner):
    result = runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_status_disabled(runner):
    result = runner.invoke(cli, ["status", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["enabled"] is False
    assert data["mode"] == "DISABLED"


def test_status_enabled(runner, mesc_path_env):
    result = runner.invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "enabled: True" in result.output
    assert "endpointCount: 4" in result.output


def test_ls_masks_urls(runner, mesc_path_env):
    result = runner.invoke(cli, ["ls"])
    assert result.exit_code == 0
    assert "anvil" in result.output
    assert "SECRET" not in result.output


def test_ls_reveal_and_filter(runner, mesc_path_env):
    result = runner.invoke(cli, ["ls", "--reveal", "--network", "1", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [item["name"] for item in data] == ["alchemy_ethereum", "local_ethereum"]
    assert data[0]["url"].endswith("SECRET")


def test_ls_network_name(runner, mesc_path_env):
    result = runner.invoke(cli, ["ls", "--network", "ethereum", "--json"])
    assert result.exit_code == 0
    assert [item["name"] for item in json.loads(result.output)] == ["alchemy_ethereum", "local_ethereum"]

    result = runner.invoke(cli, ["ls", "--network", "testnet", "--json"])
    assert result.exit_code == 0
    assert [item["name"] for item in json.loads(result.output)] == ["anvil"]


def test_ls_invalid_network(runner, mesc_path_env):
    result = runner.invoke(cli, ["ls", "--network", "mainnet"])
    assert result.exit_code == 1
    assert "invalid chain id" in result.output


def test_ls_when_disabled(runner):
    result = runner.invoke(cli, ["ls"])
    assert result.exit_code == 1
    assert "MESC is not enabled" in result.output


def test_defaults(runner, mesc_path_env):
    result = runner.invoke(cli, ["defaults", "--profile", "xyz_tool"])
    assert result.exit_code == 0
    assert "alchemy_ethereum" in result.output


def test_endpoint_default_and_query(runner, mesc_path_env):
    result = runner.invoke(cli, ["endpoint"])
    assert result.exit_code == 0
    assert "Endpoint: local_ethereum" in result.output

    result = runner.invoke(cli, ["endpoint", "optimism", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["name"] == "llama_optimism"


def test_endpoint_masks_url_unless_reveal(runner, mesc_path_env):
    result = runner.invoke(cli, ["endpoint", "alchemy_ethereum"])
    assert result.exit_code == 0
    assert "- url: ********" in result.output
    assert "SECRET" not in result.output

    result = runner.invoke(cli, ["endpoint", "alchemy_ethereum", "--json"])
    assert json.loads(result.output)["url"] == "********"

    result = runner.invoke(cli, ["endpoint", "alchemy_ethereum", "--reveal", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["url"] == "https://eth-mainnet.g.alchemy.com/v2/SECRET"


def test_endpoint_not_found(runner, mesc_path_env):
    result = runner.invoke(cli, ["endpoint", "nowhere"])
    assert result.exit_code == 1
    assert "endpoint not found" in result.output


def test_url(runner, mesc_path_env):
    result = runner.invoke(cli, ["url", "10"])
    assert result.exit_code == 0
    assert result.output.strip() == "https://optimism.llamarpc.com"


def test_metadata(runner, mesc_path_env):
    result = runner.invoke(cli, ["metadata", "--profile", "xyz_tool"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"creator": "tests", "api": "v2"}


def test_ping(runner, mesc_path_env, monkeypatch):
    async def fake_ping(endpoints, client, *, concurrency, fields):
        results = []
        for endpoint in endpoints:
            if endpoint.name == "anvil":
                results.append(PingResult(endpoint=endpoint, error="Node unreachable"))
            else:
                results.append(
                    PingResult(endpoint=endpoint, latency_ms=12.5, block_number=100, chain_id="1")
                )
        return results

    monkeypatch.setattr("mesc.cli.ping_endpoints", fake_ping)
    result = runner.invoke(cli, ["ping"])
    assert result.exit_code == 0
    assert "Node unreachable" in result.output
    assert "12.5 ms" in result.output
    # llama_optimism is configured for chain 10 but the fake reports chain 1.
    assert "chain id mismatch (1)" in result.output


def test_ping_json(runner, mesc_path_env, monkeypatch):
    async def fake_ping(endpoints, client, *, concurrency, fields):
        assert "client_version" in fields
        return [PingResult(endpoint=Endpoint(name="x", url="http://x"), client_version="geth")]

    monkeypatch.setattr("mesc.cli.ping_endpoints", fake_ping)
    result = runner.invoke(cli, ["ping", "--client-version", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data[0]["clientVersion"] == "geth"
    assert data[0]["url"] == "********"


def test_ping_network_name(runner, mesc_path_env, monkeypatch):
    seen = []

    async def fake_ping(endpoints, client, *, concurrency, fields):
        seen.extend(endpoint.name for endpoint in endpoints)
        return []

    monkeypatch.setattr("mesc.cli.ping_endpoints", fake_ping)
    result = runner.invoke(cli, ["ping", "--network", "optimism"])
    assert result.exit_code == 0
    assert seen == ["llama_optimism"]
    assert result.output.strip() == "[none]"
