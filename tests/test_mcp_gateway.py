import pytest
from fastapi.testclient import TestClient

from mesc import mcp, server
from mesc.server import MCP_SERVER_NAME, MCP_SERVER_VERSION, app


def _rpc(client, method, params=None, rpc_id=1):
    body = {"jsonrpc": "2.0", "id": rpc_id, "method": method}
    if params is not None:
        body["params"] = params
    return client.post("/mcp", json=body)


def test_mcp_list_tools():
    client = TestClient(app)
    resp = _rpc(client, "list_tools")
    assert resp.status_code == 200
    data = resp.json()
    assert data["jsonrpc"] == "2.0"
    assert data["id"] == 1
    tools = data["result"]["tools"]
    names = {tool["name"] for tool in tools}
    assert names == set(mcp.TOOL_REGISTRY)
    validate_tool = next(t for t in tools if t["name"] == "validate_chain_id")
    assert validate_tool["inputSchema"]["required"] == ["chain_id"]


def test_mcp_tools_list_alias():
    client = TestClient(app)
    resp = _rpc(client, "tools/list", rpc_id=3)
    assert resp.json()["id"] == 3
    assert any(tool["name"] == "get_endpoint" for tool in resp.json()["result"]["tools"])


def test_mcp_initialize():
    client = TestClient(app)
    resp = _rpc(
        client,
        "initialize",
        {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "t", "version": "0"}},
        rpc_id=10,
    )
    result = resp.json()["result"]
    assert result["protocolVersion"] == "2025-03-26"
    assert result["serverInfo"] == {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION}
    assert result["capabilities"]["tools"]["listChanged"] is False


def test_mcp_initialize_requires_protocol_version():
    client = TestClient(app)
    resp = _rpc(client, "initialize", {})
    assert resp.json()["error"]["code"] == -32602


def test_mcp_call_tool_validate_chain_id():
    client = TestClient(app)
    resp = _rpc(client, "call_tool", {"tool": "validate_chain_id", "params": {"chain_id": "0xa"}}, rpc_id=2)
    result = resp.json()["result"]
    assert result["structuredContent"] == {"isValid": True, "chainId": "10", "network": "optimism"}
    assert result["content"][0]["type"] == "text"
    assert "isError" not in result


def test_mcp_tools_call_alias_with_arguments(mesc_path_env):
    client = TestClient(app)
    resp = _rpc(client, "tools/call", {"name": "get_endpoint", "arguments": {"query": "optimism"}})
    result = resp.json()["result"]
    assert result["structuredContent"]["name"] == "llama_optimism"
    assert result["structuredContent"]["url"] == "********"


def test_mcp_tool_error_is_flagged():
    client = TestClient(app)
    resp = _rpc(client, "tools/call", {"name": "list_endpoints", "arguments": {}})
    result = resp.json()["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"] == "MESC is not enabled."


def test_mcp_unknown_tool_and_bad_params():
    client = TestClient(app)
    resp = _rpc(client, "tools/call", {"name": "drop_tables", "arguments": {}})
    assert resp.json()["result"]["content"][0]["text"] == "Unknown tool: drop_tables"

    resp = _rpc(client, "tools/call", {"name": "validate_chain_id", "arguments": {"bogus": 1}})
    assert resp.json()["result"]["content"][0]["text"] == "Invalid parameters."

    resp = _rpc(client, "tools/call", {"arguments": {}})
    assert resp.json()["error"]["code"] == -32602

    resp = _rpc(client, "tools/call", {"name": "get_status", "arguments": [1]})
    assert resp.json()["error"]["code"] == -32602


def test_mcp_unknown_tools_do_not_create_rate_limiters():
    client = TestClient(app)
    for index in range(5):
        resp = _rpc(client, "tools/call", {"name": f"made_up_{index}", "arguments": {}})
        assert resp.json()["result"]["content"][0]["text"] == f"Unknown tool: made_up_{index}"
    assert not any(key.startswith("made_up_") for key in server.rate_limiter._limiters)

    _rpc(client, "tools/call", {"name": "validate_chain_id", "arguments": {"chain_id": "1"}})
    assert "validate_chain_id" in server.rate_limiter._limiters


def test_mcp_protocol_errors():
    client = TestClient(app)
    resp = client.post("/mcp", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32700

    resp = client.post("/mcp", json=[1, 2])
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32600

    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1})
    assert resp.json()["error"]["code"] == -32600

    resp = _rpc(client, "list_tools", params=[1])
    assert resp.json()["error"]["code"] == -32602

    resp = _rpc(client, "resources/list")
    assert resp.json()["error"]["code"] == -32601


def test_mcp_initialized_notification():
    client = TestClient(app)
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_call_tool_direct():
    assert (await mcp.call_tool("validate_chain_id", {"chain_id": 1}))["isValid"] is True
    assert await mcp.call_tool("validate_chain_id") == {"error": "Invalid parameters."}
