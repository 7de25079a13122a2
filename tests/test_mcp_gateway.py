import pytest
from fastapi.testclient import TestClient

from otterscan_mcp import mcp
from otterscan_mcp import server as server_mod
from otterscan_mcp.rate_limiter import PerKeyRateLimiter
from otterscan_mcp.server import MCP_SERVER_NAME, MCP_SERVER_VERSION, app

ADDRESS = "0x" + "ab" * 20


@pytest.fixture(autouse=True)
def fresh_rate_limiter(monkeypatch):
    monkeypatch.setattr(server_mod, "rate_limiter", PerKeyRateLimiter(rate_per_sec=100))


def test_mcp_list_tools():
    client = TestClient(app)
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "list_tools"})
    data = resp.json()
    assert data["id"] == 1
    tools = {tool["name"]: tool for tool in data["result"]["tools"]}
    assert "list_address_transactions" in tools
    schema = tools["list_address_transactions"]["inputSchema"]
    assert schema["required"] == ["address"]
    assert tools["list_address_transactions"]["params"]["from_block"] == "optional"


def test_mcp_tools_call_alias_validate_address():
    client = TestClient(app)
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 4,
            "method": "tools/call",
            "params": {"name": "validate_address", "arguments": {"address": ADDRESS}},
        },
    )
    data = resp.json()
    assert data["id"] == 4
    assert data["result"]["structuredContent"] == {"isValid": True}


def test_mcp_call_tool_error_is_in_band():
    client = TestClient(app)
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 5,
            "method": "call_tool",
            "params": {"tool": "get_transaction_trace", "params": {"tx_hash": "0x1"}},
        },
    )
    result = resp.json()["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"] == "Invalid transaction hash."


def test_mcp_initialize():
    client = TestClient(app)
    resp = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 10, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}},
    )
    result = resp.json()["result"]
    assert result["serverInfo"] == {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION}
    assert result["capabilities"]["tools"]["listChanged"] is False


def test_mcp_protocol_errors():
    client = TestClient(app)
    assert client.post("/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "nope"}).json()["error"]["code"] == -32601
    assert client.post("/mcp", json={"jsonrpc": "2.0", "id": 8, "method": "call_tool", "params": []}).json()["error"]["code"] == -32602
    resp = client.post("/mcp", content="{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32700


def test_mcp_initialized_notification_has_no_body():
    client = TestClient(app)
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_call_tool_unknown_and_bad_params():
    assert await mcp.call_tool("missing") == {"error": "Unknown tool: missing"}
    assert await mcp.call_tool("validate_address", {"wrong": 1}) == {"error": "Invalid parameters."}
