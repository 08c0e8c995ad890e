import json

import pytest

from tron_mcp.protocol import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    McpProtocol,
    jsonrpc_error_payload,
    wrap_tool_result,
)


@pytest.fixture
def protocol(dispatcher):
    return McpProtocol(dispatcher)


@pytest.mark.asyncio
async def test_initialize_returns_fixed_version(protocol):
    reply = await protocol.handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "1999-01-01"}}
    )
    assert reply["id"] == 1
    result = reply["result"]
    assert result["protocolVersion"] == PROTOCOL_VERSION
    assert result["serverInfo"]["name"] == "tron-mcp-server"
    assert result["capabilities"] == {"tools": {"listChanged": False}}


@pytest.mark.asyncio
async def test_ping(protocol):
    assert await protocol.handle_message({"jsonrpc": "2.0", "id": "p", "method": "ping"}) == {
        "jsonrpc": "2.0",
        "id": "p",
        "result": {},
    }


@pytest.mark.asyncio
async def test_tools_list(protocol):
    reply = await protocol.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    names = [tool["name"] for tool in reply["result"]["tools"]]
    assert "rp_quote" in names
    assert len(names) == 8


@pytest.mark.asyncio
async def test_tools_call_wraps_envelope(protocol):
    reply = await protocol.handle_message(
        {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "rp_quote", "arguments": {"preset": "A", "side": "buy", "amountIn": 10}},
        }
    )
    result = reply["result"]
    assert result["isError"] is False
    assert len(result["content"]) == 1
    assert result["content"][0]["type"] == "text"
    envelope = json.loads(result["content"][0]["text"])
    assert envelope["ok"] is True
    assert envelope["tool"] == "rp_quote"


@pytest.mark.asyncio
async def test_tools_call_tool_failure_is_not_a_transport_error(protocol, trongrid):
    trongrid.responses = {"get_now_block": RuntimeError("kaboom"), "get_chain_parameters": {}}
    reply = await protocol.handle_message(
        {"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": {"name": "get_network_status"}}
    )
    assert "error" not in reply
    assert reply["result"]["isError"] is True
    envelope = json.loads(reply["result"]["content"][0]["text"])
    assert envelope["ok"] is False
    assert envelope["error"]["code"] == "INTERNAL_ERROR"


@pytest.mark.asyncio
async def test_tools_call_unknown_tool_is_error_result(protocol):
    reply = await protocol.handle_message(
        {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"name": "nope", "arguments": {}}}
    )
    assert reply["result"]["isError"] is True
    assert json.loads(reply["result"]["content"][0]["text"])["error"]["code"] == "TOOL_NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params,reason",
    [
        ("not-an-object", "params must be an object"),
        ({}, "name is required"),
        ({"name": ""}, "name is required"),
        ({"name": 7}, "name is required"),
    ],
)
async def test_tools_call_invalid_params(protocol, params, reason):
    reply = await protocol.handle_message(
        {"jsonrpc": "2.0", "id": 6, "method": "tools/call", "params": params}
    )
    assert reply["error"]["code"] == INVALID_PARAMS
    assert reply["error"]["data"] == {"reason": reason}


@pytest.mark.asyncio
async def test_unknown_method(protocol):
    reply = await protocol.handle_message({"jsonrpc": "2.0", "id": 7, "method": "resources/list"})
    assert reply["error"]["code"] == METHOD_NOT_FOUND
    assert reply["error"]["data"] == {"method": "resources/list"}


@pytest.mark.asyncio
async def test_missing_method_is_invalid_request(protocol):
    reply = await protocol.handle_message({"jsonrpc": "2.0", "id": 8})
    assert reply["error"]["code"] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_non_object_message_is_invalid_request(protocol):
    reply = await protocol.handle_message([1, 2, 3])
    assert reply == jsonrpc_error_payload(None, INVALID_REQUEST, "Invalid Request")


@pytest.mark.asyncio
async def test_notifications_get_no_reply(protocol):
    assert await protocol.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    reply = await protocol.handle_message(
        {"jsonrpc": "2.0", "id": 9, "method": "notifications/initialized"}
    )
    assert reply == {"jsonrpc": "2.0", "id": 9, "result": {}}


def test_wrap_tool_result_keeps_non_ascii():
    wrapped = wrap_tool_result({"ok": False, "summary": {"en": "café"}})
    assert wrapped["isError"] is True
    assert "café" in wrapped["content"][0]["text"]


def test_wrap_tool_result_refuses_non_finite_numbers():
    with pytest.raises(ValueError):
        wrap_tool_result({"ok": True, "data": {"amountOut": float("-inf")}})
