"""
Transport-agnostic JSON-RPC handling for MCP methods.

``McpProtocol.handle_message`` takes one decoded JSON-RPC message and returns
the reply payload, or ``None`` when the message is a notification that gets no
reply. The stdio session and the HTTP ``/mcp`` route both call it, so tool
content is identical across transports.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from tron_mcp.mcp import Dispatcher

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
MCP_SERVER_NAME = "tron-mcp-server"
MCP_SERVER_VERSION = "0.1.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

NOTIFICATION_PREFIX = "notifications/"


def jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def jsonrpc_error_payload(
    rpc_id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": rpc_id, "error": error}


def wrap_tool_result(envelope: Dict[str, Any]) -> Dict[str, Any]:
    """Render an envelope as a single MCP text block; ``isError`` mirrors ``ok == false``."""
    return {
        "content": [
            {"type": "text", "text": json.dumps(envelope, indent=2, ensure_ascii=False, allow_nan=False)}
        ],
        "isError": envelope.get("ok") is False,
    }


def is_notification(message: Any) -> bool:
    return isinstance(message, dict) and "id" not in message


class McpProtocol:
    """MCP method routing shared by every transport."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict):
            return jsonrpc_error_payload(None, INVALID_REQUEST, "Invalid Request")

        rpc_id = message.get("id")
        try:
            return await self._route(message, rpc_id)
        except Exception as exc:
            logger.exception("mcp internal error method=%s", message.get("method"))
            return jsonrpc_error_payload(
                rpc_id, INTERNAL_ERROR, "Internal error", {"message": str(exc) or "Unknown"}
            )

    async def _route(self, message: Dict[str, Any], rpc_id: Any) -> Optional[Dict[str, Any]]:
        method = message.get("method")
        if not isinstance(method, str) or not method:
            return jsonrpc_error_payload(rpc_id, INVALID_REQUEST, "Invalid Request")

        if method == "ping":
            return jsonrpc_success_payload(rpc_id, {})

        if method == "initialize":
            params = message.get("params")
            requested = params.get("protocolVersion") if isinstance(params, dict) else None
            logger.debug("mcp initialize requested protocol=%s", requested)
            return jsonrpc_success_payload(
                rpc_id,
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
                    "capabilities": {"tools": {"listChanged": False}},
                },
            )

        if method == "tools/list":
            return jsonrpc_success_payload(rpc_id, {"tools": self.dispatcher.list_tools()})

        if method == "tools/call":
            return await self._call_tool(message, rpc_id)

        if method.startswith(NOTIFICATION_PREFIX):
            logger.debug("mcp notification received method=%s", method)
            if is_notification(message):
                return None
            return jsonrpc_success_payload(rpc_id, {})

        return jsonrpc_error_payload(
            rpc_id, METHOD_NOT_FOUND, "Method not found", {"method": method}
        )

    async def _call_tool(self, message: Dict[str, Any], rpc_id: Any) -> Dict[str, Any]:
        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return jsonrpc_error_payload(
                rpc_id, INVALID_PARAMS, "Invalid params", {"reason": "params must be an object"}
            )
        name = params.get("name")
        if not isinstance(name, str) or not name:
            return jsonrpc_error_payload(
                rpc_id, INVALID_PARAMS, "Invalid params", {"reason": "name is required"}
            )

        _status, envelope = await self.dispatcher.dispatch(name, params.get("arguments"))
        return jsonrpc_success_payload(rpc_id, wrap_tool_result(envelope))
