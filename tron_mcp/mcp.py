"""
Tool registry and dispatcher.

Each tool is a ``ToolDefinition`` carrying its JSON schema, an argument
validator and an async handler. ``Dispatcher.dispatch`` validates, runs the
handler and converts every outcome (including unexpected exceptions) into an
envelope plus an HTTP status hint. Both transports go through it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from tron_mcp.envelope import DEFAULT_SOURCE, EnvelopeFactory, ErrorCode
from tron_mcp.metrics import MetricsRecorder, default_metrics
from tron_mcp.pricing import PricingInputError
from tron_mcp.tron_api import UpstreamError
from tron_mcp.tools import (
    ToolContext,
    ToolInputError,
    ToolResult,
    create_unsigned_transfer,
    get_account_profile,
    get_network_status,
    get_tx_status,
    get_usdt_balance,
    rp_quote,
    rp_split_plan,
    validate_address_args,
    validate_quote_args,
    validate_split_plan_args,
    validate_transfer_args,
    validate_txid_args,
    validate_unsigned_tx_args,
    verify_unsigned_tx,
)
from tron_mcp.tools.validators import ADDRESS_REGEX, TXID_REGEX

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = ADDRESS_REGEX.pattern
TXID_PATTERN = TXID_REGEX.pattern

ToolHandler = Callable[[ToolContext, Dict[str, Any]], Awaitable[ToolResult]]
ArgValidator = Callable[[Dict[str, Any]], Dict[str, Any]]


def _no_args(_args: Dict[str, Any]) -> Dict[str, Any]:
    return {}


def _address_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "string",
        "description": description,
        "pattern": ADDRESS_PATTERN,
        "minLength": 30,
        "maxLength": 40,
    }


def _curve_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "virtualBase": {"type": "number", "exclusiveMinimum": 0},
            "virtualToken": {"type": "number", "exclusiveMinimum": 0},
            "feeBps": {"type": "number", "minimum": 0, "maximum": 5000},
        },
        "required": ["virtualBase", "virtualToken"],
        "additionalProperties": False,
    }


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler
    validator: ArgValidator = _no_args
    source: str = DEFAULT_SOURCE

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


TOOL_REGISTRY: Dict[str, ToolDefinition] = {
    "get_network_status": ToolDefinition(
        name="get_network_status",
        description="Get TRON network status: latest block and gas parameters.",
        input_schema={
            "type": "object",
            "properties": {},
            "additionalProperties": False,
        },
        handler=get_network_status,
        source="trongrid",
    ),
    "get_usdt_balance": ToolDefinition(
        name="get_usdt_balance",
        description="Get USDT and TRX balances for an address.",
        input_schema={
            "type": "object",
            "properties": {"address": _address_schema("TRON address (T-prefixed Base58)")},
            "required": ["address"],
            "additionalProperties": False,
        },
        handler=get_usdt_balance,
        validator=validate_address_args,
        source="trongrid",
    ),
    "get_tx_status": ToolDefinition(
        name="get_tx_status",
        description="Get transaction confirmation status by txid.",
        input_schema={
            "type": "object",
            "properties": {
                "txid": {
                    "type": "string",
                    "description": "Transaction id (64 hex characters)",
                    "pattern": TXID_PATTERN,
                }
            },
            "required": ["txid"],
            "additionalProperties": False,
        },
        handler=get_tx_status,
        validator=validate_txid_args,
        source="tronscan",
    ),
    "get_account_profile": ToolDefinition(
        name="get_account_profile",
        description="Account profile with balances and recent activity.",
        input_schema={
            "type": "object",
            "properties": {"address": _address_schema("TRON address (T-prefixed Base58)")},
            "required": ["address"],
            "additionalProperties": False,
        },
        handler=get_account_profile,
        validator=validate_address_args,
        source="trongrid",
    ),
    "rp_quote": ToolDefinition(
        name="rp_quote",
        description="Bonding-curve quote for buy/sell simulation.",
        input_schema={
            "type": "object",
            "properties": {
                "side": {"type": "string", "enum": ["buy", "sell"]},
                "amountIn": {"type": "number", "exclusiveMinimum": 0},
                "curve": _curve_schema(),
                "preset": {"type": "string", "enum": ["A", "B"]},
            },
            "required": ["side", "amountIn"],
            "additionalProperties": False,
        },
        handler=rp_quote,
        validator=validate_quote_args,
        source="local-robinpump",
    ),
    "rp_split_plan": ToolDefinition(
        name="rp_split_plan",
        description="Split-order planning for bonding-curve trades.",
        input_schema={
            "type": "object",
            "properties": {
                "side": {"type": "string", "enum": ["buy", "sell"]},
                "totalAmountIn": {"type": "number", "exclusiveMinimum": 0},
                "parts": {"type": "integer", "minimum": 2, "maximum": 50},
                "maxSlippageBps": {"type": "integer", "minimum": 0, "maximum": 5000},
                "curve": _curve_schema(),
                "preset": {"type": "string", "enum": ["A", "B"]},
            },
            "required": ["side", "totalAmountIn", "parts", "maxSlippageBps"],
            "additionalProperties": False,
        },
        handler=rp_split_plan,
        validator=validate_split_plan_args,
        source="local-robinpump",
    ),
    "verify_unsigned_tx": ToolDefinition(
        name="verify_unsigned_tx",
        description="Verify an unsigned TRON transaction payload and derive txid from raw_data_hex.",
        input_schema={
            "type": "object",
            "properties": {
                "unsignedTx": {"type": "object"},
                "rawDataHex": {"type": "string"},
            },
            "anyOf": [{"required": ["unsignedTx"]}, {"required": ["rawDataHex"]}],
            "additionalProperties": False,
        },
        handler=verify_unsigned_tx,
        validator=validate_unsigned_tx_args,
        source="local-validation",
    ),
    "create_unsigned_transfer": ToolDefinition(
        name="create_unsigned_transfer",
        description="Create an unsigned TRX transfer transaction.",
        input_schema={
            "type": "object",
            "properties": {
                "from": _address_schema("Sender address"),
                "to": _address_schema("Recipient address"),
                "amountSun": {"type": "number", "exclusiveMinimum": 0},
            },
            "required": ["from", "to", "amountSun"],
            "additionalProperties": False,
        },
        handler=create_unsigned_transfer,
        validator=validate_transfer_args,
        source="trongrid",
    ),
}


def list_tools(registry: Optional[Mapping[str, ToolDefinition]] = None) -> List[Dict[str, Any]]:
    """Return the public description of every registered tool."""
    tools = registry if registry is not None else TOOL_REGISTRY
    return [tool.describe() for tool in tools.values()]


@dataclass
class Dispatcher:
    """Validate, route and wrap tool calls. Holds no per-call state."""

    context: ToolContext
    envelopes: EnvelopeFactory = field(default_factory=EnvelopeFactory)
    registry: Mapping[str, ToolDefinition] = field(default_factory=lambda: TOOL_REGISTRY)
    metrics: MetricsRecorder = field(default_factory=lambda: default_metrics)

    def list_tools(self) -> List[Dict[str, Any]]:
        return list_tools(self.registry)

    async def dispatch(
        self, tool_name: Any, arguments: Any = None
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Run one tool call.

        Returns:
            ``(status_hint, envelope)`` where the hint is 200, 400, 404, 500 or 502.
        """
        if not isinstance(tool_name, str):
            label = tool_name if tool_name is not None else "unknown"
            return self._finish(
                label,
                400,
                self.envelopes.error(label, ErrorCode.INVALID_REQUEST, "tool must be a string"),
            )

        definition = self.registry.get(tool_name)
        if definition is None:
            return self._finish(
                tool_name,
                404,
                self.envelopes.error(tool_name, ErrorCode.TOOL_NOT_FOUND, "tool not found"),
            )

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return self._finish(
                tool_name,
                400,
                self.envelopes.error(
                    tool_name,
                    ErrorCode.INVALID_REQUEST,
                    "arguments must be an object",
                    source=definition.source,
                ),
            )

        try:
            validated = definition.validator(arguments)
            result = await definition.handler(self.context, validated)
        except ToolInputError as exc:
            envelope = self.envelopes.error(
                tool_name,
                exc.code,
                exc.message,
                source=exc.source or definition.source,
                summary=exc.summary,
            )
            return self._finish(tool_name, exc.status, envelope)
        except PricingInputError as exc:
            envelope = self.envelopes.error(
                tool_name, exc.code, str(exc), source=definition.source
            )
            return self._finish(tool_name, 400, envelope)
        except UpstreamError as exc:
            logger.debug(
                "upstream failure tool=%s code=%s url=%s status=%s content_type=%s body=%s",
                tool_name,
                exc.code,
                exc.url,
                exc.status,
                exc.content_type,
                exc.body_snippet,
            )
            envelope = self.envelopes.error(
                tool_name,
                ErrorCode.UPSTREAM_ERROR,
                exc.message or "upstream error",
                extra={
                    "status": exc.status,
                    "contentType": exc.content_type,
                    "upstreamCode": exc.code,
                },
                source=definition.source,
                summary="Upstream service call failed.",
            )
            return self._finish(tool_name, 502, envelope)
        except Exception:
            logger.exception("Unexpected error while calling tool %s", tool_name)
            envelope = self.envelopes.error(
                tool_name,
                ErrorCode.INTERNAL_ERROR,
                "Unexpected error while calling tool.",
                source=definition.source,
            )
            return self._finish(tool_name, 500, envelope)

        envelope = self.envelopes.ok(tool_name, result.data, result.summary, result.source)
        return self._finish(tool_name, 200, envelope)

    def _finish(
        self, tool_name: Any, status: int, envelope: Dict[str, Any]
    ) -> Tuple[int, Dict[str, Any]]:
        request_id = envelope["meta"]["requestId"]
        label = str(tool_name)
        if envelope["ok"]:
            logger.info(
                "tool=%s outcome=success request_id=%s",
                label,
                request_id,
                extra={"tool": label, "request_id": request_id},
            )
            self.metrics.record_tool(label, success=True)
        else:
            code = envelope["error"]["code"]
            logger.warning(
                "tool=%s outcome=error error=%s status=%s request_id=%s",
                label,
                code,
                status,
                request_id,
                extra={"tool": label, "request_id": request_id, "error": code},
            )
            self.metrics.record_tool(label, success=False, error_code=code)
        return status, envelope
