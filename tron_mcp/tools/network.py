"""Network status tool."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tron_mcp.tools.base import ToolContext, ToolResult, gather_all, log_upstream

GAS_PARAMETERS = {
    "energyFee": "getEnergyFee",
    "transactionFee": "getTransactionFee",
    "bandwidthPrice": "getBandwidthPrice",
}


def pick_chain_param(params: Any, key: str) -> Any:
    """Return the numeric value of a chain parameter, or the raw value if not numeric."""
    if not isinstance(params, list):
        return None
    for entry in params:
        if isinstance(entry, dict) and entry.get("key") == key:
            value = entry.get("value")
            if value is None:
                return None
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return value
            try:
                number = float(value)
            except (TypeError, ValueError):
                return value
            return int(number) if number.is_integer() else number
    return None


def _block_header(block: Any) -> Dict[str, Any]:
    if not isinstance(block, dict):
        return {}
    header = block.get("block_header")
    raw_data = header.get("raw_data") if isinstance(header, dict) else None
    return raw_data if isinstance(raw_data, dict) else {}


async def get_network_status(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    """Latest block plus gas-related chain parameters."""
    block_res, params_res = await gather_all(
        ctx.trongrid.get_now_block(include_meta=True),
        ctx.trongrid.get_chain_parameters(include_meta=True),
    )
    log_upstream(block_res, params_res)

    header = _block_header(block_res.data)
    params = params_res.data if isinstance(params_res.data, dict) else {}
    param_list: Optional[List[Any]] = params.get("chainParameter") or params.get("chain_parameters") or []
    gas = {name: pick_chain_param(param_list, key) for name, key in GAS_PARAMETERS.items()}

    data = {
        "latestBlock": {
            "number": header.get("number"),
            "timestamp": header.get("timestamp"),
        },
        "gas": gas,
        "health": "ok",
    }
    return ToolResult(
        data=data,
        summary="Network healthy (gas parameters retrieved).",
        source="trongrid",
    )
