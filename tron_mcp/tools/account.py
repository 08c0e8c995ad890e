"""Account-related tools."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tron_mcp.envelope import ErrorCode
from tron_mcp.tron_api import (
    AddressDecodeError,
    normalize_address_like,
    parse_address_meta,
    to_hex_address,
)
from tron_mcp.tools.base import ToolContext, ToolInputError, ToolResult, gather_all, log_upstream
from tron_mcp.tools.formatting import (
    TRX_DECIMALS,
    USDT_DECIMALS,
    format_token_amount,
    hex_to_int_string,
    iso_from_ms,
    to_fixed2,
)
from tron_mcp.tools.validators import is_valid_tron_address


def validate_address_args(args: Dict[str, Any]) -> Dict[str, Any]:
    address = args.get("address")
    if not is_valid_tron_address(address):
        raise ToolInputError(
            ErrorCode.INVALID_ADDRESS,
            "address must start with T and length 30-40",
        )
    # balanceOf(address) is encoded from the decoded hex form.
    try:
        to_hex_address(address)
    except AddressDecodeError:
        raise ToolInputError(
            ErrorCode.INVALID_ADDRESS,
            "address failed Base58Check verification",
        ) from None
    return {"address": address}


def extract_trc20_balance(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        results = payload.get("constant_result")
        if isinstance(results, list) and results and results[0]:
            return results[0]
    return None


def _balances(ctx: ToolContext, address: str, account: Any, trc20: Any) -> Dict[str, Any]:
    balance_sun = account.get("balance", 0) if isinstance(account, dict) else 0
    if balance_sun is None:
        balance_sun = 0
    usdt_raw = hex_to_int_string(extract_trc20_balance(trc20))
    return {
        "address": address,
        "trx": {
            "balance": format_token_amount(balance_sun, TRX_DECIMALS),
            "balanceSun": str(balance_sun),
        },
        "usdt": {
            "balance": format_token_amount(usdt_raw, USDT_DECIMALS),
            "balanceRaw": usdt_raw,
            "decimals": USDT_DECIMALS,
            "contract": ctx.config.usdt_contract,
        },
        "addressMeta": parse_address_meta(address),
    }


def _first_present(mapping: Any, *keys: str) -> Any:
    if not isinstance(mapping, dict):
        return None
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


def summarize_transactions(transactions: List[Any], address: str) -> Dict[str, Any]:
    """Count inbound/outbound transfers for ``address`` and find the latest timestamp."""
    target = normalize_address_like(address) or {}
    target_base58 = target.get("base58")
    target_hex = target.get("hex")

    def _matches(candidate: Any) -> bool:
        normalized = normalize_address_like(candidate)
        if normalized is None:
            return False
        if target_base58 and normalized["base58"] == target_base58:
            return True
        return bool(target_hex and normalized["hex"] == target_hex)

    inbound = 0
    outbound = 0
    last_timestamp = None
    for tx in transactions:
        raw_data = tx.get("raw_data") if isinstance(tx, dict) else None
        contracts = raw_data.get("contract") if isinstance(raw_data, dict) else None
        value: Dict[str, Any] = {}
        if isinstance(contracts, list) and contracts and isinstance(contracts[0], dict):
            parameter = contracts[0].get("parameter")
            if isinstance(parameter, dict) and isinstance(parameter.get("value"), dict):
                value = parameter["value"]

        timestamp = _first_present(tx, "block_timestamp") or _first_present(raw_data, "timestamp")
        if last_timestamp is None and timestamp:
            last_timestamp = timestamp

        if _matches(value.get("owner_address")):
            outbound += 1
        if _matches(value.get("to_address")):
            inbound += 1

    return {
        "total": len(transactions),
        "inbound": inbound,
        "outbound": outbound,
        "lastTimestamp": last_timestamp,
    }


async def get_usdt_balance(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    """TRX and USDT balances for an address, fetched concurrently."""
    address = args["address"]
    account_res, trc20_res = await gather_all(
        ctx.trongrid.get_account(address, include_meta=True),
        ctx.trongrid.get_trc20_balance(address, ctx.config.usdt_contract, include_meta=True),
    )
    log_upstream(account_res, trc20_res)

    data = _balances(ctx, address, account_res.data, trc20_res.data)
    check = "passed" if data["addressMeta"]["base58Valid"] else "failed"
    summary = (
        f"USDT balance {to_fixed2(data['usdt']['balance'])}, "
        f"TRX balance {to_fixed2(data['trx']['balance'])}. Address check: {check}."
    )
    return ToolResult(data=data, summary=summary, source="trongrid")


async def get_account_profile(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    """
    Balances plus a digest of recent confirmed transactions.

    All three upstream calls must succeed; any single failure fails the tool.
    """
    address = args["address"]
    account_res, trc20_res, tx_res = await gather_all(
        ctx.trongrid.get_account(address, include_meta=True),
        ctx.trongrid.get_trc20_balance(address, ctx.config.usdt_contract, include_meta=True),
        ctx.trongrid.get_account_transactions(address, include_meta=True),
    )
    log_upstream(account_res, trc20_res, tx_res)

    data = _balances(ctx, address, account_res.data, trc20_res.data)
    tx_payload = tx_res.data if isinstance(tx_res.data, dict) else {}
    transactions = tx_payload.get("data") if isinstance(tx_payload.get("data"), list) else []
    digest = summarize_transactions(transactions, address)
    last_iso = iso_from_ms(digest["lastTimestamp"])

    data["activity"] = {
        "recentCount": digest["total"],
        "inbound": digest["inbound"],
        "outbound": digest["outbound"],
        "lastTimestamp": digest["lastTimestamp"],
        "lastIso": last_iso,
    }
    summary = (
        f"Last {digest['total']} transactions: {digest['inbound']} inbound, "
        f"{digest['outbound']} outbound, latest {last_iso or 'unknown'}."
    )
    return ToolResult(data=data, summary=summary, source="trongrid")
