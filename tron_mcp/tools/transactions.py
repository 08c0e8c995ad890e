"""Transaction status, unsigned-transaction verification and transfer construction."""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Any, Dict, List, Optional

from tron_mcp.envelope import ErrorCode
from tron_mcp.tron_api import normalize_address_like
from tron_mcp.tools.base import ToolContext, ToolInputError, ToolResult, log_upstream
from tron_mcp.tools.formatting import TRX_DECIMALS, format_token_amount, iso_from_ms
from tron_mcp.tools.validators import (
    is_valid_tron_address,
    is_valid_txid,
    normalize_hex,
    parse_positive_number,
)

logger = logging.getLogger(__name__)

STATUS_PENDING = "PENDING"
STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"


def to_status(info: Any) -> str:
    """Map explorer transaction info to PENDING, FAILED or SUCCESS."""
    if not isinstance(info, dict):
        return STATUS_PENDING
    if not info.get("confirmed"):
        return STATUS_PENDING
    if info.get("revert") or info.get("reverted"):
        return STATUS_FAILED
    contract_ret = (
        info.get("contractRet")
        or info.get("contractResult")
        or info.get("finalResult")
        or info.get("final_result")
    )
    if isinstance(contract_ret, str) and contract_ret.upper() == STATUS_SUCCESS:
        return STATUS_SUCCESS
    if contract_ret:
        return STATUS_FAILED
    return STATUS_SUCCESS


def _coalesce(mapping: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def validate_txid_args(args: Dict[str, Any]) -> Dict[str, Any]:
    txid = args.get("txid")
    if not is_valid_txid(txid):
        raise ToolInputError(ErrorCode.INVALID_TXID, "txid must be 64 hex chars")
    return {"txid": txid}


async def get_tx_status(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    txid = args["txid"]
    result = await ctx.tronscan.get_transaction_info(txid, include_meta=True)
    log_upstream(result)

    info = result.data if isinstance(result.data, dict) else {}
    status = to_status(info)
    timestamp = _coalesce(info, "timestamp", "block_timestamp")
    if status == STATUS_PENDING:
        summary = "Transaction not yet confirmed."
    else:
        summary = f"Transaction confirmed at {iso_from_ms(timestamp) or ''}."
    data = {
        "txid": txid,
        "status": status,
        "block": _coalesce(info, "block", "blockNumber"),
        "timestamp": timestamp,
    }
    return ToolResult(data=data, summary=summary, source="tronscan")


def derive_txid(raw_data_hex: str) -> Optional[str]:
    """TRON transaction id: SHA-256 of the ``raw_data`` protobuf bytes."""
    normalized = normalize_hex(raw_data_hex)
    if normalized is None:
        return None
    return hashlib.sha256(bytes.fromhex(normalized)).hexdigest()


def validate_unsigned_tx_args(args: Dict[str, Any]) -> Dict[str, Any]:
    unsigned_tx = args.get("unsignedTx")
    raw_data_hex = args.get("rawDataHex")
    if "unsignedTx" in args and not isinstance(unsigned_tx, dict):
        raise ToolInputError(ErrorCode.INVALID_UNSIGNED_TX, "unsignedTx must be an object")
    if "rawDataHex" in args and not isinstance(raw_data_hex, str):
        raise ToolInputError(ErrorCode.INVALID_RAW_DATA_HEX, "rawDataHex must be a string")

    if raw_data_hex is None and isinstance(unsigned_tx, dict):
        raw_data_hex = unsigned_tx.get("raw_data_hex")
    if not isinstance(raw_data_hex, str):
        raise ToolInputError(
            ErrorCode.MISSING_RAW_DATA_HEX,
            "Provide rawDataHex or unsignedTx.raw_data_hex",
        )

    normalized = normalize_hex(raw_data_hex)
    if normalized is None:
        raise ToolInputError(
            ErrorCode.INVALID_RAW_DATA_HEX,
            "rawDataHex must be even-length hex string",
        )
    return {"unsignedTx": unsigned_tx or {}, "rawDataHex": normalized}


def _first_contract_value(unsigned_tx: Dict[str, Any]) -> tuple[Optional[str], Dict[str, Any]]:
    raw_data = unsigned_tx.get("raw_data")
    contracts = raw_data.get("contract") if isinstance(raw_data, dict) else None
    if not isinstance(contracts, list) or not contracts or not isinstance(contracts[0], dict):
        return None, {}
    contract = contracts[0]
    parameter = contract.get("parameter")
    value = parameter.get("value") if isinstance(parameter, dict) else None
    return contract.get("type"), value if isinstance(value, dict) else {}


def _expiration(unsigned_tx: Dict[str, Any]) -> Optional[int]:
    raw_data = unsigned_tx.get("raw_data")
    if not isinstance(raw_data, dict):
        return None
    expiration = raw_data.get("expiration")
    if isinstance(expiration, bool) or not isinstance(expiration, (int, float)):
        return None
    if not math.isfinite(expiration):
        return None
    return expiration


def _is_negative(amount: Any) -> bool:
    if isinstance(amount, bool):
        return False
    try:
        return float(amount) < 0
    except (TypeError, ValueError):
        return False


async def verify_unsigned_tx(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    """Structural checks on an unsigned transaction; no network access."""
    unsigned_tx: Dict[str, Any] = args["unsignedTx"]
    txid = derive_txid(args["rawDataHex"])

    signatures = unsigned_tx.get("signature")
    has_signature = isinstance(signatures, list) and len(signatures) > 0
    contract_type, value = _first_contract_value(unsigned_tx)
    owner_address = value.get("owner_address")
    to_address = value.get("to_address")
    owner_valid = normalize_address_like(owner_address) is not None if owner_address else None
    to_valid = normalize_address_like(to_address) is not None if to_address else None
    amount_sun = value.get("amount")
    expiration = _expiration(unsigned_tx)
    expired = expiration <= ctx.clock() if expiration is not None else None

    warnings: List[str] = []
    if has_signature:
        warnings.append("Transaction carries a signature field; it is not unsigned.")
    if owner_valid is False:
        warnings.append("owner_address is malformed.")
    if to_valid is False:
        warnings.append("to_address is malformed.")
    if amount_sun is not None and _is_negative(amount_sun):
        warnings.append("amount must not be negative.")
    if expired is True:
        warnings.append("Transaction has expired.")

    valid = (
        not has_signature
        and owner_valid is not False
        and to_valid is not False
        and expired is not True
        and bool(txid)
    )
    if valid:
        summary = "Unsigned transaction passed verification and can proceed to signing."
    else:
        summary = f"Unsigned transaction has {len(warnings) or 1} issue(s); fix before signing."

    data = {
        "valid": valid,
        "txid": txid,
        "isUnsigned": not has_signature,
        "hasSignature": has_signature,
        "contractType": contract_type,
        "ownerAddress": owner_address,
        "ownerAddressValid": owner_valid,
        "toAddress": to_address,
        "toAddressValid": to_valid,
        "amountSun": str(amount_sun) if amount_sun is not None else None,
        "amountTrx": format_token_amount(str(amount_sun), TRX_DECIMALS) if amount_sun is not None else None,
        "expiration": expiration,
        "expired": expired,
        "warnings": warnings,
    }
    return ToolResult(data=data, summary=summary, source="local-validation")


def validate_transfer_args(args: Dict[str, Any]) -> Dict[str, Any]:
    sender = args.get("from")
    recipient = args.get("to")
    if not is_valid_tron_address(sender) or not is_valid_tron_address(recipient):
        raise ToolInputError(ErrorCode.INVALID_ADDRESS, "from/to must be valid TRON addresses")
    amount = parse_positive_number(args.get("amountSun"))
    if amount is None:
        raise ToolInputError(ErrorCode.INVALID_AMOUNT, "amountSun must be a positive number")
    return {
        "from": sender,
        "to": recipient,
        "amountSun": int(amount) if amount.is_integer() else amount,
    }


async def create_unsigned_transfer(ctx: ToolContext, args: Dict[str, Any]) -> ToolResult:
    """Have the full node build an unsigned TRX transfer for later signing."""
    result = await ctx.trongrid.create_transfer_transaction(
        args["from"], args["to"], args["amountSun"], include_meta=True
    )
    log_upstream(result)

    transaction = result.data
    if isinstance(transaction, dict):
        upstream_error = transaction.get("Error") or transaction.get("error")
        if upstream_error:
            logger.info("create_unsigned_transfer rejected upstream error=%s", upstream_error)
            raise ToolInputError(
                ErrorCode.UPSTREAM_VALIDATE_ERROR,
                str(upstream_error),
                source="trongrid",
                summary="Failed to create unsigned transaction (upstream validation error).",
            )
    return ToolResult(
        data={"transaction": transaction},
        summary="Unsigned transaction created.",
        source="trongrid",
    )
