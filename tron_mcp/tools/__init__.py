"""Tool implementations for the TRON MCP server."""

from .account import get_account_profile, get_usdt_balance, validate_address_args
from .base import ToolContext, ToolInputError, ToolResult
from .curve import rp_quote, rp_split_plan, validate_quote_args, validate_split_plan_args
from .network import get_network_status
from .transactions import (
    create_unsigned_transfer,
    get_tx_status,
    validate_transfer_args,
    validate_txid_args,
    validate_unsigned_tx_args,
    verify_unsigned_tx,
)

__all__ = [
    "ToolContext",
    "ToolInputError",
    "ToolResult",
    "create_unsigned_transfer",
    "get_account_profile",
    "get_network_status",
    "get_tx_status",
    "get_usdt_balance",
    "rp_quote",
    "rp_split_plan",
    "validate_address_args",
    "validate_quote_args",
    "validate_split_plan_args",
    "validate_transfer_args",
    "validate_txid_args",
    "validate_unsigned_tx_args",
    "verify_unsigned_tx",
]
