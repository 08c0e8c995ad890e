"""Live sanity checks for the TRON MCP tools against the configured upstreams."""

from __future__ import annotations

import asyncio
import json
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from tron_mcp.config import load_config  # noqa: E402
from tron_mcp.mcp import Dispatcher  # noqa: E402
from tron_mcp.tools import ToolContext  # noqa: E402

# Defaults to the USDT contract address (always present on chain); override via env.
SAMPLE_ADDRESS = os.getenv("TRON_SAMPLE_ADDRESS", "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t")
# Optional txid for the status lookup.
SAMPLE_TXID = os.getenv("TRON_SAMPLE_TXID")


def _show(label: str, status: int, envelope: dict) -> None:
    print(f"{label} [{status}]:", json.dumps(envelope, indent=2, ensure_ascii=False))


async def main() -> None:
    context = ToolContext.from_config(load_config())
    dispatcher = Dispatcher(context=context)
    try:
        _show("Network status", *await dispatcher.dispatch("get_network_status", {}))
        _show("USDT balance", *await dispatcher.dispatch("get_usdt_balance", {"address": SAMPLE_ADDRESS}))
        _show("Account profile", *await dispatcher.dispatch("get_account_profile", {"address": SAMPLE_ADDRESS}))
        if SAMPLE_TXID:
            _show("Tx status", *await dispatcher.dispatch("get_tx_status", {"txid": SAMPLE_TXID}))
        _show(
            "Quote (preset A)",
            *await dispatcher.dispatch("rp_quote", {"preset": "A", "side": "buy", "amountIn": 1000}),
        )
    finally:
        await context.aclose()


if __name__ == "__main__":
    asyncio.run(main())
