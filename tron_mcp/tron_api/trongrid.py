"""
Thin client for the TronGrid full-node API.

Only the handful of endpoints the tools need are wrapped. Every call goes
through the shared ``UpstreamClient`` so timeout, retry and failure
classification behave identically across endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

from tron_mcp.config import TronConfig, default_config
from tron_mcp.tron_api.address import to_hex_address
from tron_mcp.tron_api.client import UpstreamClient

API_KEY_HEADER = "TRON-PRO-API-KEY"
RECENT_TRANSACTIONS_LIMIT = 20


class TronGridClient:
    """Async wrapper for TronGrid wallet and account endpoints."""

    source = "trongrid"

    def __init__(
        self,
        config: TronConfig | None = None,
        *,
        http: Optional[UpstreamClient] = None,
    ) -> None:
        self.config = config or default_config
        self.http = http or UpstreamClient(self.config)

    def _headers(self, *, json_body: bool = False) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.config.trongrid_api_key:
            headers[API_KEY_HEADER] = self.config.trongrid_api_key
        return headers

    def _url(self, path: str) -> str:
        return f"{self.config.trongrid_base_url}{path}"

    async def _post(self, path: str, payload: Dict[str, Any], *, include_meta: bool) -> Any:
        return await self.http.fetch_json(
            self._url(path),
            method="POST",
            headers=self._headers(json_body=True),
            body=payload,
            include_meta=include_meta,
        )

    async def get_now_block(self, *, include_meta: bool = False) -> Any:
        """Fetch the latest block."""
        return await self._post("/wallet/getnowblock", {}, include_meta=include_meta)

    async def get_chain_parameters(self, *, include_meta: bool = False) -> Any:
        """Fetch chain parameters (energy fee, bandwidth price, ...)."""
        return await self._post("/wallet/getchainparameters", {}, include_meta=include_meta)

    async def get_account(self, address: str, *, include_meta: bool = False) -> Any:
        """Fetch account state, including the native TRX balance in sun."""
        return await self._post(
            "/wallet/getaccount",
            {"address": address, "visible": True},
            include_meta=include_meta,
        )

    async def get_trc20_balance(
        self, address: str, contract_address: str, *, include_meta: bool = False
    ) -> Any:
        """Call ``balanceOf(address)`` on a TRC20 contract as a constant call."""
        parameter = to_hex_address(address).rjust(64, "0")
        payload = {
            "contract_address": contract_address,
            "function_selector": "balanceOf(address)",
            "parameter": parameter,
            "owner_address": address,
            "visible": True,
        }
        return await self._post("/wallet/triggerconstantcontract", payload, include_meta=include_meta)

    async def get_account_transactions(self, address: str, *, include_meta: bool = False) -> Any:
        """List the most recent confirmed transactions for an address."""
        params = urlencode(
            {
                "limit": str(RECENT_TRANSACTIONS_LIMIT),
                "only_confirmed": "true",
                "order_by": "block_timestamp,desc",
            }
        )
        url = self._url(f"/v1/accounts/{quote(address, safe='')}/transactions?{params}")
        return await self.http.fetch_json(url, headers=self._headers(), include_meta=include_meta)

    async def create_transfer_transaction(
        self, owner: str, to: str, amount_sun: int, *, include_meta: bool = False
    ) -> Any:
        """Ask the node to build an unsigned TRX transfer."""
        payload = {
            "owner_address": owner,
            "to_address": to,
            "amount": amount_sun,
            "visible": True,
        }
        return await self._post("/wallet/createtransaction", payload, include_meta=include_meta)
