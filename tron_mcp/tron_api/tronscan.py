"""Thin client for the Tronscan explorer API."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlencode

from tron_mcp.config import TronConfig, default_config
from tron_mcp.tron_api.client import UpstreamClient
from tron_mcp.tron_api.trongrid import API_KEY_HEADER


class TronScanClient:
    """Async wrapper for the explorer endpoints used by the tools."""

    source = "tronscan"

    def __init__(
        self,
        config: TronConfig | None = None,
        *,
        http: Optional[UpstreamClient] = None,
    ) -> None:
        self.config = config or default_config
        self.http = http or UpstreamClient(self.config)

    def _headers(self) -> Dict[str, str]:
        if self.config.tronscan_api_key:
            return {API_KEY_HEADER: self.config.tronscan_api_key}
        return {}

    async def get_transaction_info(self, txid: str, *, include_meta: bool = False) -> Any:
        """Fetch confirmation and result details for a transaction hash."""
        url = f"{self.config.tronscan_base_url}/transaction-info?{urlencode({'hash': txid})}"
        return await self.http.fetch_json(url, headers=self._headers(), include_meta=include_meta)
