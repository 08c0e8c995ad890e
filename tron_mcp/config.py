"""
Configuration helpers for the TRON MCP server.

This module centralizes upstream base URLs, API key loading, default timeouts,
and retry policy. No secrets are stored in the repository; API keys are read
from the environment once, when the default config is built.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_TRONGRID_BASE = "https://api.trongrid.io"
DEFAULT_TRONSCAN_BASE = "https://apilist.tronscanapi.com/api"
USDT_CONTRACT = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"

DEFAULT_TIMEOUT_MS = 8000
DEFAULT_RETRIES = 2
DEFAULT_BACKOFF_BASE_MS = 500
DEFAULT_HTTP_PORT = 8787


def _load_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw_value = os.getenv(name)
    if raw_value:
        try:
            parsed = int(raw_value)
        except ValueError:
            return default
        if parsed < minimum:
            return default
        return parsed
    return default


def _load_str(name: str, default: str = "") -> str:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip() or default


def _load_api_key(name: str) -> Optional[str]:
    key = os.getenv(name)
    if key and key.strip():
        return key.strip()
    return None


def _load_http_port() -> int:
    # MCP_HTTP_PORT wins over the generic PORT used by most hosting platforms.
    port = _load_int("PORT", DEFAULT_HTTP_PORT, minimum=1)
    return _load_int("MCP_HTTP_PORT", port, minimum=1)


@dataclass(slots=True)
class TronConfig:
    """Runtime configuration for upstream access and the HTTP surface."""

    trongrid_base_url: str = DEFAULT_TRONGRID_BASE
    trongrid_api_key: Optional[str] = None
    tronscan_base_url: str = DEFAULT_TRONSCAN_BASE
    tronscan_api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES
    backoff_base_ms: int = DEFAULT_BACKOFF_BASE_MS
    usdt_contract: str = USDT_CONTRACT
    http_host: str = "0.0.0.0"
    http_port: int = DEFAULT_HTTP_PORT
    cors_origin: str = "*"
    log_level: str = "INFO"
    log_format: str = "json"  # json or plain


def load_config() -> TronConfig:
    """Build a config from environment variables, falling back to defaults."""
    return TronConfig(
        trongrid_base_url=_load_str("TRONGRID_BASE", DEFAULT_TRONGRID_BASE).rstrip("/"),
        trongrid_api_key=_load_api_key("TRONGRID_API_KEY"),
        tronscan_base_url=_load_str("TRONSCAN_BASE", DEFAULT_TRONSCAN_BASE).rstrip("/"),
        tronscan_api_key=_load_api_key("TRONSCAN_API_KEY"),
        timeout_ms=_load_int("TRON_MCP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, minimum=1),
        retries=_load_int("TRON_MCP_RETRIES", DEFAULT_RETRIES),
        http_port=_load_http_port(),
        cors_origin=_load_str("CORS_ORIGIN", "*"),
        log_level=_load_str("TRON_MCP_LOG_LEVEL", "INFO"),
        log_format=_load_str("TRON_MCP_LOG_FORMAT", "json"),
    )


default_config = load_config()
