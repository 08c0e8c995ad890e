"""
Uniform result envelope shared by every tool and both transports.

Success: ``{ok: true, tool, chain, data, summary, meta}``.
Failure: ``{ok: false, tool, chain, error: {code, message, ...}, summary, meta}``.

``meta.ts`` and ``meta.requestId`` come from injectable callables so tests can
assert exact envelopes.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Callable, Dict, Mapping, Optional

CHAIN = "TRON"
DEFAULT_SOURCE = "tronscan/trongrid"
# Key of the one-line summary rendering in every envelope.
SUMMARY_LOCALE = "en"


class ErrorCode:
    INVALID_REQUEST = "INVALID_REQUEST"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_TXID = "INVALID_TXID"
    INVALID_CURVE = "INVALID_CURVE"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_UNSIGNED_TX = "INVALID_UNSIGNED_TX"
    INVALID_RAW_DATA_HEX = "INVALID_RAW_DATA_HEX"
    MISSING_RAW_DATA_HEX = "MISSING_RAW_DATA_HEX"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_VALIDATE_ERROR = "UPSTREAM_VALIDATE_ERROR"
    BAD_JSON = "BAD_JSON"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def now_ms() -> int:
    return int(time.time() * 1000)


def _new_request_id() -> str:
    return str(uuid.uuid4())


class EnvelopeFactory:
    """Build success and error envelopes with injected clock and id source."""

    def __init__(
        self,
        *,
        clock: Optional[Callable[[], int]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.clock = clock or now_ms
        self.id_factory = id_factory or _new_request_id

    def _meta(self, source: str) -> Dict[str, Any]:
        return {"ts": self.clock(), "source": source, "requestId": self.id_factory()}

    def ok(self, tool: str, data: Any, summary: str, source: str = DEFAULT_SOURCE) -> Dict[str, Any]:
        return {
            "ok": True,
            "tool": tool,
            "chain": CHAIN,
            "data": data,
            "summary": {SUMMARY_LOCALE: summary},
            "meta": self._meta(source),
        }

    def error(
        self,
        tool: Any,
        code: str,
        message: str,
        *,
        extra: Optional[Mapping[str, Any]] = None,
        source: str = DEFAULT_SOURCE,
        summary: str = "",
    ) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": code, "message": message}
        if extra:
            error.update(extra)
        return {
            "ok": False,
            "tool": tool,
            "chain": CHAIN,
            "error": error,
            "summary": {SUMMARY_LOCALE: summary},
            "meta": self._meta(source),
        }
