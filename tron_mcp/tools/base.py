"""Shared types for tool handlers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from tron_mcp.config import TronConfig, default_config
from tron_mcp.envelope import DEFAULT_SOURCE, now_ms
from tron_mcp.tron_api import TronGridClient, TronScanClient, UpstreamCallResult, UpstreamClient

logger = logging.getLogger(__name__)


class ToolInputError(Exception):
    """A caller-correctable failure reported with a 400 status hint."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        source: Optional[str] = None,
        summary: str = "",
        status: int = 400,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.source = source
        self.summary = summary
        self.status = status


@dataclass(slots=True)
class ToolResult:
    data: Dict[str, Any]
    summary: str
    source: str = DEFAULT_SOURCE


@dataclass(slots=True)
class ToolContext:
    """Collaborators handed to every handler; one instance serves many calls."""

    trongrid: Any
    tronscan: Any
    config: TronConfig = field(default_factory=lambda: default_config)
    clock: Callable[[], int] = now_ms

    @classmethod
    def from_config(
        cls, config: TronConfig, *, clock: Optional[Callable[[], int]] = None
    ) -> "ToolContext":
        http = UpstreamClient(config)
        return cls(
            trongrid=TronGridClient(config, http=http),
            tronscan=TronScanClient(config, http=http),
            config=config,
            clock=clock or now_ms,
        )

    async def aclose(self) -> None:
        for client in (self.trongrid, self.tronscan):
            http = getattr(client, "http", None)
            if http is not None:
                await http.aclose()


async def gather_all(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure cancels the remaining calls and is re-raised, so callers
    get either every result or a single exception.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def log_upstream(*results: UpstreamCallResult) -> None:
    for result in results:
        logger.debug(
            "upstream url=%s status=%s content_type=%s",
            result.meta.get("url"),
            result.meta.get("status"),
            result.meta.get("contentType"),
        )
