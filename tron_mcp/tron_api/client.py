"""
Resilient JSON-over-HTTP client shared by every upstream provider.

Each attempt runs under a hard timeout; timeouts, transport failures and HTTP
429 responses are retried with exponential backoff. Terminal failures are
raised as ``UpstreamError`` subclasses carrying enough context (url, status,
content type, body snippet) for the tool layer to build a safe error envelope.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from tron_mcp.config import TronConfig, default_config

logger = logging.getLogger(__name__)

BODY_SNIPPET_LENGTH = 200
RATE_LIMITED_STATUS = 429

SleepFunc = Callable[[float], Awaitable[None]]


class UpstreamError(Exception):
    """Base exception for upstream call failures."""

    code = "UPSTREAM_ERROR"

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status: Optional[int] = None,
        content_type: Optional[str] = None,
        body_snippet: Optional[str] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.status = status
        self.content_type = content_type
        self.body_snippet = body_snippet
        self.data = data


class UpstreamTimeoutError(UpstreamError):
    """Raised when every attempt ran past the per-attempt timeout."""

    code = "TIMEOUT"


class NetworkError(UpstreamError):
    """Raised when the upstream could not be reached at all."""

    code = "NETWORK_ERROR"


class NonJsonResponseError(UpstreamError):
    """Raised when the response content type is not JSON."""

    code = "NON_JSON"


class BadJsonError(UpstreamError):
    """Raised when a JSON response body fails to parse."""

    code = "BAD_JSON"


class HttpStatusError(UpstreamError):
    """Raised on a non-2xx status with a valid JSON body (attached as ``data``)."""

    code = "HTTP_ERROR"


@dataclass(slots=True)
class UpstreamCallResult:
    """Parsed body plus response metadata, returned when ``include_meta`` is set."""

    data: Any
    meta: Dict[str, Any] = field(default_factory=dict)


def _snippet(text: str) -> str:
    return text[:BODY_SNIPPET_LENGTH]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _is_retryable(exc: UpstreamError) -> bool:
    if isinstance(exc, (UpstreamTimeoutError, NetworkError)):
        return True
    return exc.status == RATE_LIMITED_STATUS


class UpstreamClient:
    """Async JSON fetcher with timeout, retry and failure classification."""

    def __init__(
        self,
        config: TronConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None
        self._sleep: SleepFunc = sleep or asyncio.sleep

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def backoff_seconds(self, attempt: int) -> float:
        """Delay before retrying after the given zero-based attempt."""
        return self.config.backoff_base_ms * (2**attempt) / 1000.0

    async def fetch_json(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        timeout_ms: Optional[int] = None,
        retries: Optional[int] = None,
        include_meta: bool = False,
    ) -> Any:
        """
        Fetch ``url`` and return its parsed JSON body.

        Args:
            url: Absolute URL to request.
            method: HTTP method.
            headers: Extra request headers.
            body: Request body; dicts and lists are JSON-encoded, strings and
                bytes are sent as-is.
            timeout_ms: Hard timeout per attempt (defaults to config).
            retries: Additional attempts after the first (defaults to config).
            include_meta: Return an ``UpstreamCallResult`` instead of bare data.

        Raises:
            UpstreamError: A classified failure once retries are exhausted.
        """
        effective_timeout_ms = timeout_ms if timeout_ms is not None else self.config.timeout_ms
        max_retries = retries if retries is not None else self.config.retries
        attempt = 0

        while True:
            try:
                result = await self._attempt(
                    url,
                    method=method,
                    headers=headers,
                    body=body,
                    timeout_seconds=effective_timeout_ms / 1000.0,
                )
            except UpstreamError as exc:
                if attempt < max_retries and _is_retryable(exc):
                    delay = self.backoff_seconds(attempt)
                    logger.warning(
                        "upstream retry url=%s code=%s status=%s attempt=%d delay_s=%.2f",
                        url,
                        exc.code,
                        exc.status,
                        attempt + 1,
                        delay,
                    )
                    await self._sleep(delay)
                    attempt += 1
                    continue
                raise

            if include_meta:
                return result
            return result.data

    async def _attempt(
        self,
        url: str,
        *,
        method: str,
        headers: Optional[Dict[str, str]],
        body: Any,
        timeout_seconds: float,
    ) -> UpstreamCallResult:
        client = await self._get_client()
        content: Optional[bytes | str] = None
        if isinstance(body, (dict, list)):
            content = json.dumps(body)
        elif body is not None:
            content = body

        try:
            response = await asyncio.wait_for(
                client.request(
                    method,
                    url,
                    headers=headers,
                    content=content,
                    timeout=timeout_seconds,
                ),
                timeout=timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamTimeoutError("Request timeout", url=url) from exc
        except httpx.RequestError as exc:
            raise NetworkError("Upstream unreachable", url=url) from exc

        return self._process_response(url, response)

    def _process_response(self, url: str, response: httpx.Response) -> UpstreamCallResult:
        status = response.status_code
        content_type = response.headers.get("content-type", "")
        text = response.text

        # A 429 surfaces as whichever class its body produces; retry keys on status.
        if "application/json" not in content_type:
            raise NonJsonResponseError(
                "Non-JSON response",
                url=url,
                status=status,
                content_type=content_type,
                body_snippet=_snippet(text),
            )

        try:
            data = json.loads(text, parse_constant=_reject_constant) if text else None
        except ValueError as exc:
            raise BadJsonError(
                "Invalid JSON body",
                url=url,
                status=status,
                content_type=content_type,
                body_snippet=_snippet(text),
            ) from exc

        if not response.is_success:
            raise HttpStatusError(
                "HTTP Error",
                url=url,
                status=status,
                content_type=content_type,
                body_snippet=_snippet(text),
                data=data,
            )

        return UpstreamCallResult(
            data=data,
            meta={"url": url, "status": status, "contentType": content_type},
        )
