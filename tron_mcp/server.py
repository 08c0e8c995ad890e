"""FastAPI application exposing the TRON tools over HTTP."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from tron_mcp.config import TronConfig, default_config
from tron_mcp.envelope import EnvelopeFactory, ErrorCode
from tron_mcp.logging_config import configure_logging
from tron_mcp.mcp import Dispatcher
from tron_mcp.metrics import MetricsRecorder, default_metrics
from tron_mcp.protocol import (
    INVALID_REQUEST,
    MCP_SERVER_VERSION,
    PARSE_ERROR,
    McpProtocol,
    jsonrpc_error_payload,
)
from tron_mcp.tools import ToolContext

logger = logging.getLogger(__name__)

HEALTH_STATUS = {"ok": True}
APP_VERSION = MCP_SERVER_VERSION


def _rpc_method(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and isinstance(payload.get("method"), str):
        return payload["method"]
    return None


def create_app(
    config: TronConfig | None = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
    metrics: Optional[MetricsRecorder] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        config: Runtime configuration; defaults to the environment-derived config.
        dispatcher: Pre-built dispatcher (tests inject one with stub clients).
        metrics: Metrics recorder; defaults to the process-wide recorder.
    """
    config = config or default_config
    metrics = metrics or default_metrics
    if dispatcher is None:
        envelopes = EnvelopeFactory()
        dispatcher = Dispatcher(
            context=ToolContext.from_config(config, clock=envelopes.clock),
            envelopes=envelopes,
            metrics=metrics,
        )
    protocol = McpProtocol(dispatcher)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await dispatcher.context.aclose()

    app = FastAPI(
        title="TRON MCP Server",
        description="TRON chain lookups and bonding-curve tools for LLM agents.",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.state.protocol = protocol

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.time()
        metrics.incr_request()
        response = await call_next(request)
        logger.debug(
            "http %s %s status=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            response.status_code,
            (time.time() - start) * 1000,
            extra={"request_id": request_id},
        )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health endpoint for monitoring."""
        return JSONResponse(content=HEALTH_STATUS)

    @app.get("/metrics")
    async def metrics_route() -> JSONResponse:
        """Return in-process metrics snapshot."""
        return JSONResponse(content=metrics.snapshot())

    @app.get("/tools")
    async def tools_route() -> JSONResponse:
        return JSONResponse(content={"ok": True, "tools": dispatcher.list_tools()})

    @app.post("/call")
    async def call_route(request: Request) -> JSONResponse:
        """Convenience endpoint: ``{tool, args}`` in, raw envelope out with its status hint."""
        raw = await request.body()
        try:
            body = json.loads(raw) if raw.strip() else {}
        except ValueError:
            envelope = dispatcher.envelopes.error("unknown", ErrorCode.BAD_JSON, "invalid JSON body")
            return JSONResponse(status_code=400, content=envelope)

        if not isinstance(body, dict):
            body = {}
        status, envelope = await dispatcher.dispatch(body.get("tool"), body.get("args"))
        return JSONResponse(status_code=status, content=envelope)

    @app.post("/mcp")
    async def mcp_gateway(request: Request) -> Response:
        """JSON-RPC bridge; errors ride in the JSON-RPC body, not the HTTP status."""
        request_id = getattr(request.state, "request_id", None)
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw.strip() else {}
        except ValueError:
            logger.debug("mcp parse error", extra={"request_id": request_id})
            return JSONResponse(
                status_code=400,
                content=jsonrpc_error_payload(None, PARSE_ERROR, "Parse error"),
            )

        if not isinstance(payload, dict):
            return JSONResponse(
                status_code=400,
                content=jsonrpc_error_payload(None, INVALID_REQUEST, "Invalid Request"),
            )

        reply = await protocol.handle_message(payload)
        logger.debug(
            "mcp method=%s id=%s replied=%s",
            _rpc_method(payload),
            payload.get("id"),
            reply is not None,
            extra={"request_id": request_id},
        )
        if reply is None:
            return Response(status_code=204)
        return JSONResponse(content=reply)

    return app


configure_logging(default_config)
app = create_app()

# Run with: uvicorn tron_mcp.server:app --port 8787
