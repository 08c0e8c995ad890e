"""
Command-line entry point.

    python -m tron_mcp            # HTTP bridge on MCP_HTTP_PORT / PORT (default 8787)
    python -m tron_mcp --stdio    # newline-delimited JSON-RPC on stdin/stdout
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from tron_mcp.config import TronConfig, load_config
from tron_mcp.envelope import EnvelopeFactory
from tron_mcp.logging_config import configure_logging
from tron_mcp.mcp import Dispatcher
from tron_mcp.protocol import McpProtocol
from tron_mcp.stdio import serve_stdio
from tron_mcp.tools import ToolContext

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tron_mcp", description="TRON MCP server")
    parser.add_argument("--stdio", action="store_true", help="Serve JSON-RPC over stdin/stdout")
    parser.add_argument("--host", default=None, help="HTTP bind host")
    parser.add_argument("--port", type=int, default=None, help="HTTP bind port")
    return parser


async def run_stdio(config: TronConfig) -> None:
    envelopes = EnvelopeFactory()
    context = ToolContext.from_config(config, clock=envelopes.clock)
    protocol = McpProtocol(Dispatcher(context=context, envelopes=envelopes))
    try:
        await serve_stdio(protocol)
    finally:
        await context.aclose()


def run_http(config: TronConfig) -> None:
    import uvicorn

    from tron_mcp.server import create_app

    logger.info("HTTP bridge listening on http://%s:%d", config.http_host, config.http_port)
    uvicorn.run(create_app(config), host=config.http_host, port=config.http_port, log_config=None)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    if args.host:
        config = replace(config, http_host=args.host)
    if args.port:
        config = replace(config, http_port=args.port)
    configure_logging(config)

    if args.stdio:
        try:
            asyncio.run(run_stdio(config))
        except KeyboardInterrupt:
            return 0
        except Exception:
            logger.exception("MCP stdio error")
            return 1
        return 0

    run_http(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
