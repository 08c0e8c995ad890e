"""
Newline-delimited JSON-RPC over stdin/stdout.

Every request runs in its own task, so a slow upstream call does not hold up
later messages. Replies are serialized through a lock and may arrive out of
order; callers correlate them by ``id``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, Protocol, Set, Tuple

from tron_mcp.protocol import PARSE_ERROR, McpProtocol, jsonrpc_error_payload

logger = logging.getLogger(__name__)

CANCEL_METHOD = "notifications/cancelled"
STREAM_LIMIT = 4 * 1024 * 1024


class LineWriter(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


def _request_key(rpc_id: Any) -> Optional[Tuple[str, Any]]:
    if isinstance(rpc_id, bool) or not isinstance(rpc_id, (str, int)):
        return None
    return (type(rpc_id).__name__, rpc_id)


class StdioSession:
    """One persistent-channel peer. Cancelling ``run`` cancels only this session's work."""

    def __init__(
        self,
        protocol: McpProtocol,
        reader: asyncio.StreamReader,
        writer: LineWriter,
    ) -> None:
        self.protocol = protocol
        self.reader = reader
        self.writer = writer
        self._write_lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self._in_flight: Dict[Tuple[str, Any], asyncio.Task] = {}

    async def run(self) -> None:
        """Serve until end of input, then wait for in-flight requests to finish."""
        try:
            while True:
                line = await self.reader.readline()
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                await self._accept(line)
            if self._pending:
                await asyncio.gather(*list(self._pending), return_exceptions=True)
        finally:
            await self.cancel_all()

    async def cancel_all(self) -> None:
        tasks = [task for task in self._pending if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

    async def _accept(self, line: bytes) -> None:
        try:
            message = json.loads(line)
        except ValueError:
            logger.warning("stdio parse error bytes=%d", len(line))
            await self._write(jsonrpc_error_payload(None, PARSE_ERROR, "Parse error"))
            return

        if isinstance(message, dict) and message.get("method") == CANCEL_METHOD:
            self._cancel_request(message.get("params"))
            return

        task = asyncio.create_task(self._handle(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        key = _request_key(message.get("id")) if isinstance(message, dict) else None
        if key is not None:
            self._in_flight[key] = task
            task.add_done_callback(lambda _task, key=key: self._forget(key, _task))

    def _forget(self, key: Tuple[str, Any], task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    def _cancel_request(self, params: Any) -> None:
        request_id = params.get("requestId") if isinstance(params, dict) else None
        key = _request_key(request_id)
        task = self._in_flight.get(key) if key is not None else None
        if task is None:
            logger.debug("stdio cancel for unknown request id=%s", request_id)
            return
        logger.info("stdio request cancelled id=%s", request_id)
        task.cancel()

    async def _handle(self, message: Any) -> None:
        response = await self.protocol.handle_message(message)
        if response is not None:
            await self._write(response)

    async def _write(self, payload: Dict[str, Any]) -> None:
        data = (json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8")
        async with self._write_lock:
            self.writer.write(data)
            await self.writer.drain()


async def open_stdio_streams() -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Wrap the process stdin/stdout in asyncio streams."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STREAM_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout
    )
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)
    return reader, writer


async def serve_stdio(protocol: McpProtocol) -> None:
    reader, writer = await open_stdio_streams()
    logger.info("stdio transport ready")
    session = StdioSession(protocol, reader, writer)
    try:
        await session.run()
    finally:
        writer.close()
