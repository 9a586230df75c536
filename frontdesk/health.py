"""Lightweight HTTP health check server (no external dependencies).

Exposes GET /health returning JSON with:
- number of live conversations
- succeeded / failed turn counters
- last_processed_at timestamp
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from frontdesk.logging import get_logger

if TYPE_CHECKING:
    from frontdesk.agent.receptionist import ReceptionistService

logger = get_logger(__name__)

_HTTP_200 = b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nConnection: close\r\n\r\n"
_HTTP_404 = b"HTTP/1.1 404 Not Found\r\nContent-Type: text/plain\r\nConnection: close\r\n\r\nNot Found"
_HTTP_405 = b"HTTP/1.1 405 Method Not Allowed\r\nContent-Type: text/plain\r\nConnection: close\r\n\r\nMethod Not Allowed"


class HealthServer:
    """Minimal asyncio HTTP server exposing /health."""

    def __init__(
        self,
        service: ReceptionistService,
        host: str = "127.0.0.1",
        port: int = 8765,
    ) -> None:
        self.service = service
        self.host = host
        self.port = port
        self._server: asyncio.AbstractServer | None = None

    def _build_payload(self) -> bytes:
        payload = {"status": "ok", **self.service.status()}
        return json.dumps(payload, indent=2).encode()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            request_line = await asyncio.wait_for(reader.readline(), timeout=5.0)
            parts = request_line.decode(errors="replace").split()
            if len(parts) < 2:
                writer.write(_HTTP_404)
                await writer.drain()
                return

            method = parts[0]
            path = urlsplit(parts[1]).path

            # Drain remaining headers
            while True:
                line = await asyncio.wait_for(reader.readline(), timeout=5.0)
                if line in (b"\r\n", b"\n", b""):
                    break

            if method != "GET":
                writer.write(_HTTP_405)
            elif path == "/health":
                writer.write(_HTTP_200 + self._build_payload())
            else:
                writer.write(_HTTP_404)

            await writer.drain()
        except (asyncio.TimeoutError, ConnectionError) as e:
            logger.debug("health_request_dropped", error=str(e))
        finally:
            writer.close()

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, self.host, self.port)
        logger.info("Health server started", host=self.host, port=self.port)

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.info("Health server stopped")
