"""Write progress notifications to the downstream client as SSE frames."""

import json
from typing import Any

import structlog
from aiohttp import web

from deepseek_relay.relay.models import ProgressNotification
from deepseek_relay.web.cors import CORS_HEADERS

logger = structlog.get_logger()

DONE_FRAME = b"data: [DONE]\n\n"


def format_frame(payload: dict[str, Any]) -> bytes:
    """Serialize one payload as a ``data: <json>\\n\\n`` frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


class SSEEmitter:
    """Owns the downstream StreamResponse for one chat request."""

    def __init__(self) -> None:
        self._response = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": "text/event-stream",
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                **CORS_HEADERS,
            },
        )
        self._closed = False

    @property
    def response(self) -> web.StreamResponse:
        return self._response

    async def prepare(self, request: web.Request) -> web.StreamResponse:
        """Commit the 200 status and SSE headers."""
        await self._response.prepare(request)
        return self._response

    async def send(self, notification: ProgressNotification) -> None:
        await self._response.write(format_frame(notification.to_wire()))

    async def send_done(self) -> None:
        await self._response.write(DONE_FRAME)

    async def send_error(self, message: str) -> None:
        error = ProgressNotification(type="error", error=message)
        await self._response.write(format_frame(error.to_wire()))

    async def close(self) -> None:
        """Finish the response. Safe to call after the client went away."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.write_eof()
        except ConnectionResetError:
            logger.debug("sse_close_after_disconnect")
