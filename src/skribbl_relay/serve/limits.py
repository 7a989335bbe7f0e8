"""Request body size guard.

Checks Content-Length up front and also counts the bytes actually received,
so chunked bodies without a length header are held to the same limit.
"""
from __future__ import annotations
import logging
from typing import Any

from fastapi.responses import JSONResponse

LOGGER = logging.getLogger("skribbl_relay.serve.limits")

TOO_LARGE = "Request body too large"


class _BodyTooLarge(Exception):
    pass


class BodySizeLimitMiddleware:
    def __init__(self, app: Any, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    def _reject(self) -> JSONResponse:
        return JSONResponse(status_code=413, content={"error": TOO_LARGE})

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        length = headers.get(b"content-length", b"").decode("latin-1")
        if length.isdigit() and int(length) > self.max_bytes:
            LOGGER.warning("Rejected %s byte body on %s", length, scope.get("path"))
            await self._reject()(scope, receive, send)
            return

        received = 0
        exceeded = False

        async def limited_receive() -> dict:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    exceeded = True
                    raise _BodyTooLarge()
            return message

        async def guarded_send(message: dict) -> None:
            # whatever the app answers after an oversized read is replaced by 413
            if not exceeded:
                await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except _BodyTooLarge:
            pass
        if exceeded:
            LOGGER.warning("Rejected streamed body over %d bytes on %s", self.max_bytes, scope.get("path"))
            await self._reject()(scope, receive, send)
