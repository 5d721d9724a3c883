"""ASGI middleware for request transcoding and access logging."""

from __future__ import annotations
import gzip
import logging
import time
import zlib
from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send


logger = logging.getLogger(__name__)

_STRIPPED_HEADERS = {b"content-encoding", b"content-length"}


class GzipRequestMiddleware:
    """Inflate request bodies sent with ``Content-Encoding: gzip``.

    Downstream handlers always see the decompressed body. Corrupt payloads
    are rejected with ``400`` before reaching the application.
    """

    def __init__(self, app: ASGIApp) -> None:
        """Wrap the downstream ASGI application."""
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Decompress gzip request bodies before dispatching."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        encoding = Headers(scope=scope).get("content-encoding", "")
        if "gzip" not in encoding.lower():
            await self.app(scope, receive, send)
            return

        chunks: list[bytes] = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)

        try:
            body = gzip.decompress(b"".join(chunks))
        except (OSError, EOFError, zlib.error):
            response = PlainTextResponse(
                "failed to decompress request", status_code=400
            )
            await response(scope, receive, send)
            return

        headers = [
            (key, value)
            for key, value in scope["headers"]
            if key.lower() not in _STRIPPED_HEADERS
        ]
        headers.append((b"content-length", str(len(body)).encode("latin-1")))
        inflated_scope = {**scope, "headers": headers}
        delivered = False

        async def receive_inflated() -> Message:
            nonlocal delivered
            if not delivered:
                delivered = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(inflated_scope, receive_inflated, send)


class AccessLogMiddleware:
    """Log uri, method, status, duration and response size of each request."""

    def __init__(self, app: ASGIApp) -> None:
        """Wrap the downstream ASGI application."""
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Dispatch the request and log a summary once it completes."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_code = 0
        size = 0

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, size
            if message["type"] == "http.response.start":
                status_code = message["status"]
            elif message["type"] == "http.response.body":
                size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            uri = scope.get("path", "")
            if scope.get("query_string"):
                uri = f"{uri}?{scope['query_string'].decode('latin-1')}"
            logger.info(
                "%s %s -> %s",
                scope.get("method", ""),
                uri,
                status_code,
                extra={
                    "uri": uri,
                    "method": scope.get("method", ""),
                    "status": status_code,
                    "duration_ms": round(duration_ms, 3),
                    "size": size,
                },
            )


__all__ = ["AccessLogMiddleware", "GzipRequestMiddleware"]
