"""
ASGI middleware that logs API requests and responses.

Implemented as pure ASGI (not BaseHTTPMiddleware) so streamed turn
responses pass through chunk by chunk. For streamed bodies only the number
of chunks and bytes is recorded; regular JSON bodies are logged with
credentials filtered out.
"""

import json
import logging
import time
from typing import Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

STREAMED_PATH_SUFFIXES = ("/stream",)


def _sanitize_body(data: bytes, max_length: int = 5000) -> Optional[str]:
    """Decode a captured body, filter credentials if it is JSON, and truncate."""
    if not data:
        return None
    text = data.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=max_length)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False),
        max_length=max_length
    )


def _extract_error_reason(response_text: Optional[str]) -> Optional[str]:
    """Pull ``detail``/``error`` out of an error response body."""
    if not response_text:
        return None
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError:
        return truncate_large_data(response_text, max_length=500)
    if isinstance(payload, dict):
        for key in ("detail", "error", "message"):
            if payload.get(key):
                return str(payload[key])
    return truncate_large_data(response_text, max_length=500)


class RequestLoggingMiddleware:
    """Log method, path, status and duration of every HTTP request."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        path = scope.get("path", "")
        method = scope.get("method", "UNKNOWN")
        request_id = id(scope)
        client = scope.get("client")
        streamed = path.endswith(STREAMED_PATH_SUFFIXES)

        request_chunks: list[bytes] = []
        response_chunks: list[bytes] = []
        chunk_count = 0
        byte_count = 0
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code, chunk_count, byte_count
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body":
                body = message.get("body", b"")
                if body:
                    chunk_count += 1
                    byte_count += len(body)
                if not streamed:
                    response_chunks.append(body)
            await send(message)

        logger.info(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client[0] if client else None,
            }}
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = round((time.time() - start_time) * 1000, 2)
        request_body = _sanitize_body(b"".join(request_chunks))
        response_body = None if streamed else _sanitize_body(b"".join(response_chunks))
        error_reason = _extract_error_reason(response_body) if status_code >= 400 else None

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if streamed:
            message += f" | streamed {chunk_count} chunks, {byte_count} bytes"
        if error_reason:
            message += f" | error_reason={error_reason}"

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "request_body": request_body,
                "response_body": response_body,
                "stream_chunks": chunk_count if streamed else None,
                "error_reason": error_reason,
            }}
        )
