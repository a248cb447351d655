"""
ASGI middleware logging every API request with its outcome.

Pure ASGI (not BaseHTTPMiddleware) so streaming responses pass through
untouched. Session identifiers in the query string are masked and the log
level follows the response status class.
"""

import logging
import time
from typing import Iterable, Optional
from urllib.parse import parse_qsl

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..utils.client_ip import resolve_client_ip
from ..utils.session_ids import mask_session_id

logger = logging.getLogger(__name__)


def _sanitize_query(query_string: bytes) -> Optional[dict]:
    if not query_string:
        return None
    params = dict(parse_qsl(query_string.decode("utf-8", errors="ignore")))
    if "sessionId" in params:
        params["sessionId"] = mask_session_id(params["sessionId"])
    return params


def _level_for_status(status_code: int) -> int:
    if status_code < 400:
        return logging.INFO
    if status_code < 500:
        return logging.WARNING
    return logging.ERROR


class RequestLoggingMiddleware:
    """Log method, path, client, status and duration of HTTP requests."""

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Optional[Iterable[str]] = None,
        trust_proxy_headers: bool = True,
    ):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are not logged (e.g. health probes)
            trust_proxy_headers: Resolve the client from forwarding headers
        """
        self.app = app
        self.exclude_paths = set(exclude_paths or ("/health", "/"))
        self.trust_proxy_headers = trust_proxy_headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        headers = {
            k.decode("latin-1").lower(): v.decode("latin-1")
            for k, v in scope.get("headers", [])
        }
        peer = scope.get("client")
        client_ip = resolve_client_ip(headers, peer[0] if peer else None, self.trust_proxy_headers)
        fields = {
            "request_id": id(scope),
            "method": method,
            "path": path,
            "query_params": _sanitize_query(scope.get("query_string", b"")),
            "client": client_ip,
        }

        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {**fields, "duration_ms": duration_ms, "error": str(e)}}
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.log(
            _level_for_status(status_code),
            f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms) client={client_ip}",
            extra={"extra_fields": {**fields, "status_code": status_code, "duration_ms": duration_ms}}
        )
