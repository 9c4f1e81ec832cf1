"""Request context middleware for logging."""
import asyncio
import json
import time
import uuid
from contextvars import ContextVar
from typing import Any
from typing import Callable
from typing import Optional

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

# Context variables to store request-specific data
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
client_ip_ctx: ContextVar[str] = ContextVar("client_ip", default="")
caller_identity_ctx: ContextVar[str] = ContextVar("caller_identity", default="")
request_path_ctx: ContextVar[str] = ContextVar("request_path", default="")

# Maximum size for request body logging
MAX_BODY_LOG_SIZE = 10000  # 10KB limit


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to capture and log request context information."""

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        """
        Capture request context and add to logging.

        Captures:
        - Request ID (from header or generated)
        - Client IP (forwarded header or direct)
        - Caller identity (organization or person headers set by the auth layer)
        - Request path and method
        - Request body (for POST/PUT/PATCH)
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_ctx.set(request_id)

        client_ip = self._get_client_ip(request)
        client_ip_ctx.set(client_ip)

        caller_identity = self._get_caller_identity(request)
        caller_identity_ctx.set(caller_identity)

        request_path = f"{request.method} {request.url.path}"
        request_path_ctx.set(request_path)

        # Stored early so error handlers can access it
        request.state.request_body = None
        if request.method in ("POST", "PUT", "PATCH"):
            request.state.request_body = await self._get_request_body(request)

        with logger.contextualize(
            request_id=request_id,
            client_ip=client_ip,
            caller_identity=caller_identity,
            request_path=request_path,
        ):
            start_time = time.time()
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                f"{request.method} {request.url.path} - {response.status_code}",
                event_type="http_request",
                http_method=request.method,
                url_path=str(request.url.path),
                url_query=str(request.query_params) if request.query_params else None,
                request_body=request.state.request_body,
                status_code=response.status_code,
                http_status=response.status_code,
                response_time_ms=round(duration_ms, 2),
                response_content_type=response.headers.get("content-type"),
            )

            response.headers["X-Request-ID"] = request_id
            return response

    async def _get_request_body(self, request: Request) -> Optional[dict]:
        """
        Read the request body with a timeout to prevent hanging.

        Returns:
            Parsed JSON body, a truncated preview, or None if empty / unreadable
        """
        try:
            try:
                body = await asyncio.wait_for(request.body(), timeout=2.0)
            except asyncio.TimeoutError:
                return {"_error": "Request body read timeout (>2s)"}

            if not body:
                return None

            content_type = request.headers.get("Content-Type", "")
            if "application/json" not in content_type.lower():
                body_str = body.decode("utf-8", errors="replace")
                return {"_preview": body_str[:200], "_size": len(body_str), "_content_type": content_type}

            if len(body) > MAX_BODY_LOG_SIZE:
                return {"_truncated": True, "_size": len(body), "_preview": body[:1000].decode("utf-8", errors="replace")}

            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return {"_error": "Failed to parse request body", "_error_detail": str(e)}

    def _get_client_ip(self, request: Request) -> str:
        """Get real client IP address (first X-Forwarded-For hop, else the socket peer)."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _get_caller_identity(self, request: Request) -> str:
        """
        Get caller identity from the headers set by the authentication layer.

        Priority order:
        1. Requesting organization (X-Entity-Id)
        2. Citizen (X-Person-Id)
        3. Anonymous
        """
        entity_id = request.headers.get("X-Entity-Id")
        if entity_id:
            return f"entity:{entity_id}"

        person_id = request.headers.get("X-Person-Id")
        if person_id:
            return f"person:{person_id}"

        return "anonymous"


def get_request_context() -> dict:
    """
    Get current request context for logging.

    Returns:
        Dictionary with request context variables
    """
    return {
        "request_id": request_id_ctx.get(),
        "client_ip": client_ip_ctx.get(),
        "caller_identity": caller_identity_ctx.get(),
        "request_path": request_path_ctx.get(),
    }
