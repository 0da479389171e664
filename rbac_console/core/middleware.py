"""CORS and request-tracing middleware."""

import re
import time
import uuid
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from rbac_console.core.config import settings

logger = logging.getLogger("rbac_console")

REQUEST_ID_HEADER = "X-Request-Id"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _request_id(request: Request) -> str:
    """Reuse a well-formed inbound request id, otherwise mint one."""
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming and _REQUEST_ID_RE.match(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log one access line per request.

    Denied requests (401/403) are logged at WARNING so authorization
    failures stand out from normal traffic.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = _request_id(request)
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        level = logging.WARNING if response.status_code in (401, 403) else logging.INFO
        logger.log(
            level,
            "[%s] %s %s %s %sms",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_origin_regex=settings.CORS_ORIGIN_REGEX or None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
    )

    app.add_middleware(RequestIdMiddleware)
