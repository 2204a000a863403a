"""
Gallery Backend — Request ID Middleware
=========================================

What:  Tags each request with a short correlation id and echoes it back in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is honoured only when it is a plain
       token (letters, digits, '.', '_', '-', at most 64 characters); anything
       else is replaced, so a header cannot forge or split access-log lines.
       The id lives in a ContextVar so loggers and exception handlers can read
       it without the request object, and is reset once the response is built.

Error bodies carry the same id as "request_id", so a user reporting a failed
upload can hand over one string that finds every related log line.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_CLIENT_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(client_value: Optional[str]) -> str:
    """The client's id if it is a safe token, otherwise a fresh one."""
    if client_value and _CLIENT_ID_PATTERN.fullmatch(client_value):
        return client_value
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
