"""Request correlation ids.

Every request gets an id, exposed on ``request.state``, echoed in the
``X-Request-ID`` response header and stamped on each log record emitted
while the request is handled. A caller-supplied id is reused only when it
looks like an id; anything else is replaced.
"""

import logging
import re
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import Request
from fastapi.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")

_current_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def _resolve_request_id(incoming: str | None) -> str:
    if incoming and _VALID_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdFilter(logging.Filter):
    """Adds ``request_id`` to log records so formatters can print it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _current_request_id.get()
        return True


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = _resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    request.state.request_id = request_id
    token = _current_request_id.set(request_id)
    try:
        response = await call_next(request)
    finally:
        _current_request_id.reset(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
