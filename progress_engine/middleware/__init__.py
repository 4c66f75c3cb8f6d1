from progress_engine.middleware.error_handler import (
    error_envelope_middleware,
    http_exception_handler,
)
from progress_engine.middleware.request_id import RequestIdFilter, request_id_middleware

__all__ = [
    "RequestIdFilter",
    "error_envelope_middleware",
    "http_exception_handler",
    "request_id_middleware",
]
