from __future__ import annotations

import re
from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

# The backend answers {"error": "<message>"} without a machine code, so the
# code is derived from the status.
_STATUS_ERRORS: dict[int, tuple[type[ApiError], str]] = {
    400: (ValidationError, "VALIDATION_ERROR"),
    401: (AuthError, "UNAUTHORIZED"),
    403: (PermissionError, "FORBIDDEN"),
    404: (NotFoundError, "NOT_FOUND"),
    409: (ConflictError, "CONFLICT"),
    422: (ValidationError, "VALIDATION_ERROR"),
    429: (RateLimitError, "RATE_LIMITED"),
}
# Sale rejections for stock run out between the cart check and the commit.
_STOCK_MESSAGE = re.compile(r"stok tidak mencukupi|insufficient stock", re.IGNORECASE)


def _classify(status_code: int, message: str) -> tuple[type[ApiError], str]:
    if status_code >= 500:
        return ServerError, "SERVER_ERROR"
    mapped, code = _STATUS_ERRORS.get(status_code, (ApiError, "HTTP_ERROR"))
    if mapped is ValidationError and _STOCK_MESSAGE.search(message):
        code = "INSUFFICIENT_STOCK"
    return mapped, code


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    message = str(payload.get("error") or payload.get("message") or "Request failed")
    mapped, derived_code = _classify(status_code, message)
    payload_trace_id = payload.get("trace_id")
    return mapped(
        code=str(payload.get("code") or derived_code),
        message=message,
        details=payload.get("details"),
        trace_id=str(payload_trace_id) if payload_trace_id is not None else trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
