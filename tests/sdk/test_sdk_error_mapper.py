from __future__ import annotations

from pachino_client_sdk.error_mapper import map_error
from pachino_client_sdk.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    ForbiddenError,
    RateLimitError,
    ServerError,
    TransportError,
    UnauthorizedError,
    UnexpectedPayloadError,
    ValidationError,
)
from pachino_client_sdk.ui_errors import to_user_facing_error


def test_error_mapper_classes() -> None:
    err = map_error(401, {"error": "Unauthorized"}, "trace")
    assert isinstance(err, AuthError)
    assert isinstance(err, UnauthorizedError)
    assert err.code == "UNAUTHORIZED"
    assert err.trace_id == "trace"
    assert isinstance(map_error(403, {"error": "Forbidden"}, "trace"), ForbiddenError)
    assert isinstance(map_error(400, {"error": "Items tidak boleh kosong"}, "trace"), ValidationError)
    assert isinstance(map_error(409, {"message": "duplicate"}, "trace"), ConflictError)
    assert isinstance(map_error(429, {}, "trace"), RateLimitError)
    teapot = map_error(418, {}, None)
    assert type(teapot) is ApiError
    assert teapot.code == "HTTP_ERROR"


def test_error_mapper_prefers_error_key() -> None:
    err = map_error(400, {"error": "Nama customer wajib diisi", "message": "ignored"}, None)
    assert err.message == "Nama customer wajib diisi"
    assert err.code == "VALIDATION_ERROR"
    assert map_error(500, None, None).message == "Request failed"


def test_error_mapper_flags_stock_rejections() -> None:
    indonesian = map_error(400, {"error": "Stok tidak mencukupi untuk Linen Shirt. Stok tersisa: 1"}, None)
    english = map_error(400, {"error": "Insufficient stock for Linen Shirt"}, None)
    assert indonesian.code == english.code == "INSUFFICIENT_STOCK"
    assert isinstance(indonesian, ValidationError)


def test_error_mapper_keeps_payload_trace_and_code() -> None:
    server = map_error(500, {"code": "DB_DOWN", "message": "oops", "trace_id": "from-body"}, "trace-500")
    assert isinstance(server, ServerError)
    assert server.code == "DB_DOWN"
    assert server.trace_id == "from-body"
    assert "trace_id=from-body" in str(server)
    assert map_error(502, {}, "t").code == "SERVER_ERROR"


def test_user_facing_error_marks_retryable_failures() -> None:
    transport = TransportError(
        code="TRANSPORT_ERROR", message="timed out", details=None, trace_id="t", status_code=0
    )
    assert to_user_facing_error(transport).retryable is True
    assert to_user_facing_error(map_error(503, {"error": "down"}, None)).retryable is True
    facing = to_user_facing_error(map_error(400, {"error": "bad", "details": "qty"}, "t-1"))
    assert facing.retryable is False
    assert facing.message == "bad"
    assert facing.details == "VALIDATION_ERROR (HTTP 400): qty"
    assert facing.trace_id == "t-1"


def test_unexpected_payload_is_not_retryable() -> None:
    unexpected = UnexpectedPayloadError(
        code="UNEXPECTED_PAYLOAD", message="Unexpected create sale response", details=None, trace_id=None, status_code=201
    )
    assert to_user_facing_error(unexpected).retryable is False
