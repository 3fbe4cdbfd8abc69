from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import UnexpectedPayloadError
from ..http_client import HttpClient

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    session_cookie: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.session_cookie:
            headers["Cookie"] = self.session_cookie
        return headers

    def _request(self, method: str, path: str, **kwargs: Any):
        headers = kwargs.pop("headers", {})
        merged = {**self._auth_headers(), **headers}
        return self.http.request(method, path, headers=merged, **kwargs)

    def _parse(self, data: Any, model_type: type[ModelT], *, what: str, status_code: int = 200) -> ModelT:
        """Validate a 2xx body; anything off-contract becomes ``UnexpectedPayloadError``."""
        trace_id = self.http.trace.trace_id if self.http.trace is not None else None
        if not isinstance(data, dict):
            raise UnexpectedPayloadError(
                code="UNEXPECTED_PAYLOAD",
                message=f"Expected {what} response to be a JSON object",
                details=None,
                trace_id=trace_id,
                status_code=status_code,
                raw_payload=data,
            )
        try:
            return model_type.model_validate(data)
        except PydanticValidationError as exc:
            raise UnexpectedPayloadError(
                code="UNEXPECTED_PAYLOAD",
                message=f"Unexpected {what} response from the server",
                details=[f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()],
                trace_id=trace_id,
                status_code=status_code,
                raw_payload=data,
            ) from exc


def coerce_model(value: Any, model_type: type[Any]):
    if isinstance(value, model_type):
        return value
    return model_type.model_validate(value)
