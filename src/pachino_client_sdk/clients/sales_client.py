from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..idempotency import IdempotencyKeys, idempotency_headers, resolve_idempotency_keys
from ..models_sales import SaleCreateRequest, SaleCreateResponse
from .base import BaseClient, coerce_model
from .catalog_client import CATALOG_PATH


@dataclass
class SalesClient(BaseClient):
    def create_sale(
        self,
        payload: SaleCreateRequest | Mapping[str, Any],
        idempotency_key: str | None = None,
    ) -> SaleCreateResponse:
        request = coerce_model(payload, SaleCreateRequest)
        keys: IdempotencyKeys = resolve_idempotency_keys(idempotency_key=idempotency_key)
        data = self._request(
            "POST",
            "/api/sales",
            json_body=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            headers=idempotency_headers(keys),
            module="sales",
            operation="create_sale",
            invalidate_paths=[CATALOG_PATH],
        )
        # The sale may already be committed when the body is off-contract.
        return self._parse(data, SaleCreateResponse, what="create sale", status_code=201)
