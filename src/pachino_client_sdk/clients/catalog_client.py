from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_catalog import CatalogQuery, CatalogResponse
from .base import BaseClient, coerce_model

CATALOG_PATH = "/api/pos/search"


@dataclass
class CatalogClient(BaseClient):
    def search_variants(
        self,
        query: CatalogQuery | Mapping[str, Any] | None = None,
        *,
        use_cache: bool = False,
    ) -> CatalogResponse:
        request = coerce_model(query or {}, CatalogQuery)
        data = self._request(
            "GET",
            CATALOG_PATH,
            params=request.model_dump(mode="json"),
            module="catalog",
            operation="search_variants",
            use_get_cache=use_cache,
        )
        return self._parse(data, CatalogResponse, what="catalog")
