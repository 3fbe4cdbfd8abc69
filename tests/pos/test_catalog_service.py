from __future__ import annotations

import pytest

from pachino_client_sdk.exceptions import ServerError
from pachino_client_sdk.models_catalog import CatalogResponse
from pachino_client_sdk.models_customers import Customer, CustomerListResponse
from pachino_pos.catalog import CatalogService, CatalogSnapshot, CustomerDirectory
from pachino_pos.errors import NetworkOrServerError


class FakeCatalogSource:
    def __init__(self, variants, error=None) -> None:
        self.variants = variants
        self.error = error
        self.queries = []

    def search_variants(self, query=None, *, use_cache=False):
        self.queries.append(query.search)
        if self.error is not None:
            raise self.error
        return CatalogResponse(variants=[v for v in self.variants if query.search.lower() in v.product.name.lower()])


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_snapshot_indexes_ids_and_barcodes(variant_factory) -> None:
    snapshot = CatalogSnapshot.build([variant_factory("v-1", barcode=" 8991 "), variant_factory("v-2")])

    assert snapshot.get("v-2").id == "v-2"
    assert snapshot.find_by_barcode("8991").id == "v-1"
    assert snapshot.find_by_barcode("0000") is None
    assert len(snapshot) == 2


def test_refresh_replaces_snapshot_wholesale(variant_factory) -> None:
    source = FakeCatalogSource([variant_factory("v-1"), variant_factory("v-2")])
    service = CatalogService(source)

    service.refresh()
    source.variants = [variant_factory("v-3")]
    service.refresh()

    assert [variant.id for variant in service.snapshot.variants] == ["v-3"]
    assert source.queries == ["", ""]


def test_refresh_if_stale_honours_interval(variant_factory) -> None:
    clock = FakeClock()
    source = FakeCatalogSource([variant_factory("v-1")])
    service = CatalogService(source, refresh_seconds=300, clock=clock)

    assert service.refresh_if_stale() is True
    clock.now += 299
    assert service.refresh_if_stale() is False
    clock.now += 2
    assert service.refresh_if_stale() is True


def test_search_uses_server_for_terms_and_snapshot_for_blank(variant_factory) -> None:
    source = FakeCatalogSource(
        [variant_factory("v-1", product_name="Linen Shirt"), variant_factory("v-2", product_name="Denim")]
    )
    service = CatalogService(source)
    service.refresh()

    assert [variant.id for variant in service.search(" denim ")] == ["v-2"]
    assert source.queries[-1] == "denim"
    assert len(service.search("")) == 2


def test_stale_search_response_is_discarded(variant_factory) -> None:
    service = CatalogService(FakeCatalogSource([]))
    older = service.begin("search")
    newer = service.begin("search")

    service.apply_search(newer, [variant_factory("v-new")])
    service.apply_search(older, [variant_factory("v-old")])

    assert [variant.id for variant in service.search_results] == ["v-new"]


def test_fetch_errors_are_normalized(variant_factory) -> None:
    error = ServerError(code="SERVER_ERROR", message="Failed to search products", details=None, trace_id="t-1", status_code=500)
    service = CatalogService(FakeCatalogSource([], error=error))
    service.snapshot = CatalogSnapshot.build([variant_factory("v-1")])

    with pytest.raises(NetworkOrServerError) as excinfo:
        service.refresh()
    assert excinfo.value.retryable is True
    assert excinfo.value.trace_id == "t-1"
    assert len(service.snapshot) == 1


def test_customer_directory_lookup() -> None:
    class Source:
        def list_customers(self):
            return CustomerListResponse(customers=[Customer(id="c-1", name="Ayu")])

    directory = CustomerDirectory(Source())
    directory.refresh()
    assert directory.get("c-1").name == "Ayu"
    assert directory.get("c-2") is None
