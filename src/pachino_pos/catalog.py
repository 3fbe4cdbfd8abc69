from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

from pachino_client_sdk.exceptions import ApiError
from pachino_client_sdk.models_catalog import CatalogQuery, CatalogResponse, Variant
from pachino_client_sdk.models_customers import Customer, CustomerListResponse
from pachino_client_sdk.ui_errors import to_user_facing_error

from .errors import NetworkOrServerError

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    def search_variants(self, query: CatalogQuery | None = None, *, use_cache: bool = False) -> CatalogResponse: ...


class CustomerSource(Protocol):
    def list_customers(self) -> CustomerListResponse: ...


@dataclass(frozen=True)
class CatalogSnapshot:
    variants: tuple[Variant, ...] = ()
    fetched_at: float | None = None
    _by_id: dict[str, Variant] = field(default_factory=dict, repr=False, compare=False)
    _by_barcode: dict[str, Variant] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(cls, variants: Iterable[Variant], fetched_at: float | None = None) -> "CatalogSnapshot":
        items = tuple(variants)
        by_id = {variant.id: variant for variant in items}
        by_barcode = {variant.barcode.strip(): variant for variant in items if variant.barcode and variant.barcode.strip()}
        return cls(variants=items, fetched_at=fetched_at, _by_id=by_id, _by_barcode=by_barcode)

    def get(self, variant_id: str) -> Variant | None:
        return self._by_id.get(variant_id)

    def find_by_barcode(self, code: str) -> Variant | None:
        return self._by_barcode.get(code.strip())

    def raw_stock(self, variant: Variant) -> int:
        current = self._by_id.get(variant.id)
        return current.stock if current is not None else variant.stock

    def __len__(self) -> int:
        return len(self.variants)


def normalize_api_error(exc: ApiError) -> NetworkOrServerError:
    facing = to_user_facing_error(exc)
    return NetworkOrServerError(
        facing.message,
        details=facing.details,
        trace_id=facing.trace_id,
        retryable=facing.retryable,
    )


class CatalogService:
    """Holds the current catalog snapshot and the latest search results.

    Every fetch takes a ticket; a response that comes back after a newer
    request was issued is dropped instead of overwriting fresher results.
    """

    def __init__(
        self,
        source: CatalogSource,
        *,
        refresh_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.refresh_seconds = refresh_seconds
        self.clock = clock
        self.snapshot = CatalogSnapshot()
        self.search_results: tuple[Variant, ...] = ()
        self._tickets = {"refresh": 0, "search": 0}

    def begin(self, channel: str) -> int:
        self._tickets[channel] += 1
        return self._tickets[channel]

    def is_current(self, channel: str, ticket: int) -> bool:
        return self._tickets[channel] == ticket

    def refresh(self) -> CatalogSnapshot:
        ticket = self.begin("refresh")
        variants = self._fetch("")
        return self.apply_refresh(ticket, variants)

    def apply_refresh(self, ticket: int, variants: Iterable[Variant]) -> CatalogSnapshot:
        if not self.is_current("refresh", ticket):
            logger.info("Discarding stale catalog refresh #%d", ticket)
            return self.snapshot
        self.snapshot = CatalogSnapshot.build(variants, fetched_at=self.clock())
        logger.info("Catalog snapshot replaced with %d variants", len(self.snapshot))
        return self.snapshot

    def refresh_if_stale(self) -> bool:
        fetched_at = self.snapshot.fetched_at
        if fetched_at is not None and self.clock() - fetched_at < self.refresh_seconds:
            return False
        self.refresh()
        return True

    def search(self, term: str) -> tuple[Variant, ...]:
        ticket = self.begin("search")
        if not term.strip():
            return self.apply_search(ticket, self.snapshot.variants)
        return self.apply_search(ticket, self._fetch(term.strip()))

    def apply_search(self, ticket: int, variants: Iterable[Variant]) -> tuple[Variant, ...]:
        if not self.is_current("search", ticket):
            logger.debug("Discarding stale search response #%d", ticket)
            return self.search_results
        self.search_results = tuple(variants)
        return self.search_results

    def _fetch(self, term: str) -> list[Variant]:
        try:
            return self.source.search_variants(CatalogQuery(search=term)).variants
        except ApiError as exc:
            logger.warning("Catalog fetch failed: %s", exc)
            raise normalize_api_error(exc) from exc


class CustomerDirectory:
    def __init__(self, source: CustomerSource) -> None:
        self.source = source
        self.customers: tuple[Customer, ...] = ()

    def refresh(self) -> tuple[Customer, ...]:
        try:
            self.customers = tuple(self.source.list_customers().customers)
        except ApiError as exc:
            logger.warning("Customer list fetch failed: %s", exc)
            raise normalize_api_error(exc) from exc
        return self.customers

    def get(self, customer_id: str) -> Customer | None:
        return next((customer for customer in self.customers if customer.id == customer_id), None)
