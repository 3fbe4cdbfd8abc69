from __future__ import annotations

from dataclasses import dataclass

from .clients.catalog_client import CatalogClient
from .clients.customers_client import CustomersClient
from .clients.sales_client import SalesClient
from .config import ClientConfig
from .http_client import HttpClient
from .tracing import TraceContext


@dataclass
class ApiSession:
    config: ClientConfig
    trace: TraceContext | None = None
    token: str | None = None
    session_cookie: str | None = None
    http: HttpClient | None = None

    def __post_init__(self) -> None:
        self.trace = self.trace or TraceContext()
        # One pooled HTTP client per session so the GET cache is shared across endpoint clients.
        self.http = self.http or HttpClient(config=self.config, trace=self.trace)

    def catalog_client(self) -> CatalogClient:
        return CatalogClient(http=self.http, access_token=self.token, session_cookie=self.session_cookie)

    def customers_client(self) -> CustomersClient:
        return CustomersClient(http=self.http, access_token=self.token, session_cookie=self.session_cookie)

    def sales_client(self) -> SalesClient:
        return SalesClient(http=self.http, access_token=self.token, session_cookie=self.session_cookie)
