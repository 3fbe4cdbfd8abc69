from __future__ import annotations

from dataclasses import dataclass

from ..models_customers import CustomerListResponse
from .base import BaseClient


@dataclass
class CustomersClient(BaseClient):
    def list_customers(self) -> CustomerListResponse:
        data = self._request("GET", "/api/customers", module="customers", operation="list_customers")
        return self._parse(data, CustomerListResponse, what="customer list")
