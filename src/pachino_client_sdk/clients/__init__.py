from .base import BaseClient
from .catalog_client import CatalogClient
from .customers_client import CustomersClient
from .sales_client import SalesClient

__all__ = ["BaseClient", "CatalogClient", "CustomersClient", "SalesClient"]
