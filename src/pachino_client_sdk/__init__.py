from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    TransportError,
    UnauthorizedError,
    UnexpectedPayloadError,
    ValidationError,
)
from .http_client import HttpClient
from .idempotency import IdempotencyKeys, new_idempotency_keys, resolve_idempotency_keys
from .models_catalog import CatalogQuery, CatalogResponse, ColorRef, NamedRef, ProductRef, Variant
from .models_customers import Customer, CustomerListResponse
from .models_sales import (
    SaleCreateRequest,
    SaleCreateResponse,
    SaleItemCreate,
    SaleTransaction,
    TransactionItem,
)
from .session import ApiSession
from .tracing import TraceContext
from .ui_errors import UserFacingError, to_user_facing_error

__all__ = [
    "ApiError",
    "ApiSession",
    "CatalogQuery",
    "CatalogResponse",
    "ClientConfig",
    "ColorRef",
    "ConfigError",
    "ConflictError",
    "Customer",
    "CustomerListResponse",
    "ForbiddenError",
    "HttpClient",
    "IdempotencyKeys",
    "NamedRef",
    "NotFoundError",
    "ProductRef",
    "SaleCreateRequest",
    "SaleCreateResponse",
    "SaleItemCreate",
    "SaleTransaction",
    "ServerError",
    "TraceContext",
    "TransactionItem",
    "TransportError",
    "UnauthorizedError",
    "UnexpectedPayloadError",
    "UserFacingError",
    "ValidationError",
    "Variant",
    "load_config",
    "new_idempotency_keys",
    "resolve_idempotency_keys",
    "to_user_facing_error",
]
