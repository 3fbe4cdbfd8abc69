from .cart import CartEngine, StockConflict
from .cart_lines import CartLine, DirectLine, LineKey, SubstitutedLine
from .catalog import CatalogService, CatalogSnapshot, CustomerDirectory
from .checkout import CheckoutOptions, CheckoutOrchestrator, CheckoutResult, CheckoutState, build_sale_request
from .config import PosConfig, load_pos_config
from .drafts import DraftStore
from .errors import (
    BarcodeNotFoundError,
    CheckoutInProgressError,
    DraftNotFoundError,
    NetworkOrServerError,
    PosError,
    PrinterError,
    StockInsufficientError,
    ValidationError,
    ValidationIssue,
)
from .scan_listener import InputContext, ScanListener, ScanState
from .screen import PosScreen
from .storage import KeyValueStore, PosStorage
from .substitutes import SubstituteResolver

__all__ = [
    "BarcodeNotFoundError",
    "CartEngine",
    "CartLine",
    "CatalogService",
    "CatalogSnapshot",
    "CheckoutInProgressError",
    "CheckoutOptions",
    "CheckoutOrchestrator",
    "CheckoutResult",
    "CheckoutState",
    "CustomerDirectory",
    "DirectLine",
    "DraftNotFoundError",
    "DraftStore",
    "InputContext",
    "KeyValueStore",
    "LineKey",
    "NetworkOrServerError",
    "PosConfig",
    "PosError",
    "PosScreen",
    "PosStorage",
    "PrinterError",
    "ScanListener",
    "ScanState",
    "StockConflict",
    "StockInsufficientError",
    "SubstituteResolver",
    "SubstitutedLine",
    "ValidationError",
    "ValidationIssue",
    "build_sale_request",
    "load_pos_config",
]
