from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import (
    BarcodeNotFoundError,
    CheckoutInProgressError,
    DraftNotFoundError,
    NetworkOrServerError,
    PosError,
    PrinterError,
    StockInsufficientError,
    ValidationError,
)


@dataclass
class NotificationCenter:
    messages: list[dict[str, Any]] = field(default_factory=list)

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "level": level,
            "title": title,
            "message": message,
            "details": details or {},
        }
        self.messages.append(payload)
        return payload

    def success(self, title: str, message: str, **details: Any) -> dict[str, Any]:
        return self.push(level="success", title=title, message=message, details=details)

    def warning(self, title: str, message: str, **details: Any) -> dict[str, Any]:
        return self.push(level="warning", title=title, message=message, details=details)

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {"count": len(self.messages), "messages": list(self.messages)}


@dataclass(frozen=True)
class PresentedError:
    category: str
    user_message: str
    safe_to_retry: bool
    details: dict[str, Any]


class ErrorPresenter:
    """Maps engine failures to consistent operator-facing payloads."""

    _CATEGORY_TITLES = {
        "stock": "Not enough stock",
        "barcode": "Unknown barcode",
        "validation": "Check the form",
        "not_found": "Not found",
        "conflict": "Please wait",
        "transport": "Connection problem",
        "printer": "Printer problem",
        "unknown": "Something went wrong",
    }

    def present(self, error: PosError, *, action: str) -> PresentedError:
        category = self._categorize(error)
        technical: dict[str, Any] = {
            "action": action,
            "error_type": type(error).__name__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if isinstance(error, StockInsufficientError):
            technical.update(variant_id=error.variant_id, requested=error.requested, available=error.available)
        elif isinstance(error, ValidationError):
            technical["issues"] = [{"field": issue.field, "reason": issue.reason} for issue in error.issues]
        elif isinstance(error, NetworkOrServerError):
            technical.update(trace_id=error.trace_id, raw_details=error.details, outcome_unknown=error.outcome_unknown)
        return PresentedError(
            category=category,
            user_message=error.message,
            safe_to_retry=error.retryable,
            details=technical,
        )

    def title(self, presented: PresentedError) -> str:
        return self._CATEGORY_TITLES[presented.category]

    @staticmethod
    def _categorize(error: PosError) -> str:
        if isinstance(error, StockInsufficientError):
            return "stock"
        if isinstance(error, BarcodeNotFoundError):
            return "barcode"
        if isinstance(error, ValidationError):
            return "validation"
        if isinstance(error, DraftNotFoundError):
            return "not_found"
        if isinstance(error, CheckoutInProgressError):
            return "conflict"
        if isinstance(error, NetworkOrServerError):
            return "transport"
        if isinstance(error, PrinterError):
            return "printer"
        return "unknown"
