from __future__ import annotations

from dataclasses import dataclass


class PosError(RuntimeError):
    """Base class for failures the POS screen reports back to the operator."""

    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StockInsufficientError(PosError):
    def __init__(self, variant_id: str, requested: int, available: int) -> None:
        super().__init__(f"Insufficient stock for variant {variant_id}: requested {requested}, available {available}")
        self.variant_id = variant_id
        self.requested = requested
        self.available = available


class BarcodeNotFoundError(PosError):
    def __init__(self, code: str) -> None:
        super().__init__(f"No product matches barcode {code!r}")
        self.code = code


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    reason: str


class ValidationError(PosError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    @classmethod
    def single(cls, field: str, reason: str) -> "ValidationError":
        return cls([ValidationIssue(field=field, reason=reason)])

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        return "; ".join(f"{issue.field}: {issue.reason}" for issue in self.issues)


class DraftNotFoundError(PosError):
    def __init__(self, draft_id: str) -> None:
        super().__init__(f"Draft {draft_id!r} does not exist")
        self.draft_id = draft_id


class CheckoutInProgressError(PosError):
    def __init__(self) -> None:
        super().__init__("A checkout is already being submitted")


class NetworkOrServerError(PosError):
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        details: str | None = None,
        trace_id: str | None = None,
        retryable: bool = True,
        outcome_unknown: bool = False,
    ) -> None:
        super().__init__(message)
        self.details = details
        self.trace_id = trace_id
        self.retryable = retryable
        # The server may have applied the request even though the reply was unusable.
        self.outcome_unknown = outcome_unknown


class PrinterError(PosError):
    pass
