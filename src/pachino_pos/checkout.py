from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from pachino_client_sdk.exceptions import ApiError, UnexpectedPayloadError
from pachino_client_sdk.idempotency import new_idempotency_keys
from pachino_client_sdk.models_sales import SaleCreateRequest, SaleCreateResponse, SaleItemCreate, SaleTransaction

from .cart import CartEngine
from .catalog import normalize_api_error
from .drafts import DraftStore
from .errors import CheckoutInProgressError, NetworkOrServerError, ValidationError, ValidationIssue
from .messaging import WhatsAppHandoff
from .printing import ReceiptPrinter
from .receipt import ReceiptData, build_receipt
from .telemetry import TelemetryLogger

logger = logging.getLogger(__name__)


class CheckoutState(enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SalesGateway(Protocol):
    def create_sale(self, payload: SaleCreateRequest, idempotency_key: str | None = None) -> SaleCreateResponse: ...


@dataclass(frozen=True)
class CheckoutOptions:
    send_message: bool = False
    print_receipt: bool = False


@dataclass(frozen=True)
class SideEffectOutcome:
    name: str
    ok: bool
    detail: str | None = None


@dataclass(frozen=True)
class CheckoutResult:
    transaction: SaleTransaction
    receipt: ReceiptData
    idempotency_key: str
    removed_draft_id: str | None = None
    side_effects: tuple[SideEffectOutcome, ...] = field(default_factory=tuple)


def build_sale_request(cart: CartEngine) -> SaleCreateRequest:
    """Wire body for the cart; substituted lines debit the fulfiller and name the target."""
    fields = cart.fields
    items = [
        SaleItemCreate(
            variant_id=line.fulfilling_variant_id,
            quantity=line.quantity,
            price=line.effective_price,
            substitute_from_variant_id=line.target_variant.id if line.substitute_variant is not None else None,
        )
        for line in cart.lines
    ]
    return SaleCreateRequest(
        customer_id=fields.customer_id,
        customer_name=fields.customer_name,
        customer_phone=fields.customer_phone,
        items=items,
        discount=fields.discount,
        notes=fields.notes,
    )


def _checkout_error(exc: ApiError) -> NetworkOrServerError:
    if isinstance(exc, UnexpectedPayloadError):
        return NetworkOrServerError(
            "The server reply could not be read; check the sales list before submitting again",
            details=f"{exc.code} (HTTP {exc.status_code})",
            trace_id=exc.trace_id,
            retryable=False,
            outcome_unknown=True,
        )
    return normalize_api_error(exc)


class CheckoutOrchestrator:
    def __init__(
        self,
        cart: CartEngine,
        sales: SalesGateway,
        *,
        drafts: DraftStore | None = None,
        messenger: WhatsAppHandoff | None = None,
        printer: ReceiptPrinter | None = None,
        telemetry: TelemetryLogger | None = None,
        store_name: str = "3PACHINO",
    ) -> None:
        self.cart = cart
        self.sales = sales
        self.drafts = drafts
        self.messenger = messenger
        self.printer = printer
        self.telemetry = telemetry
        self.store_name = store_name
        self.state = CheckoutState.IDLE
        self.last_error: NetworkOrServerError | None = None
        self.last_result: CheckoutResult | None = None
        # (request body, key) of the last failed submission; an identical retry reuses the key.
        self._pending: tuple[str, str] | None = None

    @property
    def is_submitting(self) -> bool:
        return self.state is CheckoutState.SUBMITTING

    def validate(self, options: CheckoutOptions) -> None:
        issues: list[ValidationIssue] = []
        if self.cart.is_empty:
            issues.append(ValidationIssue(field="cart", reason="cart is empty"))
        if options.send_message and not self.cart.fields.customer_phone.strip():
            issues.append(ValidationIssue(field="customer_phone", reason="phone number is required to send a message"))
        if issues:
            raise ValidationError(issues)

    def submit(self, options: CheckoutOptions | None = None) -> CheckoutResult:
        options = options or CheckoutOptions()
        if self.is_submitting:
            raise CheckoutInProgressError()
        self.validate(options)

        request = build_sale_request(self.cart)
        body = request.model_dump_json(by_alias=True)
        key = self._idempotency_key(body)
        lines = self.cart.lines
        fields = self.cart.fields
        draft_id = self.cart.draft_id

        self.state = CheckoutState.SUBMITTING
        started = time.monotonic()
        try:
            response = self.sales.create_sale(request, idempotency_key=key)
        except ApiError as exc:
            error = _checkout_error(exc)
            self._pending = (body, key)
            self.last_error = error
            self.state = CheckoutState.FAILED
            logger.warning("Checkout failed (trace %s): %s", error.trace_id, error.message)
            self._record(False, started, trace_id=error.trace_id, error_code=exc.code, lines=len(lines))
            raise error from exc
        else:
            self.state = CheckoutState.SUCCEEDED
        finally:
            # FAILED settles back to IDLE; the cart stays intact for a retry.
            if self.state is not CheckoutState.SUCCEEDED:
                self.state = CheckoutState.IDLE

        self._pending = None
        self.last_error = None
        transaction = response.transaction
        receipt = build_receipt(transaction, lines, fields, store_name=self.store_name)
        self.cart.reset()
        removed = draft_id if draft_id and self.drafts is not None and self.drafts.delete(draft_id) else None
        logger.info("Sale %s committed with %d lines", transaction.invoice_number, len(lines))
        self._record(True, started, lines=len(lines), draft_removed=removed is not None)

        side_effects = self._run_side_effects(options, fields.customer_phone, receipt)
        self.last_result = CheckoutResult(
            transaction=transaction,
            receipt=receipt,
            idempotency_key=key,
            removed_draft_id=removed,
            side_effects=side_effects,
        )
        return self.last_result

    def _idempotency_key(self, body: str) -> str:
        if self._pending is not None and self._pending[0] == body:
            return self._pending[1]
        return new_idempotency_keys().idempotency_key

    def _run_side_effects(self, options: CheckoutOptions, phone: str, receipt: ReceiptData) -> tuple[SideEffectOutcome, ...]:
        outcomes: list[SideEffectOutcome] = []
        if options.send_message:
            outcomes.append(self._send_message(phone, receipt))
        if options.print_receipt:
            outcomes.append(self._print(receipt))
        return tuple(outcomes)

    def _send_message(self, phone: str, receipt: ReceiptData) -> SideEffectOutcome:
        if self.messenger is None:
            return SideEffectOutcome(name="message", ok=False, detail="messaging is not configured")
        # The sale is already committed; nothing here may undo it.
        try:
            url = self.messenger.send(phone, receipt)
        except Exception as exc:
            logger.exception("Message handoff failed for invoice %s", receipt.invoice_number)
            return SideEffectOutcome(name="message", ok=False, detail=str(exc))
        return SideEffectOutcome(name="message", ok=True, detail=url)

    def _print(self, receipt: ReceiptData) -> SideEffectOutcome:
        if self.printer is None:
            return SideEffectOutcome(name="print", ok=False, detail="no printer is configured")
        try:
            outcome = self.printer.print(receipt)
        except Exception as exc:
            logger.exception("Receipt printing failed for invoice %s", receipt.invoice_number)
            return SideEffectOutcome(name="print", ok=False, detail=str(exc))
        if outcome.ok:
            return SideEffectOutcome(name="print", ok=True, detail=outcome.transport)
        return SideEffectOutcome(name="print", ok=False, detail="; ".join(outcome.errors))

    def _record(
        self,
        success: bool,
        started: float,
        *,
        trace_id: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        if self.telemetry is None:
            return
        self.telemetry.record(
            category="checkout",
            name="sale_submitted",
            module="checkout",
            action="submit",
            trace_id=trace_id,
            duration_ms=int((time.monotonic() - started) * 1000),
            success=success,
            error_code=error_code,
            context=context,
        )
