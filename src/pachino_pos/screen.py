from __future__ import annotations

import logging
import webbrowser
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable

from pachino_client_sdk.models_catalog import Variant
from pachino_client_sdk.session import ApiSession

from .cart import CartEngine
from .cart_lines import CartLine
from .catalog import CatalogService, CustomerDirectory
from .checkout import CheckoutOptions, CheckoutOrchestrator
from .config import PosConfig
from .drafts import DraftStore
from .errors import BarcodeNotFoundError, NetworkOrServerError, PosError, ValidationError
from .messaging import WhatsAppHandoff
from .notifications import ErrorPresenter, NotificationCenter
from .printing import BluetoothPrinterTransport, PrinterTransport, ReceiptPrinter, UsbPrinterTransport
from .receipt import render_receipt_text
from .scan_listener import InputContext, ScanListener
from .storage import KeyValueStore, PosStorage
from .substitutes import SubstituteResolver
from .telemetry import TelemetryLogger

logger = logging.getLogger(__name__)


def _line_row(line: CartLine) -> dict[str, Any]:
    substitute = line.substitute_variant
    return {
        "target_id": line.target_variant.id,
        "fulfilling_id": line.fulfilling_variant_id,
        "product": line.target_variant.product.name,
        "variant": line.target_variant.label,
        "substitute": substitute.label if substitute is not None else None,
        "quantity": line.quantity,
        "unit_price": line.effective_price,
        "custom_price": line.custom_price,
        "line_total": line.line_total,
    }


def _variant_row(variant: Variant, available: int) -> dict[str, Any]:
    return {
        "id": variant.id,
        "product": variant.product.name,
        "variant": variant.label,
        "barcode": variant.barcode,
        "price": variant.unit_price,
        "available": available,
    }


@dataclass
class PosScreen:
    """The sales screen of one operator session.

    Actions never raise engine errors; they return ``{"ok": ...}`` payloads and
    push a notification, leaving state untouched on failure.
    """

    catalog: CatalogService
    customers: CustomerDirectory
    cart: CartEngine
    resolver: SubstituteResolver
    scanner: ScanListener
    drafts: DraftStore
    checkout_flow: CheckoutOrchestrator
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    presenter: ErrorPresenter = field(default_factory=ErrorPresenter)
    telemetry: TelemetryLogger | None = None
    error_message: str | None = None
    trace_id: str | None = None
    last_scan_result: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self.scanner.on_scan(self.handle_scan)

    @classmethod
    def build(
        cls,
        session: ApiSession,
        config: PosConfig,
        *,
        storage: PosStorage | None = None,
        telemetry: TelemetryLogger | None = None,
        opener: Callable[[str], object] = webbrowser.open,
        printer_transports: list[PrinterTransport] | None = None,
    ) -> "PosScreen":
        catalog = CatalogService(session.catalog_client(), refresh_seconds=config.catalog_refresh_seconds)
        storage = storage or PosStorage(KeyValueStore(base_dir=config.data_dir))

        def snapshot():
            return catalog.snapshot

        cart = CartEngine(storage, snapshot_provider=snapshot)
        drafts = DraftStore(storage)
        if printer_transports is None:
            printer_transports = []
            if config.usb_printer_device:
                printer_transports.append(UsbPrinterTransport(config.usb_printer_device))
            if config.bluetooth_printer_address:
                printer_transports.append(
                    BluetoothPrinterTransport(config.bluetooth_printer_address, config.bluetooth_printer_channel)
                )
        checkout_flow = CheckoutOrchestrator(
            cart,
            session.sales_client(),
            drafts=drafts,
            messenger=WhatsAppHandoff(
                country_code=config.phone_country_code,
                receipt_base_url=config.receipt_base_url,
                opener=opener,
            ),
            printer=ReceiptPrinter(printer_transports),
            telemetry=telemetry,
            store_name=config.store_name,
        )
        return cls(
            catalog=catalog,
            customers=CustomerDirectory(session.customers_client()),
            cart=cart,
            resolver=SubstituteResolver(cart, snapshot),
            scanner=ScanListener(timeout_seconds=config.scan_timeout_seconds),
            drafts=drafts,
            checkout_flow=checkout_flow,
            telemetry=telemetry,
        )

    # -- lifecycle ----------------------------------------------------

    def start(self, carry_over_code: str | None = None) -> dict[str, Any]:
        """Restore the persisted cart, load catalog and customers, then replay a pending scan."""
        self.cart.restore()
        try:
            self.catalog.refresh()
            self.customers.refresh()
        except PosError as exc:
            return self._fail(exc, action="start")
        conflicts = self.cart.stock_conflicts()
        if conflicts:
            self.notifications.warning(
                "Stock changed",
                f"{len(conflicts)} cart line(s) exceed the current stock",
                lines=[conflict.key.target_id for conflict in conflicts],
            )
        self.scanner.set_carry_over(carry_over_code)
        self.scanner.flush_carry_over()
        return {"ok": True, "variants": len(self.catalog.snapshot), "customers": len(self.customers.customers)}

    # -- catalog ------------------------------------------------------

    def search(self, term: str) -> dict[str, Any]:
        try:
            variants = self.catalog.search(term)
        except PosError as exc:
            return self._fail(exc, action="search")
        return {"ok": True, "rows": [_variant_row(variant, self.cart.available_stock(variant)) for variant in variants]}

    # -- cart ---------------------------------------------------------

    def add_variant(self, variant_id: str, custom_price: Decimal | str | None = None) -> dict[str, Any]:
        try:
            variant = self._variant(variant_id)
            if self.resolver.needs_substitute(variant):
                candidates = self.resolver.candidates(variant)
                if candidates:
                    return {
                        "ok": False,
                        "needs_substitute": True,
                        "target_id": variant.id,
                        "candidates": [
                            _variant_row(candidate, self.cart.available_stock(candidate)) for candidate in candidates
                        ],
                    }
        except PosError as exc:
            return self._fail(exc, action="add_variant")
        return self._add_line(variant, custom_price, action="add_variant")

    def _add_line(self, variant: Variant, custom_price: Decimal | str | None, *, action: str) -> dict[str, Any]:
        try:
            line = self.cart.add(variant, custom_price)
        except PosError as exc:
            return self._fail(exc, action=action)
        self._track("cart", "line_added", "add", variant_id=variant.id, quantity=line.quantity)
        return {"ok": True, "line": _line_row(line), "cart": self.render_cart()}

    def add_substitute(
        self,
        target_id: str,
        substitute_id: str,
        custom_price: Decimal | str | None = None,
    ) -> dict[str, Any]:
        try:
            line = self.resolver.select(self._variant(target_id), self._variant(substitute_id), custom_price)
        except PosError as exc:
            return self._fail(exc, action="add_substitute")
        self._track("cart", "substitute_added", "add_substitute", variant_id=target_id, substitute_id=substitute_id)
        return {"ok": True, "line": _line_row(line), "cart": self.render_cart()}

    def change_quantity(self, target_id: str, quantity: int, fulfilling_id: str | None = None) -> dict[str, Any]:
        try:
            line = self.cart.update_quantity(target_id, quantity, fulfilling_id)
        except PosError as exc:
            return self._fail(exc, action="change_quantity")
        return {"ok": True, "line": _line_row(line) if line is not None else None, "cart": self.render_cart()}

    def change_price(
        self,
        target_id: str,
        price: Decimal | str | None,
        fulfilling_id: str | None = None,
    ) -> dict[str, Any]:
        try:
            line = self.cart.update_price(target_id, price, fulfilling_id)
        except PosError as exc:
            return self._fail(exc, action="change_price")
        return {"ok": True, "line": _line_row(line), "cart": self.render_cart()}

    def remove_line(self, target_id: str, fulfilling_id: str | None = None) -> dict[str, Any]:
        removed = self.cart.remove(target_id, fulfilling_id)
        return {"ok": True, "removed": removed, "cart": self.render_cart()}

    def clear_cart(self) -> dict[str, Any]:
        self.cart.reset()
        return {"ok": True, "cart": self.render_cart()}

    # -- scanning -----------------------------------------------------

    def key_pressed(
        self,
        key: str,
        *,
        at: float | None = None,
        focus_in_text_input: bool = False,
        modal_open: bool = False,
    ) -> dict[str, Any] | None:
        context = InputContext(focus_in_text_input=focus_in_text_input, modal_open=modal_open)
        code = self.scanner.feed(key, at=at, context=context)
        if code is None:
            return None
        return self.last_scan_result

    def handle_scan(self, code: str) -> dict[str, Any]:
        try:
            self.catalog.refresh_if_stale()
        except PosError as exc:
            logger.warning("Scanning against the cached catalog: %s", exc)
        variant = self.catalog.snapshot.find_by_barcode(code)
        if variant is None:
            self._track("scan", "barcode_unknown", "scan", success=False)
            result = self._fail(BarcodeNotFoundError(code), action="scan")
        else:
            self._track("scan", "barcode_matched", "scan", variant_id=variant.id)
            # A scan only ever adds or increments; substitutes are picked by hand.
            result = self._add_line(variant, None, action="scan")
        self.last_scan_result = result
        return result

    # -- checkout fields ----------------------------------------------

    def select_customer(self, customer_id: str | None) -> dict[str, Any]:
        customer = None
        if customer_id:
            customer = self.customers.get(customer_id)
            if customer is None:
                return self._fail(ValidationError.single("customer_id", "unknown customer"), action="select_customer")
        fields = self.cart.select_customer(customer)
        return {"ok": True, "fields": fields.model_dump(mode="json")}

    def update_fields(
        self,
        *,
        name: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        notes: str | None = None,
        discount: Decimal | str | int | None = None,
    ) -> dict[str, Any]:
        try:
            if discount is not None:
                self.cart.set_discount(discount)
            if notes is not None:
                self.cart.set_notes(notes)
            fields = self.cart.set_customer_fields(name=name, phone=phone, address=address)
        except PosError as exc:
            return self._fail(exc, action="update_fields")
        return {"ok": True, "fields": fields.model_dump(mode="json"), "total": self.cart.total}

    # -- drafts -------------------------------------------------------

    def list_drafts(self) -> dict[str, Any]:
        rows = [
            {"id": draft.id, "name": draft.name, "total": draft.total, "lines": len(draft.lines), "timestamp": draft.timestamp}
            for draft in self.drafts.list_drafts()
        ]
        return {"ok": True, "count": len(rows), "rows": rows}

    def save_draft(self, name: str) -> dict[str, Any]:
        try:
            record = self.drafts.save(name, self.cart)
        except PosError as exc:
            return self._fail(exc, action="save_draft")
        self._track("draft", "draft_saved", "save", lines=len(record.lines))
        self.notifications.success("Draft saved", f"Saved {record.name}")
        return {"ok": True, "draft_id": record.id}

    def load_draft(self, draft_id: str) -> dict[str, Any]:
        try:
            record = self.drafts.load(draft_id, self.cart)
        except PosError as exc:
            return self._fail(exc, action="load_draft")
        conflicts = self.cart.stock_conflicts()
        if conflicts:
            self.notifications.warning(
                "Stock changed",
                f"{len(conflicts)} line(s) in {record.name} exceed the current stock",
                lines=[conflict.key.target_id for conflict in conflicts],
            )
        self._track("draft", "draft_loaded", "load", lines=len(record.lines), conflicts=len(conflicts))
        return {
            "ok": True,
            "draft_id": record.id,
            "conflicts": [
                {"target_id": c.key.target_id, "requested": c.requested, "available": c.available} for c in conflicts
            ],
            "cart": self.render_cart(),
        }

    def delete_draft(self, draft_id: str) -> dict[str, Any]:
        removed = self.drafts.delete(draft_id)
        return {"ok": True, "removed": removed}

    # -- checkout -----------------------------------------------------

    def checkout(self, *, send_message: bool = False, print_receipt: bool = False) -> dict[str, Any]:
        try:
            result = self.checkout_flow.submit(CheckoutOptions(send_message=send_message, print_receipt=print_receipt))
        except PosError as exc:
            unknown = isinstance(exc, NetworkOrServerError) and exc.outcome_unknown
            return {**self._fail(exc, action="checkout"), "not_applied": not unknown}
        self.error_message = None
        self.trace_id = None
        self.notifications.success("Sale completed", f"Invoice {result.transaction.invoice_number}")
        for effect in result.side_effects:
            if not effect.ok:
                self.notifications.warning(f"{effect.name.capitalize()} not completed", effect.detail or "")
        return {
            "ok": True,
            "transaction_id": result.transaction.id,
            "invoice_number": result.transaction.invoice_number,
            "idempotency_key": result.idempotency_key,
            "removed_draft_id": result.removed_draft_id,
            "receipt": render_receipt_text(result.receipt),
            "side_effects": [{"name": e.name, "ok": e.ok, "detail": e.detail} for e in result.side_effects],
        }

    # -- rendering ----------------------------------------------------

    def render_cart(self) -> dict[str, Any]:
        return {
            "count": len(self.cart.lines),
            "items": self.cart.item_count,
            "subtotal": self.cart.subtotal,
            "discount_amount": self.cart.discount_amount,
            "total": self.cart.total,
            "rows": [_line_row(line) for line in self.cart.lines],
        }

    def render(self) -> dict[str, Any]:
        return {
            "cart": self.render_cart(),
            "fields": self.cart.fields.model_dump(mode="json"),
            "draft_id": self.cart.draft_id,
            "checkout_state": self.checkout_flow.state.value,
            "is_submitting": self.checkout_flow.is_submitting,
            "scanner": self.scanner.state.value,
            "error": self.error_message,
            "trace_id": self.trace_id,
            "notifications": self.notifications.render(),
        }

    # -- internals ----------------------------------------------------

    def _variant(self, variant_id: str) -> Variant:
        variant = self.catalog.snapshot.get(variant_id)
        if variant is None:
            variant = next((item for item in self.catalog.search_results if item.id == variant_id), None)
        if variant is None:
            raise ValidationError.single("variant_id", f"unknown variant {variant_id}")
        return variant

    def _fail(self, exc: PosError, *, action: str) -> dict[str, Any]:
        presented = self.presenter.present(exc, action=action)
        self.error_message = presented.user_message
        self.trace_id = presented.details.get("trace_id")
        self.notifications.push(
            level="error",
            title=self.presenter.title(presented),
            message=presented.user_message,
            details=presented.details,
        )
        self._track("error", f"{action}_failed", action, success=False, error_code=presented.category)
        return {
            "ok": False,
            "error": presented.user_message,
            "category": presented.category,
            "retryable": presented.safe_to_retry,
            "trace_id": self.trace_id,
        }

    def _track(
        self,
        category: str,
        name: str,
        action: str,
        *,
        success: bool | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        if self.telemetry is None:
            return
        self.telemetry.record(
            category=category,
            name=name,
            module="screen",
            action=action,
            success=success,
            error_code=error_code,
            context=context or None,
        )
