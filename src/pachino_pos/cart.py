from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable

from pachino_client_sdk.models_catalog import Variant
from pachino_client_sdk.models_customers import Customer

from .cart_lines import CartLine, DirectLine, LineKey, SubstitutedLine
from .catalog import CatalogSnapshot
from .errors import StockInsufficientError, ValidationError
from .stock_ledger import available_stock, headroom_for_line
from .storage import CartSnapshot, CheckoutFields, PosStorage, from_stored, to_stored

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class StockConflict:
    key: LineKey
    requested: int
    available: int


def coerce_price(value: Decimal | float | int | str | None, field: str = "custom_price") -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError.single(field, f"{value!r} is not a number") from exc
    if not price.is_finite() or price <= 0:
        raise ValidationError.single(field, "price must be greater than 0")
    return price


def _line_key(target_id: str, fulfilling_id: str | None) -> LineKey:
    if fulfilling_id is None or fulfilling_id == target_id:
        return LineKey(target_id, None)
    return LineKey(target_id, fulfilling_id)


class CartEngine:
    """The session's cart: lines, checkout fields and the draft it came from.

    Every mutation validates against the stock ledger before touching state,
    then writes the affected key to storage.
    """

    def __init__(
        self,
        storage: PosStorage | None = None,
        snapshot_provider: Callable[[], CatalogSnapshot] | None = None,
    ) -> None:
        self.storage = storage
        self.snapshot_provider = snapshot_provider
        self._lines: list[CartLine] = []
        self._fields = CheckoutFields()
        self._draft_id: str | None = None

    # -- state access -------------------------------------------------

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def fields(self) -> CheckoutFields:
        return self._fields

    @property
    def draft_id(self) -> str | None:
        return self._draft_id

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def find(self, target_id: str, fulfilling_id: str | None = None) -> CartLine | None:
        key = _line_key(target_id, fulfilling_id)
        return next((line for line in self._lines if line.key == key), None)

    def raw_stock(self, variant: Variant) -> int:
        if self.snapshot_provider is None:
            return variant.stock
        return self.snapshot_provider().raw_stock(variant)

    def available_stock(self, variant: Variant) -> int:
        return available_stock(self._lines, variant.id, self.raw_stock(variant))

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal("0"))

    @property
    def discount_amount(self) -> Decimal:
        return self.subtotal * self._fields.discount / HUNDRED

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount_amount

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    # -- line mutations -----------------------------------------------

    def add(self, variant: Variant, custom_price: Decimal | float | str | None = None) -> CartLine:
        price = coerce_price(custom_price)
        existing = self.find(variant.id)
        if existing is not None:
            # A price given on a repeat add replaces the line's override; None keeps it.
            line = self.update_quantity(variant.id, existing.quantity + 1)
            if price is not None:
                line = self.update_price(variant.id, price)
            return line
        line = DirectLine(variant=variant, quantity=1, custom_price=price)
        self._ensure_capacity(line.key, variant, 1)
        self._lines.append(line)
        logger.debug("Added %s to cart", variant.id)
        self._persist_cart()
        return line

    def add_substitute(
        self,
        target: Variant,
        fulfiller: Variant,
        custom_price: Decimal | float | str | None = None,
    ) -> CartLine:
        if fulfiller.id == target.id:
            return self.add(target, custom_price)
        price = coerce_price(custom_price)
        if fulfiller.owner_product_id != target.owner_product_id:
            raise ValidationError.single("fulfiller", "substitute must be a variant of the same product")
        existing = self.find(target.id, fulfiller.id)
        if existing is not None:
            return self.update_quantity(target.id, existing.quantity + 1, fulfiller.id)
        line = SubstitutedLine(target=target, fulfiller=fulfiller, quantity=1, custom_price=price)
        self._ensure_capacity(line.key, fulfiller, 1)
        self._lines.append(line)
        logger.debug("Added %s fulfilled by %s to cart", target.id, fulfiller.id)
        self._persist_cart()
        return line

    def update_quantity(self, target_id: str, new_quantity: int, fulfilling_id: str | None = None) -> CartLine | None:
        if new_quantity <= 0:
            self.remove(target_id, fulfilling_id)
            return None
        line = self._require(target_id, fulfilling_id)
        self._ensure_capacity(line.key, line.fulfilling_variant, new_quantity)
        updated = line.with_quantity(new_quantity)
        self._replace(line, updated)
        self._persist_cart()
        return updated

    def update_price(
        self,
        target_id: str,
        new_price: Decimal | float | str | None = None,
        fulfilling_id: str | None = None,
    ) -> CartLine:
        price = coerce_price(new_price)
        line = self._require(target_id, fulfilling_id)
        updated = line.with_price(price)
        self._replace(line, updated)
        self._persist_cart()
        return updated

    def remove(self, target_id: str, fulfilling_id: str | None = None) -> bool:
        key = _line_key(target_id, fulfilling_id)
        remaining = [line for line in self._lines if line.key != key]
        if len(remaining) == len(self._lines):
            return False
        self._lines = remaining
        self._persist_cart()
        return True

    def clear(self) -> None:
        self._lines = []
        self._draft_id = None
        self._persist_cart()

    def reset(self) -> None:
        """Empty the cart and the checkout fields."""
        self._fields = CheckoutFields()
        self._persist_fields()
        self.clear()

    # -- checkout fields ----------------------------------------------

    def select_customer(self, customer: Customer | None) -> CheckoutFields:
        if customer is None:
            update = {"customer_id": None}
        else:
            update = {
                "customer_id": customer.id,
                "customer_name": customer.name,
                "customer_phone": customer.phone or "",
                "customer_address": customer.address or "",
            }
        self._fields = self._fields.model_copy(update=update)
        self._persist_fields()
        return self._fields

    def set_customer_fields(
        self,
        *,
        name: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> CheckoutFields:
        update = {}
        if name is not None:
            update["customer_name"] = name
        if phone is not None:
            update["customer_phone"] = phone
        if address is not None:
            update["customer_address"] = address
        self._fields = self._fields.model_copy(update=update)
        self._persist_fields()
        return self._fields

    def set_notes(self, notes: str) -> CheckoutFields:
        self._fields = self._fields.model_copy(update={"notes": notes})
        self._persist_fields()
        return self._fields

    def set_discount(self, percent: Decimal | float | int | str) -> CheckoutFields:
        try:
            value = Decimal(str(percent))
        except InvalidOperation as exc:
            raise ValidationError.single("discount", f"{percent!r} is not a number") from exc
        if not value.is_finite() or value < 0 or value > HUNDRED:
            raise ValidationError.single("discount", "discount must be between 0 and 100")
        self._fields = self._fields.model_copy(update={"discount": value})
        self._persist_fields()
        return self._fields

    # -- wholesale state ----------------------------------------------

    def replace_state(
        self,
        lines: Iterable[CartLine],
        fields: CheckoutFields,
        draft_id: str | None = None,
    ) -> None:
        """Overwrite the cart with ``lines`` and ``fields``; nothing is merged."""
        self._lines = self._dedupe(lines)
        self._fields = fields
        self._draft_id = draft_id
        self._persist_fields()
        self._persist_cart()

    def stock_conflicts(self) -> list[StockConflict]:
        """Lines whose quantity no longer fits the current catalog stock."""
        conflicts: list[StockConflict] = []
        for line in self._lines:
            headroom = headroom_for_line(self._lines, line.key, self.raw_stock(line.fulfilling_variant))
            if line.quantity > headroom:
                conflicts.append(StockConflict(key=line.key, requested=line.quantity, available=max(headroom, 0)))
        return conflicts

    def snapshot(self) -> tuple[CartSnapshot, CheckoutFields]:
        return (
            CartSnapshot(lines=[to_stored(line) for line in self._lines], draft_id=self._draft_id),
            self._fields,
        )

    def restore(self) -> None:
        if self.storage is None:
            return
        cart = self.storage.load_cart()
        self._lines = self._dedupe(from_stored(stored) for stored in cart.lines)
        self._draft_id = cart.draft_id
        self._fields = self.storage.load_fields()
        logger.info("Restored cart with %d lines", len(self._lines))

    # -- internals ----------------------------------------------------

    def _require(self, target_id: str, fulfilling_id: str | None) -> CartLine:
        line = self.find(target_id, fulfilling_id)
        if line is None:
            raise ValidationError.single("line", f"variant {target_id} is not in the cart")
        return line

    def _ensure_capacity(self, key: LineKey, fulfiller: Variant, quantity: int) -> None:
        headroom = headroom_for_line(self._lines, key, self.raw_stock(fulfiller))
        if quantity > headroom:
            raise StockInsufficientError(fulfiller.id, quantity, max(headroom, 0))

    def _replace(self, old: CartLine, new: CartLine) -> None:
        self._lines = [new if line.key == old.key else line for line in self._lines]

    @staticmethod
    def _dedupe(lines: Iterable[CartLine]) -> list[CartLine]:
        seen: dict[LineKey, CartLine] = {}
        for line in lines:
            seen.setdefault(line.key, line)
        return list(seen.values())

    def _persist_cart(self) -> None:
        if self.storage is None:
            return
        snapshot, _ = self.snapshot()
        self.storage.save_cart(snapshot)

    def _persist_fields(self) -> None:
        if self.storage is None:
            return
        self.storage.save_fields(self._fields)
