from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator

from pachino_client_sdk.models_sales import SaleTransaction

from .cart_lines import CartLine
from .storage import CheckoutFields

RECEIPT_WIDTH = 32


@dataclass(frozen=True)
class ReceiptItem:
    name: str
    variant: str | None
    quantity: int
    price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class ReceiptData:
    invoice_number: str
    date: str
    items: tuple[ReceiptItem, ...]
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    transaction_id: str | None = None
    customer_name: str | None = None
    notes: str | None = None
    store_name: str = "3PACHINO"


@dataclass(frozen=True)
class ReceiptRow:
    text: str
    align: str = "left"
    bold: bool = False


def format_rupiah(amount: Decimal) -> str:
    rounded = int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    grouped = f"{abs(rounded):,}".replace(",", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}Rp {grouped}"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _receipt_item(line: CartLine) -> ReceiptItem:
    fulfiller = line.fulfilling_variant
    variant_text = fulfiller.label
    if line.substitute_variant is not None:
        variant_text = f"{variant_text} (for {line.target_variant.size.name})"
    return ReceiptItem(
        name=fulfiller.product.name,
        variant=variant_text,
        quantity=line.quantity,
        price=line.effective_price,
        subtotal=line.line_total,
    )


def build_receipt(
    transaction: SaleTransaction,
    lines: Iterable[CartLine],
    fields: CheckoutFields,
    *,
    store_name: str = "3PACHINO",
) -> ReceiptData:
    items = tuple(_receipt_item(line) for line in lines)
    subtotal = sum((item.subtotal for item in items), Decimal("0"))
    discount_amount = subtotal * fields.discount / Decimal("100")
    issued = transaction.issued_at or datetime.now()
    total = transaction.total_amount if transaction.total_amount is not None else subtotal - discount_amount
    return ReceiptData(
        invoice_number=transaction.invoice_number,
        date=issued.strftime("%d/%m/%Y %H:%M"),
        items=items,
        subtotal=subtotal,
        discount_percent=fields.discount,
        discount_amount=discount_amount,
        total_amount=total,
        transaction_id=transaction.id,
        customer_name=fields.customer_name or None,
        notes=fields.notes or None,
        store_name=store_name,
    )


def receipt_rows(data: ReceiptData, width: int = RECEIPT_WIDTH) -> Iterator[ReceiptRow]:
    rule = "=" * width
    yield ReceiptRow(data.store_name, align="center", bold=True)
    yield ReceiptRow("Fashion Store", align="center")
    yield ReceiptRow("", align="center")
    yield ReceiptRow(rule)
    yield ReceiptRow(f"Invoice: {data.invoice_number}", bold=True)
    yield ReceiptRow(f"Date: {data.date}")
    if data.customer_name:
        yield ReceiptRow(f"Customer: {data.customer_name}")
    yield ReceiptRow(rule)
    yield ReceiptRow("Item".ljust(width - 11) + "Qty   Total", bold=True)
    yield ReceiptRow("-" * width)
    for item in data.items:
        yield ReceiptRow(_truncate(item.name, width - 12))
        if item.variant:
            yield ReceiptRow(_truncate(f"  {item.variant}", width))
        left = f"  {item.quantity} x {format_rupiah(item.price)}"
        right = format_rupiah(item.subtotal)
        yield ReceiptRow(left + " " * max(1, width - len(left) - len(right)) + right)
    yield ReceiptRow(rule)
    if data.discount_amount:
        yield ReceiptRow(f"Subtotal: {format_rupiah(data.subtotal)}", align="right")
        yield ReceiptRow(
            f"Discount {data.discount_percent.normalize():f}%: -{format_rupiah(data.discount_amount)}",
            align="right",
        )
    yield ReceiptRow(f"TOTAL: {format_rupiah(data.total_amount)}", align="right", bold=True)
    yield ReceiptRow(rule)
    if data.notes:
        yield ReceiptRow("Notes:")
        yield ReceiptRow(data.notes)
        yield ReceiptRow("-" * width)
    yield ReceiptRow("Thank you", align="center")
    yield ReceiptRow("for shopping with us", align="center")


def render_receipt_text(data: ReceiptData, width: int = RECEIPT_WIDTH) -> str:
    rendered = []
    for row in receipt_rows(data, width):
        if row.align == "center":
            rendered.append(row.text.center(width).rstrip())
        elif row.align == "right":
            rendered.append(row.text.rjust(width))
        else:
            rendered.append(row.text)
    return "\n".join(rendered)
