from __future__ import annotations

from decimal import Decimal

from pachino_client_sdk.models_sales import SaleTransaction
from pachino_pos.cart import CartEngine
from pachino_pos.receipt import build_receipt, format_rupiah, render_receipt_text


def _transaction() -> SaleTransaction:
    return SaleTransaction.model_validate(
        {
            "id": "txn-1",
            "invoiceNumber": "INV-20240101-0001",
            "transactionDate": "2024-01-01T10:30:00Z",
            "totalAmount": 243000,
        }
    )


def test_format_rupiah_groups_thousands() -> None:
    assert format_rupiah(Decimal("1500000")) == "Rp 1.500.000"
    assert format_rupiah(Decimal("999.5")) == "Rp 1.000"
    assert format_rupiah(Decimal("0")) == "Rp 0"


def test_build_receipt_from_cart(variant_factory) -> None:
    medium = variant_factory("v-m", size="M", stock=0, price="150000")
    small = variant_factory("v-s", size="S", stock=3, price="150000")
    cart = CartEngine()
    cart.add_substitute(medium, small)
    cart.add(variant_factory("v-t", product_name="Canvas Tote Bag Extra Large Edition", price="120000"))
    cart.set_discount(10)
    cart.set_customer_fields(name="Ayu")
    cart.set_notes("gift wrap")

    receipt = build_receipt(_transaction(), cart.lines, cart.fields, store_name="3PACHINO")

    assert receipt.invoice_number == "INV-20240101-0001"
    assert receipt.date == "01/01/2024 10:30"
    assert receipt.subtotal == Decimal("270000")
    assert receipt.discount_amount == Decimal("27000")
    assert receipt.total_amount == Decimal("243000")
    assert receipt.items[0].variant == "S • Navy (for M)"
    assert receipt.customer_name == "Ayu"


def test_render_receipt_text_layout(variant_factory) -> None:
    cart = CartEngine()
    cart.add(variant_factory("v-t", product_name="Canvas Tote Bag Extra Large Edition", price="120000"))
    cart.add(variant_factory("v-t", product_name="Canvas Tote Bag Extra Large Edition", price="120000"))

    text = render_receipt_text(build_receipt(_transaction(), cart.lines, cart.fields))
    rows = text.splitlines()

    assert rows[0] == "3PACHINO".center(32).rstrip()
    assert "Invoice: INV-20240101-0001" in rows
    assert "Canvas Tote Bag E..." in rows
    assert "  2 x Rp 120.000      Rp 240.000" in rows
    assert "TOTAL: Rp 243.000".rjust(32) in rows
    assert all(len(row) <= 32 for row in rows)
    assert not any(row.strip().startswith("Discount") for row in rows)
