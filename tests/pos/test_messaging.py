from __future__ import annotations

from decimal import Decimal
from urllib.parse import unquote

import pytest

from pachino_pos.errors import ValidationError
from pachino_pos.messaging import (
    WhatsAppHandoff,
    build_whatsapp_url,
    compose_receipt_message,
    normalize_phone,
    receipt_url,
)
from pachino_pos.receipt import ReceiptData, ReceiptItem


def _receipt(discount: str = "0") -> ReceiptData:
    return ReceiptData(
        invoice_number="INV-1",
        date="01/01/2024 10:30",
        items=(ReceiptItem("Linen Shirt", "M • Navy", 2, Decimal("100000"), Decimal("200000")),),
        subtotal=Decimal("200000"),
        discount_percent=Decimal(discount),
        discount_amount=Decimal("200000") * Decimal(discount) / 100,
        total_amount=Decimal("200000") - Decimal("200000") * Decimal(discount) / 100,
        transaction_id="txn-1",
        customer_name="Ayu",
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0812-3456-789", "628123456789"),
        ("+62 812 3456", "628123456"),
        ("8123456", "628123456"),
    ],
)
def test_normalize_phone(raw: str, expected: str) -> None:
    assert normalize_phone(raw) == expected


def test_normalize_phone_rejects_empty() -> None:
    with pytest.raises(ValidationError):
        normalize_phone(" - ")


def test_compose_message_lists_items_and_totals() -> None:
    message = compose_receipt_message(_receipt("10"), "https://shop.example.com/sales/txn-1")
    assert "Invoice: INV-1" in message
    assert "Customer: Ayu" in message
    assert "- Linen Shirt (2x) M • Navy" in message
    assert "Discount: 10% (-Rp 20.000)" in message
    assert "Total: Rp 180.000" in message
    assert "Full receipt: https://shop.example.com/sales/txn-1" in message


def test_receipt_url_requires_base_and_id() -> None:
    assert receipt_url(None, "txn-1") is None
    assert receipt_url("https://shop.example.com/", "txn-1") == "https://shop.example.com/sales/txn-1"


def test_build_whatsapp_url_encodes_text() -> None:
    url = build_whatsapp_url("62812", "Total: Rp 1.000\nThanks & bye")
    assert url.startswith("https://wa.me/62812?text=")
    assert "\n" not in url and " " not in url and "&" not in url.split("text=")[1]
    assert unquote(url.split("text=")[1]) == "Total: Rp 1.000\nThanks & bye"


def test_handoff_opens_the_deep_link() -> None:
    opened: list[str] = []
    handoff = WhatsAppHandoff(receipt_base_url="https://shop.example.com", opener=opened.append)

    url = handoff.send("0812 3456", _receipt())

    assert opened == [url]
    text = unquote(url.split("text=")[1])
    assert url.startswith("https://wa.me/628123456?")
    assert "https://shop.example.com/sales/txn-1" in text
