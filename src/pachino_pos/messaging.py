from __future__ import annotations

import logging
import re
import webbrowser
from typing import Callable
from urllib.parse import quote

from .errors import ValidationError
from .receipt import ReceiptData, format_rupiah

logger = logging.getLogger(__name__)

WHATSAPP_URL = "https://wa.me/{phone}?text={text}"
_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: str, country_code: str = "62") -> str:
    digits = _NON_DIGITS.sub("", phone or "")
    if not digits:
        raise ValidationError.single("customer_phone", "phone number is required")
    if digits.startswith("0"):
        return country_code + digits[1:]
    if not digits.startswith(country_code):
        return country_code + digits
    return digits


def receipt_url(base_url: str | None, transaction_id: str | None) -> str | None:
    if not base_url or not transaction_id:
        return None
    return f"{base_url.rstrip('/')}/sales/{transaction_id}"


def compose_receipt_message(receipt: ReceiptData, link: str | None = None) -> str:
    lines = [
        f"Hello! Thank you for shopping at {receipt.store_name}!",
        "",
        f"Invoice: {receipt.invoice_number}",
        f"Date: {receipt.date}",
    ]
    if receipt.customer_name:
        lines.append(f"Customer: {receipt.customer_name}")
    lines += ["", "Items:"]
    for item in receipt.items:
        variant = f" {item.variant}" if item.variant else ""
        lines.append(f"- {item.name} ({item.quantity}x){variant}")
        lines.append(f"  @{format_rupiah(item.price)} = {format_rupiah(item.subtotal)}")
    lines += ["", f"Subtotal: {format_rupiah(receipt.subtotal)}"]
    if receipt.discount_amount:
        lines.append(
            f"Discount: {receipt.discount_percent.normalize():f}% (-{format_rupiah(receipt.discount_amount)})"
        )
    lines.append(f"Total: {format_rupiah(receipt.total_amount)}")
    if link:
        lines += ["", f"Full receipt: {link}"]
    lines += ["", f"Thank you for shopping at {receipt.store_name}!"]
    return "\n".join(lines)


def build_whatsapp_url(phone: str, message: str) -> str:
    return WHATSAPP_URL.format(phone=phone, text=quote(message, safe=""))


class WhatsAppHandoff:
    """Opens a prefilled chat; the operator still presses send, so delivery is never confirmed."""

    def __init__(
        self,
        *,
        country_code: str = "62",
        receipt_base_url: str | None = None,
        opener: Callable[[str], object] = webbrowser.open,
    ) -> None:
        self.country_code = country_code
        self.receipt_base_url = receipt_base_url
        self.opener = opener

    def send(self, phone: str, receipt: ReceiptData) -> str:
        number = normalize_phone(phone, self.country_code)
        message = compose_receipt_message(receipt, receipt_url(self.receipt_base_url, receipt.transaction_id))
        url = build_whatsapp_url(number, message)
        self.opener(url)
        logger.info("Opened message handoff for invoice %s", receipt.invoice_number)
        return url
