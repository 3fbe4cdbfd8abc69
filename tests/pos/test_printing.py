from __future__ import annotations

from decimal import Decimal

import pytest

from pachino_pos.errors import PrinterError
from pachino_pos.printing import (
    BluetoothPrinterTransport,
    EscPosEncoder,
    ReceiptPrinter,
    UsbPrinterTransport,
    encode_receipt,
)
from pachino_pos.receipt import ReceiptData, ReceiptItem


def _receipt() -> ReceiptData:
    return ReceiptData(
        invoice_number="INV-1",
        date="01/01/2024 10:30",
        items=(ReceiptItem("Linen Shirt", "M • Navy", 1, Decimal("100000"), Decimal("100000")),),
        subtotal=Decimal("100000"),
        discount_percent=Decimal("0"),
        discount_amount=Decimal("0"),
        total_amount=Decimal("100000"),
    )


def test_encoder_commands() -> None:
    data = EscPosEncoder().initialize().align("center").bold(True).line("HI").cut(partial=False).encode()
    assert data == b"\x1b@" + b"\x1ba\x01" + b"\x1bE\x01" + b"HI\n" + b"\x1dV\x00"


def test_encode_receipt_frames_rows() -> None:
    data = encode_receipt(_receipt())
    assert data.startswith(b"\x1b@")
    assert data.endswith(b"\x1dV\x01")
    assert b"TOTAL: Rp 100.000" in data
    assert b"M ? Navy" in data


def test_usb_transport_writes_to_device(tmp_path) -> None:
    device = tmp_path / "lp0"
    printer = ReceiptPrinter([UsbPrinterTransport(device)])

    outcome = printer.print(_receipt())

    assert outcome.ok is True
    assert outcome.transport == "usb"
    assert device.read_bytes() == encode_receipt(_receipt())


def test_print_without_connect_fails(tmp_path) -> None:
    with pytest.raises(PrinterError):
        UsbPrinterTransport(tmp_path / "lp0").print_receipt(_receipt())


def test_printer_falls_through_failing_transports(tmp_path) -> None:
    device = tmp_path / "lp1"
    printer = ReceiptPrinter([UsbPrinterTransport(tmp_path / "missing" / "lp0"), UsbPrinterTransport(device)])

    outcome = printer.print(_receipt())

    assert outcome.ok is True
    assert len(outcome.errors) == 1
    assert device.exists()


def test_printer_reports_when_nothing_is_available(monkeypatch: pytest.MonkeyPatch) -> None:
    bluetooth = BluetoothPrinterTransport("00:11:22:33:44:55")
    monkeypatch.setattr(bluetooth, "is_supported", lambda: False)

    outcome = ReceiptPrinter([bluetooth]).print(_receipt())

    assert outcome.ok is False
    assert outcome.errors == ("no printer transport is available",)
    with pytest.raises(PrinterError):
        bluetooth.connect()
