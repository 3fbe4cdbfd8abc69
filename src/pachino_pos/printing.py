"""ESC/POS receipt printing over a USB device node or a Bluetooth RFCOMM socket.

Printing happens after a sale is committed; :class:`ReceiptPrinter` therefore
reports failures as an outcome instead of raising.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Protocol

from .errors import PrinterError
from .receipt import RECEIPT_WIDTH, ReceiptData, receipt_rows

logger = logging.getLogger(__name__)

ESC = b"\x1b"
GS = b"\x1d"
_ALIGN = {"left": 0, "center": 1, "right": 2}


class EscPosEncoder:
    def __init__(self, codepage: str = "cp437") -> None:
        self.codepage = codepage
        self._buffer = bytearray()

    def initialize(self) -> "EscPosEncoder":
        self._buffer += ESC + b"@"
        return self

    def align(self, value: str) -> "EscPosEncoder":
        self._buffer += ESC + b"a" + bytes([_ALIGN[value]])
        return self

    def bold(self, enabled: bool) -> "EscPosEncoder":
        self._buffer += ESC + b"E" + bytes([1 if enabled else 0])
        return self

    def line(self, text: str) -> "EscPosEncoder":
        self._buffer += text.encode(self.codepage, errors="replace") + b"\n"
        return self

    def newline(self, count: int = 1) -> "EscPosEncoder":
        self._buffer += b"\n" * count
        return self

    def cut(self, partial: bool = True) -> "EscPosEncoder":
        self._buffer += GS + b"V" + bytes([1 if partial else 0])
        return self

    def encode(self) -> bytes:
        return bytes(self._buffer)


def encode_receipt(data: ReceiptData, width: int = RECEIPT_WIDTH) -> bytes:
    encoder = EscPosEncoder().initialize()
    for row in receipt_rows(data, width):
        encoder.align(row.align).bold(row.bold).line(row.text)
    return encoder.bold(False).align("left").newline(3).cut().encode()


class PrinterTransport(Protocol):
    name: str

    def is_supported(self) -> bool: ...

    def connect(self) -> None: ...

    def print_receipt(self, data: ReceiptData) -> None: ...

    def disconnect(self) -> None: ...


class UsbPrinterTransport:
    """Thermal printer exposed as a character device, e.g. ``/dev/usb/lp0``."""

    name = "usb"

    def __init__(self, device_path: str | Path) -> None:
        self.device_path = Path(device_path)
        self._handle: BinaryIO | None = None

    def is_supported(self) -> bool:
        return True

    @property
    def connected(self) -> bool:
        return self._handle is not None

    def connect(self) -> None:
        if self._handle is not None:
            return
        try:
            self._handle = open(self.device_path, "wb", buffering=0)
        except OSError as exc:
            raise PrinterError(f"USB printer {self.device_path} is not available: {exc}") from exc

    def print_receipt(self, data: ReceiptData) -> None:
        if self._handle is None:
            raise PrinterError("USB printer is not connected")
        try:
            self._handle.write(encode_receipt(data))
            self._handle.flush()
        except OSError as exc:
            self.disconnect()
            raise PrinterError(f"USB print failed: {exc}") from exc

    def disconnect(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            try:
                handle.close()
            except OSError as exc:
                logger.debug("Ignoring close error on %s: %s", self.device_path, exc)


class BluetoothPrinterTransport:
    """Bluetooth thermal printer reached over RFCOMM (Linux sockets)."""

    name = "bluetooth"

    def __init__(self, address: str, channel: int = 1, timeout_seconds: float = 10.0) -> None:
        self.address = address
        self.channel = channel
        self.timeout_seconds = timeout_seconds
        self._sock: socket.socket | None = None

    def is_supported(self) -> bool:
        return hasattr(socket, "AF_BLUETOOTH") and hasattr(socket, "BTPROTO_RFCOMM")

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> None:
        if self._sock is not None:
            return
        if not self.is_supported():
            raise PrinterError("Bluetooth sockets are not supported on this platform")
        sock = socket.socket(socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM)
        sock.settimeout(self.timeout_seconds)
        try:
            sock.connect((self.address, self.channel))
        except OSError as exc:
            sock.close()
            raise PrinterError(f"Bluetooth printer {self.address} is not reachable: {exc}") from exc
        self._sock = sock

    def print_receipt(self, data: ReceiptData) -> None:
        if self._sock is None:
            raise PrinterError("Bluetooth printer is not connected")
        try:
            self._sock.sendall(encode_receipt(data))
        except OSError as exc:
            self.disconnect()
            raise PrinterError(f"Bluetooth print failed: {exc}") from exc

    def disconnect(self) -> None:
        if self._sock is not None:
            sock, self._sock = self._sock, None
            sock.close()


@dataclass(frozen=True)
class PrintOutcome:
    ok: bool
    transport: str | None = None
    errors: tuple[str, ...] = ()


@dataclass
class ReceiptPrinter:
    transports: list[PrinterTransport] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return any(transport.is_supported() for transport in self.transports)

    def print(self, data: ReceiptData) -> PrintOutcome:
        errors: list[str] = []
        for transport in self.transports:
            if not transport.is_supported():
                continue
            try:
                transport.connect()
                transport.print_receipt(data)
            except PrinterError as exc:
                logger.warning("Receipt %s not printed via %s: %s", data.invoice_number, transport.name, exc)
                errors.append(f"{transport.name}: {exc.message}")
                continue
            logger.info("Receipt %s printed via %s", data.invoice_number, transport.name)
            return PrintOutcome(ok=True, transport=transport.name, errors=tuple(errors))
        if not errors:
            errors.append("no printer transport is available")
        return PrintOutcome(ok=False, errors=tuple(errors))
