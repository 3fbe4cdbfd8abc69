from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from pachino_client_sdk.config import ConfigError, read_float, read_int, validate


@dataclass(frozen=True)
class PosConfig:
    scan_timeout_seconds: float = 0.1
    catalog_refresh_seconds: float = 300.0
    data_dir: Path | None = None
    phone_country_code: str = "62"
    receipt_base_url: str | None = None
    store_name: str = "3PACHINO"
    usb_printer_device: str | None = None
    bluetooth_printer_address: str | None = None
    bluetooth_printer_channel: int = 1


def load_pos_config(env_file: str | None = None) -> PosConfig:
    load_dotenv(env_file)

    scan_timeout_ms = read_float("PACHINO_SCAN_TIMEOUT_MS", "100")
    validate(scan_timeout_ms > 0, f"Invalid PACHINO_SCAN_TIMEOUT_MS: expected > 0, got {scan_timeout_ms}")

    refresh_seconds = read_float("PACHINO_CATALOG_REFRESH_SECONDS", "300")
    validate(
        refresh_seconds >= 0,
        f"Invalid PACHINO_CATALOG_REFRESH_SECONDS: expected >= 0, got {refresh_seconds}",
    )

    country_code = (os.getenv("PACHINO_PHONE_COUNTRY_CODE") or "62").strip()
    if not country_code.isdigit():
        raise ConfigError(f"Invalid PACHINO_PHONE_COUNTRY_CODE: expected digits, got {country_code!r}")

    channel = read_int("PACHINO_BT_PRINTER_CHANNEL", "1")
    validate(1 <= channel <= 30, f"Invalid PACHINO_BT_PRINTER_CHANNEL: expected 1..30, got {channel}")

    data_dir = (os.getenv("PACHINO_DATA_DIR") or "").strip()
    receipt_base_url = (os.getenv("PACHINO_RECEIPT_BASE_URL") or "").strip()

    return PosConfig(
        scan_timeout_seconds=scan_timeout_ms / 1000.0,
        catalog_refresh_seconds=refresh_seconds,
        data_dir=Path(data_dir).expanduser() if data_dir else None,
        phone_country_code=country_code,
        receipt_base_url=receipt_base_url.rstrip("/") or None,
        store_name=(os.getenv("PACHINO_STORE_NAME") or "3PACHINO").strip(),
        usb_printer_device=(os.getenv("PACHINO_USB_PRINTER_DEVICE") or "").strip() or None,
        bluetooth_printer_address=(os.getenv("PACHINO_BT_PRINTER_ADDRESS") or "").strip() or None,
        bluetooth_printer_channel=channel,
    )
