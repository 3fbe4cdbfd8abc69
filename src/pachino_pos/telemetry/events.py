from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

TELEMETRY_CATEGORIES = {"cart", "scan", "draft", "checkout", "printing", "messaging", "error"}
# Any key containing one of these words is refused: customer_phone, buyer_name, ...
_PII_WORDS = {"name", "phone", "address", "email", "notes", "token", "authorization", "cookie"}
_SCALARS = (str, int, float, bool)


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    module: str
    action: str
    timestamp_utc: str
    trace_id: str | None = None
    duration_ms: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def _check_context(context: dict[str, Any]) -> None:
    illegal = sorted(key for key in context if _PII_WORDS.intersection(key.lower().split("_")))
    if illegal:
        raise ValueError(f"Customer details are not allowed in telemetry context: {illegal}")
    # Only ids and counters; nested values could carry a whole cart or customer record.
    nested = sorted(key for key, value in context.items() if value is not None and not isinstance(value, _SCALARS))
    if nested:
        raise ValueError(f"Telemetry context values must be scalars: {nested}")


def build_event(
    *,
    category: str,
    name: str,
    module: str,
    action: str,
    trace_id: str | None = None,
    duration_ms: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    if category not in TELEMETRY_CATEGORIES:
        raise ValueError(f"Unsupported telemetry category: {category}")
    if context:
        _check_context(context)
    return TelemetryEvent(
        category=category,
        name=name,
        module=module,
        action=action,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        trace_id=trace_id,
        duration_ms=duration_ms,
        success=success,
        error_code=error_code,
        context=context or None,
    )
