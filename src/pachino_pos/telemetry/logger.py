from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, TextIO

from .events import TelemetryEvent, build_event

logger = logging.getLogger(__name__)


class TelemetryLogger:
    """Appends events as JSON lines; a no-op unless PACHINO_TELEMETRY_ENABLED is set."""

    def __init__(
        self,
        *,
        app_name: str = "pachino-pos",
        enabled: bool | None = None,
        log_file: str | Path | None = None,
        stdout_sink: bool = False,
        stdout_stream: TextIO | None = None,
    ) -> None:
        self.app_name = app_name
        self.enabled = enabled if enabled is not None else _env_telemetry_enabled()
        self.log_file = Path(log_file) if log_file else Path("artifacts") / "telemetry" / f"{app_name}.jsonl"
        self.stdout_sink = stdout_sink
        self.stdout_stream = stdout_stream

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False

        payload = event.to_dict()
        payload["app_name"] = self.app_name
        line = json.dumps(payload, sort_keys=True, default=str)

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as fp:
                fp.write(f"{line}\n")
        except OSError as exc:
            logger.warning("Telemetry event %s not written to %s: %s", event.name, self.log_file, exc)
            return False

        if self.stdout_sink:
            stream = self.stdout_stream or sys.stdout
            stream.write(f"{line}\n")
            stream.flush()

        return True

    def record(self, *, category: str, name: str, module: str, action: str, **fields: Any) -> bool:
        if not self.enabled:
            return False
        return self.emit(build_event(category=category, name=name, module=module, action=action, **fields))


def _env_telemetry_enabled() -> bool:
    value = os.getenv("PACHINO_TELEMETRY_ENABLED", "0").strip().lower()
    return value in {"1", "true", "yes", "on"}
