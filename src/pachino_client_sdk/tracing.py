from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Mapping

TRACE_HEADER = "X-Trace-ID"
# Hosting proxies in front of the web app stamp their own request id.
_RESPONSE_TRACE_HEADERS = ("x-trace-id", "x-request-id")


@dataclass
class TraceContext:
    """One trace id per register session; the server may replace it."""

    trace_id: str | None = None

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = f"pos-{uuid.uuid4().hex}"
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        lowered = {key.lower(): value for key, value in headers.items()}
        for key in _RESPONSE_TRACE_HEADERS:
            if lowered.get(key):
                self.trace_id = lowered[key]
                return
