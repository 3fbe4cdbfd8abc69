"""Barcode scanner input decoding.

A USB/Bluetooth scanner types the code as a burst of keystrokes and finishes
with Enter. Keystrokes are accumulated while they keep arriving within
``timeout_seconds`` of each other; a longer gap discards the buffer, so slow
human typing never reaches Enter with a buffer to emit.

The timeout is a heuristic: a fast enough typist can still produce a scan.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

ENTER_KEYS = frozenset({"Enter", "\r", "\n"})

ScanHandler = Callable[[str], None]


class ScanState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


@dataclass(frozen=True)
class InputContext:
    focus_in_text_input: bool = False
    modal_open: bool = False

    @property
    def blocks_scanning(self) -> bool:
        return self.focus_in_text_input or self.modal_open


class ScanListener:
    def __init__(self, timeout_seconds: float = 0.1, clock: Callable[[], float] = time.monotonic) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than 0")
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.active = True
        self.buffer = ""
        self._last_key_at: float | None = None
        self._handlers: list[ScanHandler] = []
        self._carry_over: str | None = None

    @property
    def state(self) -> ScanState:
        return ScanState.ACCUMULATING if self.buffer else ScanState.IDLE

    def on_scan(self, handler: ScanHandler) -> ScanHandler:
        self._handlers.append(handler)
        return handler

    def feed(self, key: str, at: float | None = None, context: InputContext | None = None) -> str | None:
        """Process one keystroke; returns the emitted code when ``key`` completes a scan."""
        if not self.active or (context is not None and context.blocks_scanning):
            return None
        now = self.clock() if at is None else at
        self.expire(now)

        if key in ENTER_KEYS:
            code = self.buffer.strip()
            self.reset()
            if not code:
                return None
            self._emit(code)
            return code

        if len(key) != 1 or not key.isprintable():
            return None
        self.buffer += key
        self._last_key_at = now
        return None

    def expire(self, now: float | None = None) -> bool:
        if not self.buffer or self._last_key_at is None:
            return False
        current = self.clock() if now is None else now
        if current - self._last_key_at <= self.timeout_seconds:
            return False
        logger.debug("Discarding %d buffered keystrokes after inactivity", len(self.buffer))
        self.reset()
        return True

    def reset(self) -> None:
        self.buffer = ""
        self._last_key_at = None

    def set_carry_over(self, code: str | None) -> None:
        """Queue a code handed over from elsewhere (e.g. another screen)."""
        self._carry_over = code.strip() if code and code.strip() else None

    def flush_carry_over(self) -> str | None:
        code, self._carry_over = self._carry_over, None
        if code is None:
            return None
        self._emit(code)
        return code

    def _emit(self, code: str) -> None:
        logger.info("Barcode scanned: %s", code)
        for handler in list(self._handlers):
            handler(code)
