from __future__ import annotations

import pytest

from pachino_pos.scan_listener import InputContext, ScanListener, ScanState


def _type(listener: ScanListener, text: str, *, start: float = 0.0, gap: float = 0.01, **kwargs) -> list[str | None]:
    results = []
    at = start
    for key in [*text, "Enter"]:
        results.append(listener.feed(key, at=at, **kwargs))
        at += gap
    return results


def test_fast_burst_emits_one_scan() -> None:
    listener = ScanListener(timeout_seconds=0.1)
    scanned: list[str] = []
    listener.on_scan(scanned.append)

    results = _type(listener, "A1B2C3")

    assert scanned == ["A1B2C3"]
    assert results[-1] == "A1B2C3"
    assert listener.state is ScanState.IDLE


def test_slow_typing_emits_nothing() -> None:
    listener = ScanListener(timeout_seconds=0.1)
    scanned: list[str] = []
    listener.on_scan(scanned.append)

    _type(listener, "A1B2C3", gap=0.16)

    assert scanned == []
    assert listener.buffer == ""


def test_buffer_expires_after_idle_gap() -> None:
    listener = ScanListener(timeout_seconds=0.1)
    listener.feed("A", at=0.0)
    listener.feed("B", at=0.05)
    assert listener.state is ScanState.ACCUMULATING

    assert listener.expire(0.15) is False
    assert listener.expire(0.2) is True
    assert listener.state is ScanState.IDLE


def test_gap_after_partial_burst_starts_a_new_buffer() -> None:
    listener = ScanListener(timeout_seconds=0.1)
    listener.feed("x", at=0.0)
    results = _type(listener, "987", start=0.5)
    assert results[-1] == "987"


def test_text_input_focus_and_modals_block_scanning() -> None:
    listener = ScanListener(timeout_seconds=0.1)
    scanned: list[str] = []
    listener.on_scan(scanned.append)

    _type(listener, "A1", context=InputContext(focus_in_text_input=True))
    _type(listener, "B2", start=1.0, context=InputContext(modal_open=True))

    assert scanned == []


def test_special_keys_and_empty_enter_are_ignored() -> None:
    listener = ScanListener(timeout_seconds=0.1)
    scanned: list[str] = []
    listener.on_scan(scanned.append)

    assert listener.feed("Shift", at=0.0) is None
    assert listener.feed("Enter", at=0.01) is None
    assert scanned == []


def test_carry_over_code_is_replayed_once() -> None:
    listener = ScanListener()
    scanned: list[str] = []
    listener.on_scan(scanned.append)

    listener.set_carry_over("  BC-1 ")
    assert listener.flush_carry_over() == "BC-1"
    assert listener.flush_carry_over() is None
    assert scanned == ["BC-1"]


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ScanListener(timeout_seconds=0)
