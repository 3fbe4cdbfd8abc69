from __future__ import annotations

import io
import json

import pytest

from pachino_pos.telemetry import TelemetryLogger, build_event


def test_build_event_validates_category() -> None:
    with pytest.raises(ValueError):
        build_event(category="navigation", name="n", module="screen", action="a")


@pytest.mark.parametrize("key", ["customer_phone", "Phone", "address", "customer_name"])
def test_build_event_blocks_customer_details(key: str) -> None:
    with pytest.raises(ValueError):
        build_event(category="checkout", name="sale_submitted", module="checkout", action="submit", context={key: "x"})


def test_logger_writes_jsonl_and_stdout(tmp_path) -> None:
    stream = io.StringIO()
    telemetry = TelemetryLogger(
        app_name="pachino-pos",
        enabled=True,
        log_file=tmp_path / "telemetry.jsonl",
        stdout_sink=True,
        stdout_stream=stream,
    )

    assert telemetry.record(category="cart", name="line_added", module="screen", action="add", context={"quantity": 2})

    payload = json.loads((tmp_path / "telemetry.jsonl").read_text().strip())
    assert payload["category"] == "cart"
    assert payload["context"] == {"quantity": 2}
    assert payload["app_name"] == "pachino-pos"
    assert "line_added" in stream.getvalue()


def test_logger_is_disabled_by_default(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PACHINO_TELEMETRY_ENABLED", raising=False)
    telemetry = TelemetryLogger(log_file=tmp_path / "telemetry.jsonl")

    assert telemetry.record(category="scan", name="barcode_matched", module="screen", action="scan") is False
    assert not (tmp_path / "telemetry.jsonl").exists()


def test_logger_env_toggle(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PACHINO_TELEMETRY_ENABLED", "yes")
    assert TelemetryLogger().enabled is True


@pytest.mark.parametrize("key", ["buyer_name", "delivery_address", "session_cookie"])
def test_build_event_blocks_keys_containing_customer_words(key: str) -> None:
    with pytest.raises(ValueError):
        build_event(category="cart", name="line_added", module="screen", action="add", context={key: "x"})


def test_build_event_accepts_ids_and_counters_only() -> None:
    event = build_event(
        category="draft",
        name="draft_loaded",
        module="screen",
        action="load",
        context={"variant_id": "v-1", "lines": 2, "draft_removed": True},
    )
    assert event.to_dict()["context"] == {"variant_id": "v-1", "lines": 2, "draft_removed": True}

    with pytest.raises(ValueError):
        build_event(category="cart", name="line_added", module="screen", action="add", context={"lines": [{"id": 1}]})
