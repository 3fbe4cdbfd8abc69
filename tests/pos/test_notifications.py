from __future__ import annotations

from pachino_pos.errors import (
    BarcodeNotFoundError,
    NetworkOrServerError,
    StockInsufficientError,
    ValidationError,
)
from pachino_pos.notifications import ErrorPresenter, NotificationCenter


def test_presenter_categories() -> None:
    presenter = ErrorPresenter()

    stock = presenter.present(StockInsufficientError("v-1", 6, 5), action="add_variant")
    assert stock.category == "stock"
    assert stock.details["available"] == 5
    assert presenter.title(stock) == "Not enough stock"

    invalid = presenter.present(ValidationError.single("discount", "too high"), action="update_fields")
    assert invalid.category == "validation"
    assert invalid.user_message == "discount: too high"
    assert invalid.details["issues"] == [{"field": "discount", "reason": "too high"}]

    network = presenter.present(NetworkOrServerError("down", trace_id="t-1"), action="checkout")
    assert network.category == "transport"
    assert network.safe_to_retry is True
    assert network.details["trace_id"] == "t-1"

    assert presenter.present(BarcodeNotFoundError("ZZZ"), action="scan").safe_to_retry is False


def test_notification_center_render_and_clear() -> None:
    center = NotificationCenter()
    center.success("Sale completed", "Invoice INV-1")
    center.push(level="error", title="Unknown barcode", message="No product", details={"action": "scan"})

    rendered = center.render()
    assert rendered["count"] == 2
    assert rendered["messages"][0]["level"] == "success"
    assert rendered["messages"][1]["details"] == {"action": "scan"}

    center.clear()
    assert center.render()["count"] == 0
