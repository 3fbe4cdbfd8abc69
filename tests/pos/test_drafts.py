from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from pachino_pos.cart import CartEngine
from pachino_pos.drafts import DraftStore
from pachino_pos.errors import DraftNotFoundError, ValidationError

START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def _clock(step: timedelta = timedelta(minutes=1)):
    moments = iter(START + step * index for index in range(100))
    return lambda: next(moments)


def test_save_requires_name_and_lines(storage) -> None:
    drafts = DraftStore(storage, clock=_clock())
    with pytest.raises(ValidationError) as excinfo:
        drafts.save("  ", CartEngine())
    assert {issue.field for issue in excinfo.value.issues} == {"name", "cart"}
    assert drafts.list_drafts() == []


def test_save_list_load_delete(storage, variant_factory) -> None:
    drafts = DraftStore(storage, clock=_clock())
    cart = CartEngine(storage)
    cart.add(variant_factory("v-x", price="100000"))
    cart.set_discount(10)
    first = drafts.save("Table 1", cart)
    cart.add(variant_factory("v-x", price="100000"))
    second = drafts.save("Table 2", cart)

    assert first.total == 90000
    assert [draft.name for draft in drafts.list_drafts()] == ["Table 2", "Table 1"]

    cart.reset()
    loaded = drafts.load(first.id, cart)
    assert loaded.id == first.id
    assert cart.draft_id == first.id
    assert cart.lines[0].quantity == 1
    assert cart.fields.discount == 10

    assert drafts.delete(second.id) is True
    assert drafts.delete(second.id) is False
    assert [draft.id for draft in drafts.list_drafts()] == [first.id]


def test_ids_are_time_based_and_unique(storage, variant_factory) -> None:
    drafts = DraftStore(storage, clock=lambda: START)
    cart = CartEngine()
    cart.add(variant_factory("v-x"))

    first = drafts.save("A", cart)
    second = drafts.save("B", cart)

    millis = int(START.timestamp() * 1000)
    assert first.id == f"draft-{millis}"
    assert second.id == f"draft-{millis + 1}"


def test_load_unknown_draft(storage) -> None:
    with pytest.raises(DraftNotFoundError):
        DraftStore(storage).load("draft-404", CartEngine())
