"""Available-stock arithmetic over the cart.

Reservations are always counted by *fulfilling* variant: a size S handed over
in place of an M reserves S, never M.
"""

from __future__ import annotations

from typing import Iterable

from .cart_lines import CartLine, LineKey


def reserved_quantity(lines: Iterable[CartLine], variant_id: str, *, exclude: LineKey | None = None) -> int:
    return sum(
        line.quantity
        for line in lines
        if line.fulfilling_variant_id == variant_id and line.key != exclude
    )


def available_stock(lines: Iterable[CartLine], variant_id: str, raw_stock: int) -> int:
    return raw_stock - reserved_quantity(lines, variant_id)


def headroom_for_line(lines: Iterable[CartLine], key: LineKey, raw_stock: int) -> int:
    """Largest quantity the line identified by ``key`` may hold.

    This is the raw stock of the line's fulfilling variant minus whatever the
    *other* lines already reserve from it, so a line can be edited up to its
    own ceiling without its current reservation counting against it.
    """
    return raw_stock - reserved_quantity(lines, key.fulfilling_id, exclude=key)


def can_hold(lines: Iterable[CartLine], key: LineKey, raw_stock: int, quantity: int) -> bool:
    return quantity <= headroom_for_line(lines, key, raw_stock)
