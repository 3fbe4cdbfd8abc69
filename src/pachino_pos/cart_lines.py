"""Cart line types.

A line is either fulfilled by the variant the customer asked for
(:class:`DirectLine`) or by another size of the same product and color
(:class:`SubstitutedLine`). Both expose the same read-only surface so the
engine never has to branch on which one it holds.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import NamedTuple, Union

from pachino_client_sdk.models_catalog import Variant


class LineKey(NamedTuple):
    target_id: str
    substitute_id: str | None = None

    @property
    def fulfilling_id(self) -> str:
        return self.substitute_id or self.target_id


@dataclass(frozen=True)
class DirectLine:
    variant: Variant
    quantity: int
    custom_price: Decimal | None = None

    @property
    def key(self) -> LineKey:
        return LineKey(self.variant.id, None)

    @property
    def target_variant(self) -> Variant:
        return self.variant

    @property
    def fulfilling_variant(self) -> Variant:
        return self.variant

    @property
    def substitute_variant(self) -> Variant | None:
        return None

    @property
    def fulfilling_variant_id(self) -> str:
        return self.variant.id

    @property
    def effective_price(self) -> Decimal:
        if self.custom_price is not None:
            return self.custom_price
        return self.variant.unit_price

    @property
    def line_total(self) -> Decimal:
        return self.effective_price * self.quantity

    def with_quantity(self, quantity: int) -> "DirectLine":
        return replace(self, quantity=quantity)

    def with_price(self, price: Decimal | None) -> "DirectLine":
        return replace(self, custom_price=price)


@dataclass(frozen=True)
class SubstitutedLine:
    target: Variant
    fulfiller: Variant
    quantity: int
    custom_price: Decimal | None = None

    @property
    def key(self) -> LineKey:
        return LineKey(self.target.id, self.fulfiller.id)

    @property
    def target_variant(self) -> Variant:
        return self.target

    @property
    def fulfilling_variant(self) -> Variant:
        return self.fulfiller

    @property
    def substitute_variant(self) -> Variant | None:
        return self.fulfiller

    @property
    def fulfilling_variant_id(self) -> str:
        return self.fulfiller.id

    @property
    def effective_price(self) -> Decimal:
        # The customer pays for what they ordered, not for the size handed over.
        if self.custom_price is not None:
            return self.custom_price
        return self.target.unit_price

    @property
    def line_total(self) -> Decimal:
        return self.effective_price * self.quantity

    def with_quantity(self, quantity: int) -> "SubstitutedLine":
        return replace(self, quantity=quantity)

    def with_price(self, price: Decimal | None) -> "SubstitutedLine":
        return replace(self, custom_price=price)


CartLine = Union[DirectLine, SubstitutedLine]


def make_line(
    target: Variant,
    quantity: int,
    *,
    fulfiller: Variant | None = None,
    custom_price: Decimal | None = None,
) -> CartLine:
    if fulfiller is None or fulfiller.id == target.id:
        return DirectLine(variant=target, quantity=quantity, custom_price=custom_price)
    return SubstitutedLine(target=target, fulfiller=fulfiller, quantity=quantity, custom_price=custom_price)
