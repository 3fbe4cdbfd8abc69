from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable

from pachino_client_sdk.models_catalog import Variant

from .cart import CartEngine
from .cart_lines import CartLine
from .catalog import CatalogSnapshot
from .errors import ValidationError

logger = logging.getLogger(__name__)


def is_substitute_for(target: Variant, candidate: Variant) -> bool:
    return (
        candidate.id != target.id
        and candidate.owner_product_id == target.owner_product_id
        and candidate.color.name == target.color.name
        and candidate.size.name != target.size.name
    )


class SubstituteResolver:
    """Offers other sizes of the same product and color when a variant runs out."""

    def __init__(self, cart: CartEngine, snapshot_provider: Callable[[], CatalogSnapshot]) -> None:
        self.cart = cart
        self.snapshot_provider = snapshot_provider

    def needs_substitute(self, target: Variant) -> bool:
        return self.cart.available_stock(target) < 1

    def candidates(self, target: Variant) -> list[Variant]:
        return [
            variant
            for variant in self.snapshot_provider().variants
            if is_substitute_for(target, variant) and self.cart.available_stock(variant) > 0
        ]

    def select(
        self,
        target: Variant,
        candidate: Variant,
        custom_price: Decimal | float | str | None = None,
    ) -> CartLine:
        if not is_substitute_for(target, candidate):
            raise ValidationError.single(
                "substitute",
                f"{candidate.label} cannot stand in for {target.label}",
            )
        line = self.cart.add_substitute(target, candidate, custom_price)
        logger.info("Variant %s fulfilled by %s (qty %d)", target.id, candidate.id, line.quantity)
        return line
