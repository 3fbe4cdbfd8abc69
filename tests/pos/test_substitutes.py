from __future__ import annotations

import pytest

from pachino_pos.cart import CartEngine
from pachino_pos.catalog import CatalogSnapshot
from pachino_pos.errors import StockInsufficientError, ValidationError
from pachino_pos.substitutes import SubstituteResolver, is_substitute_for


@pytest.fixture
def catalog(variant_factory):
    return CatalogSnapshot.build(
        [
            variant_factory("v-m", size="M", color="Navy", stock=0),
            variant_factory("v-s", size="S", color="Navy", stock=3),
            variant_factory("v-l", size="L", color="Navy", stock=0),
            variant_factory("v-s-red", size="S", color="Red", stock=4),
            variant_factory("v-other", product_id="prod-2", size="S", color="Navy", stock=9),
        ]
    )


def _resolver(catalog: CatalogSnapshot) -> SubstituteResolver:
    cart = CartEngine(snapshot_provider=lambda: catalog)
    return SubstituteResolver(cart, lambda: catalog)


def test_resolver_lists_same_color_sizes_in_stock(catalog) -> None:
    resolver = _resolver(catalog)
    target = catalog.get("v-m")

    assert resolver.needs_substitute(target) is True
    assert [variant.id for variant in resolver.candidates(target)] == ["v-s"]


def test_substitution_is_capped_by_the_fulfiller_stock(catalog) -> None:
    resolver = _resolver(catalog)
    target = catalog.get("v-m")
    small = catalog.get("v-s")

    resolver.select(target, small)
    line = resolver.select(target, small)
    assert len(resolver.cart.lines) == 1
    assert line.key == ("v-m", "v-s")
    assert line.quantity == 2

    assert resolver.select(target, small).quantity == 3
    with pytest.raises(StockInsufficientError):
        resolver.select(target, small)
    assert resolver.cart.lines[0].quantity == 3
    assert resolver.candidates(target) == []


def test_select_rejects_other_colors(catalog) -> None:
    resolver = _resolver(catalog)
    with pytest.raises(ValidationError):
        resolver.select(catalog.get("v-m"), catalog.get("v-s-red"))
    assert resolver.cart.is_empty


def test_is_substitute_for_requires_a_different_size(catalog) -> None:
    medium = catalog.get("v-m")
    assert is_substitute_for(medium, medium) is False
    assert is_substitute_for(medium, catalog.get("v-other")) is False
    assert is_substitute_for(medium, catalog.get("v-l")) is True
