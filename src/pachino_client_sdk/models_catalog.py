from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel, frozen=True)


class NamedRef(CatalogModel):
    name: str


class ColorRef(CatalogModel):
    name: str
    hex_code: str | None = None


class ProductRef(CatalogModel):
    id: str
    name: str
    sku: str | None = None
    selling_price: Decimal = Decimal("0")
    category: NamedRef | None = None
    brand: NamedRef | None = None


class Variant(CatalogModel):
    """One sellable size/color combination and its on-hand stock."""

    id: str
    product_id: str | None = None
    product: ProductRef
    size: NamedRef
    color: ColorRef
    stock: int = 0
    barcode: str | None = None
    selling_price: Decimal | None = None

    @property
    def owner_product_id(self) -> str:
        return self.product_id or self.product.id

    @property
    def unit_price(self) -> Decimal:
        if self.selling_price is not None:
            return self.selling_price
        return self.product.selling_price

    @property
    def label(self) -> str:
        return f"{self.size.name} • {self.color.name}"


class CatalogQuery(BaseModel):
    model_config = ConfigDict(extra="allow")

    search: str = ""


class CatalogResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    variants: list[Variant] = Field(default_factory=list)
