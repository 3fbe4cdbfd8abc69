from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SalesModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)


class SaleItemCreate(SalesModel):
    # variant_id is the physical variant debited; substitute_from_variant_id is what was asked for.
    variant_id: str
    quantity: int = Field(ge=1)
    price: Decimal
    substitute_from_variant_id: str | None = None


class SaleCreateRequest(SalesModel):
    customer_id: str | None = None
    customer_name: str = ""
    customer_phone: str = ""
    items: list[SaleItemCreate]
    discount: Decimal = Decimal("0")
    notes: str = ""


class TransactionVariantRef(SalesModel):
    id: str | None = None
    size: dict | None = None
    color: dict | None = None
    product: dict | None = None


class TransactionItem(SalesModel):
    id: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    quantity: int = 0
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    variant: TransactionVariantRef | None = None


class TransactionParty(SalesModel):
    id: str | None = None
    name: str | None = None
    phone: str | None = None


class SaleTransaction(SalesModel):
    id: str
    invoice_number: str
    transaction_date: datetime | None = None
    created_at: datetime | None = None
    total_amount: Decimal | None = None
    notes: str | None = None
    supplier: TransactionParty | None = None
    items: list[TransactionItem] = Field(default_factory=list)

    @property
    def issued_at(self) -> datetime | None:
        return self.transaction_date or self.created_at


class SaleCreateResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str | None = None
    transaction: SaleTransaction
