from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Customer(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str
    phone: str | None = None
    address: str | None = None
    contact: str | None = None


class CustomerListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    customers: list[Customer] = Field(default_factory=list)
