from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OrderLineRequest(CamelBaseModel):
    item_id: str
    quantity: int = Field(ge=1)
    addons: list[str] = Field(default_factory=list)


class QuoteOrderRequest(CamelBaseModel):
    lines: list[OrderLineRequest] = Field(min_length=1)


class PlaceOrderRequest(CamelBaseModel):
    customer_name: str = Field(min_length=1, max_length=255)
    lines: list[OrderLineRequest] = Field(min_length=1)


class ConfirmOrderRequest(CamelBaseModel):
    payment_id: str | None = None


class UpdateOrderStatusRequest(CamelBaseModel):
    status: str = Field(min_length=1, max_length=20)


class EditOrderRequest(CamelBaseModel):
    customer_name: str | None = Field(default=None, min_length=1, max_length=255)
    lines: list[OrderLineRequest] = Field(min_length=1)
