from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str
    amount: str


class MenuItemResponse(BaseModel):
    itemId: str
    name: str
    category: str
    description: str | None = None
    priceMoney: MoneyResponse
    isAvailable: bool


class AddonPriceResponse(BaseModel):
    name: str
    unitPrice: MoneyResponse


class FreeAddonPolicyResponse(BaseModel):
    itemName: str
    freeDrinks: list[str] = Field(default_factory=list)
    freeSauces: list[str] = Field(default_factory=list)


class MenuResponse(BaseModel):
    menuVersion: int
    currency: str
    items: list[MenuItemResponse] = Field(default_factory=list)
    addons: list[AddonPriceResponse] = Field(default_factory=list)
    freeAddonPolicies: list[FreeAddonPolicyResponse] = Field(default_factory=list)
    updatedAt: datetime


class PricedLineResponse(BaseModel):
    itemId: str
    name: str
    quantity: int
    addons: list[str] = Field(default_factory=list)
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    freeAddonsApplied: list[str] = Field(default_factory=list)


class PricingErrorResponse(BaseModel):
    lineIndex: int | None = None
    kind: str
    key: str
    message: str


class QuoteResponse(BaseModel):
    lines: list[PricedLineResponse] = Field(default_factory=list)
    errors: list[PricingErrorResponse] = Field(default_factory=list)
    total: MoneyResponse
    chargeable: bool


class OrderResponse(BaseModel):
    orderId: str
    customerName: str
    status: str
    lines: list[PricedLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    createdAt: datetime
    confirmedAt: datetime | None = None
    completedAt: datetime | None = None
    paymentId: str | None = None


class StockDeductionResponse(BaseModel):
    stockItemName: str
    location: str
    units: int


class StockClampResponse(BaseModel):
    stockItemName: str
    location: str
    requested: int
    available: int


class StockApplicationResponse(BaseModel):
    applied: bool
    deductions: list[StockDeductionResponse] = Field(default_factory=list)
    clamped: list[StockClampResponse] = Field(default_factory=list)
    missing: list[StockDeductionResponse] = Field(default_factory=list)
    lowStock: list[str] = Field(default_factory=list)


class ConfirmOrderResponse(BaseModel):
    order: OrderResponse
    stock: StockApplicationResponse


class StockItemResponse(BaseModel):
    stockItemId: str
    name: str
    category: str | None = None
    location: str
    quantity: int
    lowStockThreshold: int
    isLowStock: bool


class StockListResponse(BaseModel):
    location: str
    items: list[StockItemResponse] = Field(default_factory=list)
