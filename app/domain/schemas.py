# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Literal
from decimal import Decimal
from datetime import datetime

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]


class ProductOut(BaseModel):
    """Schema dla produktu (response)."""

    id: int
    name: str
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    price: Decimal
    stock: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, ge=1, description="Ilość produktu (musi być >= 1)")


class QuantityIn(BaseModel):
    quantity: int = Field(..., ge=1, description="Nowa ilość (musi być >= 1)")


class CartLineOut(BaseModel):
    """Schema dla pozycji w koszyku (response)."""

    id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    line_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    user_id: str
    items: List[CartLineOut]
    total: Decimal


class CartCountOut(BaseModel):
    count: int


class ShippingIn(BaseModel):
    """Dane wysylki. Imie, telefon, adres i miasto sa wymagane."""

    customer_name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=30)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    district: str | None = Field(None, max_length=100)
    ward: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("customer_name", "phone", "address", "city")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Vui lòng điền đầy đủ thông tin giao hàng")
        return v


class CheckoutIn(ShippingIn):
    idempotency_key: str | None = Field(None, min_length=1, max_length=64)


class OrderItemOut(BaseModel):
    id: int
    product_id: int | None
    name: str
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: str
    status: str
    total: Decimal
    customer_name: str
    phone: str
    address: str
    city: str
    district: str | None = None
    ward: str | None = None
    notes: str | None = None
    created_at: datetime
    items: List[OrderItemOut]


class StatusIn(BaseModel):
    status: OrderStatus


class StatsOut(BaseModel):
    total_revenue: Decimal
    total_orders: int
    pending_orders: int
    completed_orders: int


class RevenueByDayOut(BaseModel):
    date: str
    revenue: Decimal


class BestSellerOut(BaseModel):
    name: str
    total_sold: int
    revenue: Decimal


class StatusCountOut(BaseModel):
    status: str
    count: int


class ReportOut(BaseModel):
    stats: StatsOut
    revenue_by_day: List[RevenueByDayOut]
    best_sellers: List[BestSellerOut]
    orders_by_status: List[StatusCountOut]


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class ChatIn(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
