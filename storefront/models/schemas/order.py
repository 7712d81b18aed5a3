# models/schemas/order.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from storefront.config import ORDER_ITEM_MAX_QUANTITY
from storefront.models.enums import OrderStatus, PaymentStatus
from .base import TimestampModel
from .payment import PaymentResponse


class CustomerInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(alias="fullName", min_length=1, max_length=255, examples=["Jane Doe"])
    email: EmailStr = Field(examples=["jane@example.com"])
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None


class OrderItemCreate(BaseModel):
    product_id: str = Field(
        validation_alias=AliasChoices("productId", "product_id", "id"),
        min_length=1,
        title="Catalog product id",
    )
    name: Optional[str] = Field(default=None, max_length=255)
    variety: Optional[str] = Field(default=None, max_length=255)
    quantity: int = Field(gt=0, le=ORDER_ITEM_MAX_QUANTITY, examples=[2])
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2, examples=["100.00"])


class OrderCreate(BaseModel):
    """Request model for creating an order.

    ``total`` is optional; the order total is always computed from the items
    and a client total that disagrees with it is rejected.
    """

    customer_info: CustomerInfo = Field(
        validation_alias=AliasChoices("customerInfo", "customer_info")
    )
    items: List[OrderItemCreate]
    delivery_method: Optional[str] = Field(
        default=None,
        max_length=50,
        validation_alias=AliasChoices("deliveryMethod", "delivery_method"),
    )
    payment_method: Optional[str] = Field(
        default=None,
        max_length=50,
        validation_alias=AliasChoices("paymentMethod", "payment_method"),
    )
    total: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: str = Field(examples=[OrderStatus.CONFIRMED.value])
    notes: Optional[str] = None


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    product_id: str
    product_name: str
    variety: Optional[str]
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    created_at: datetime


class OrderResponse(TimestampModel):
    id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]
    customer_address: Optional[str]
    delivery_method: Optional[str]
    payment_method: Optional[str]
    payment_status: PaymentStatus
    transaction_id: Optional[str]
    total_amount: Decimal
    status: OrderStatus
    notes: Optional[str]
    items: List[OrderItemResponse]
    payments: List[PaymentResponse] = []


class OrderCreatedResponse(BaseModel):
    message: str = "Order created successfully"
    order: OrderResponse
