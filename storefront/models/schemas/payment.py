# models/schemas/payment.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from storefront.models.enums import PaymentStatus, ReconciliationResult
from .base import TimestampModel


class PaymentNotification(BaseModel):
    """Payment outcome pushed by the payment provider"""

    order_id: str = Field(validation_alias=AliasChoices("orderId", "order_id"), min_length=1)
    status: str = Field(examples=["approved"])
    transaction_id: str = Field(
        validation_alias=AliasChoices("transactionId", "transaction_id"),
        min_length=1,
        max_length=255,
    )
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    payment_method: Optional[str] = Field(
        default=None,
        max_length=50,
        validation_alias=AliasChoices("paymentMethod", "payment_method"),
    )


class PaymentResponse(TimestampModel):
    id: str
    payment_method: str
    transaction_id: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    payment_date: Optional[datetime]


class WebhookAck(BaseModel):
    message: str = "Webhook processed successfully"
    result: Optional[ReconciliationResult] = None
