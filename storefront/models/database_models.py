from datetime import datetime

import cuid2
import pytz
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    NUMERIC,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

from .enums import OrderStatus, PaymentStatus


Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")

Money = NUMERIC(10, 2)


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


def _enum(enum_cls):
    return SQLEnum(
        enum_cls,
        values_callable=lambda obj: [e.value for e in obj],
        native_enum=False,
        validate_strings=True,
        length=20,
    )


class TimestampMixin:
    """Mixin for adding timestamp fields to models"""

    created_at = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


class Product(TimestampMixin, Base):
    """Catalog product. Deactivated instead of deleted."""

    __tablename__ = "products"

    id = Column(String, primary_key=True, default=cuid2.cuid_wrapper())
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    price = Column(Money, nullable=False)
    varieties = Column(JSONType, nullable=False, default=list)
    images = Column(JSONType, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (CheckConstraint("price >= 0", name="ck_products_price_non_negative"),)


class Order(TimestampMixin, Base):
    """Order aggregate root: customer details, totals and payment state"""

    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=cuid2.cuid_wrapper())

    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(20), nullable=True)
    customer_address = Column(Text, nullable=True)

    delivery_method = Column(String(50), nullable=True)
    payment_method = Column(String(50), nullable=True)
    payment_status = Column(_enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    transaction_id = Column(String(255), nullable=True, unique=True)

    total_amount = Column(Money, nullable=False)
    status = Column(_enum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)
    notes = Column(Text, nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.position",
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Payment.created_at",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        Index("ix_orders_created_at", "created_at"),
    )


class OrderItem(Base):
    """Line item. Product data is copied so later catalog changes do not alter history."""

    __tablename__ = "order_items"

    id = Column(String, primary_key=True, default=cuid2.cuid_wrapper())
    order_id = Column(
        String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    # Soft reference: no foreign key to products
    product_id = Column(String, nullable=False)
    product_name = Column(String(255), nullable=False)
    variety = Column(String(255), nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False)
    subtotal = Column(Money, nullable=False)

    created_at = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
    )


class Payment(TimestampMixin, Base):
    """Payment record created by reconciliation. transaction_id is unique."""

    __tablename__ = "payments"

    id = Column(String, primary_key=True, default=cuid2.cuid_wrapper())
    order_id = Column(
        String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )

    payment_method = Column(String(50), nullable=False)
    transaction_id = Column(String(255), nullable=False, unique=True)
    amount = Column(Money, nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(_enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    gateway_response = Column(JSONType, nullable=True)

    order = relationship("Order", back_populates="payments")
