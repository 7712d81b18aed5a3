# services/order.py
from typing import List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from storefront.config import ORDER_ITEM_MAX_QUANTITY, ORDERS_DEFAULT_LIMIT
from storefront.models.database_models import Order, OrderItem
from storefront.models.enums import OrderStatus, PaymentStatus
from storefront.models.schemas.order import OrderCreate
from storefront.utils.common import to_money, validate_pagination
from storefront.utils.exceptions import NotFoundError, ValidationError
from storefront.utils.logging import get_logger

from .base import BaseService
from .product import ProductService
from .status import parse_status

logger = get_logger(__name__)


class OrderService(BaseService[Order]):
    async def create(self, data: OrderCreate) -> Order:
        """
        Create an order and its items in a single transaction

        data: OrderCreate
            - customer_info: CustomerInfo (email is required)
            - items: List[OrderItemCreate] (at least one)
            - delivery_method, payment_method, notes: Optional[str]
            - total: Optional[Decimal], must match the computed total when sent

        Returns: Order with items, status and payment_status pending
        """
        if not data.items:
            raise ValidationError("Order must contain at least one item")

        products = ProductService(self.db)
        total = to_money(0)
        order_items = []

        for position, item_data in enumerate(data.items):
            if not 0 < item_data.quantity <= ORDER_ITEM_MAX_QUANTITY:
                raise ValidationError(
                    f"Item quantity must be between 1 and {ORDER_ITEM_MAX_QUANTITY}"
                )

            product = await products.get_active(item_data.product_id)
            if product is None:
                raise ValidationError(f"Product {item_data.product_id} is not available")

            # Prices are snapshotted from the catalog, never taken on trust
            unit_price = to_money(item_data.price)
            if unit_price != to_money(product.price):
                raise ValidationError(f"Price for product {product.id} has changed")

            if item_data.variety and product.varieties and item_data.variety not in product.varieties:
                raise ValidationError(
                    f"Variety {item_data.variety!r} is not offered for product {product.id}"
                )

            subtotal = to_money(unit_price * item_data.quantity)
            order_items.append(
                OrderItem(
                    position=position,
                    product_id=product.id,
                    product_name=product.name,
                    variety=item_data.variety,
                    quantity=item_data.quantity,
                    unit_price=unit_price,
                    subtotal=subtotal,
                )
            )
            total = to_money(total + subtotal)

        if data.total is not None:
            client_total = to_money(data.total)
            if client_total != total:
                raise ValidationError(
                    f"Order total {client_total} does not match the items total {total}"
                )

        customer = data.customer_info
        order = Order(
            customer_name=customer.full_name,
            customer_email=str(customer.email).lower(),
            customer_phone=customer.phone,
            customer_address=customer.address,
            delivery_method=data.delivery_method,
            payment_method=data.payment_method,
            payment_status=PaymentStatus.PENDING,
            total_amount=total,
            status=OrderStatus.PENDING,
            notes=data.notes,
            items=order_items,
            payments=[],
        )

        def _persist() -> Order:
            self.db.add(order)
            self.db.flush()
            return order

        order = await self._handle_db_operation(_persist)
        logger.info(f"Created order {order.id} with {len(order_items)} items, total {total}")
        return order

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.items), selectinload(Order.payments))
            .filter(Order.id == order_id)
            .first()
        )

    async def get(self, order_id: str) -> Order:
        order = await self.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def list_orders(
        self,
        customer_email: Optional[str] = None,
        status: Optional[Union[str, OrderStatus]] = None,
        limit: int = ORDERS_DEFAULT_LIMIT,
        offset: int = 0,
    ) -> List[Order]:
        """Most recent orders first; items and payments for the page are loaded in bulk."""
        limit, offset = validate_pagination(limit, offset)

        query = self.db.query(Order).options(selectinload(Order.items), selectinload(Order.payments))

        if customer_email:
            query = query.filter(func.lower(Order.customer_email) == customer_email.lower())

        if status is not None:
            query = query.filter(Order.status == parse_status(status))

        return (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
