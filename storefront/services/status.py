# services/status.py
"""Order status transitions.

Orders move forward through the fulfilment stages (skipping stages is
allowed) and can be cancelled until delivered. ``delivered`` and
``cancelled`` are terminal.
"""
from typing import Dict, FrozenSet, Optional, Union

from storefront.models.database_models import Order
from storefront.models.enums import OrderStatus
from storefront.utils.common import utcnow
from storefront.utils.exceptions import NotFoundError, ValidationError
from storefront.utils.logging import get_logger

from .base import BaseService

logger = get_logger(__name__)

_S = OrderStatus

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    _S.PENDING: frozenset({_S.CONFIRMED, _S.PREPARING, _S.READY, _S.DELIVERED, _S.CANCELLED}),
    _S.CONFIRMED: frozenset({_S.PREPARING, _S.READY, _S.DELIVERED, _S.CANCELLED}),
    _S.PREPARING: frozenset({_S.READY, _S.DELIVERED, _S.CANCELLED}),
    _S.READY: frozenset({_S.DELIVERED, _S.CANCELLED}),
    _S.DELIVERED: frozenset(),
    _S.CANCELLED: frozenset(),
}


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown order status: {value}") from None


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    # Re-applying the current status only touches notes
    return new == current or new in ALLOWED_TRANSITIONS[current]


class OrderStatusService(BaseService[Order]):
    async def update_status(
        self,
        order_id: str,
        new_status: Union[str, OrderStatus],
        notes: Optional[str] = None,
    ) -> Order:
        status = parse_status(new_status)

        order = (
            self.db.query(Order)
            .filter(Order.id == order_id)
            .with_for_update()
            .first()
        )
        if order is None:
            raise NotFoundError("Order not found")

        if not can_transition(order.status, status):
            raise ValidationError(
                f"Cannot change order status from {order.status.value} to {status.value}"
            )

        previous = order.status
        order.status = status
        if notes is not None:
            order.notes = notes
        order.updated_at = utcnow()

        order = await self._handle_db_operation(lambda: order)
        logger.info(f"Order {order.id} status {previous.value} -> {status.value}")
        return order
