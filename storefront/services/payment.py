# services/payment.py
from typing import Optional

from storefront.config import DEFAULT_CURRENCY
from storefront.models.database_models import Order, Payment
from storefront.models.enums import (
    ExternalPaymentStatus,
    OrderStatus,
    PaymentStatus,
    ReconciliationResult,
)
from storefront.models.schemas.payment import PaymentNotification
from storefront.utils.common import to_money, utcnow
from storefront.utils.exceptions import ConflictError
from storefront.utils.logging import get_logger

from .base import BaseService

logger = get_logger(__name__)

FAILURE_STATUSES = {
    ExternalPaymentStatus.REJECTED.value,
    ExternalPaymentStatus.FAILED.value,
    ExternalPaymentStatus.CANCELLED.value,
}


class PaymentService(BaseService[Payment]):
    async def _find_payment(self, transaction_id: str) -> Optional[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.transaction_id == transaction_id)
            .first()
        )

    async def reconcile(self, notification: PaymentNotification) -> ReconciliationResult:
        """
        Apply a payment outcome reported by the provider

        notification: PaymentNotification
            - order_id: str
            - status: str (approved | rejected | failed | cancelled)
            - transaction_id: str
            - amount: Optional[Decimal]

        Returns: ReconciliationResult. Replays of a recorded transaction are
        reported as DUPLICATE and change nothing.
        """
        external_status = notification.status.strip().lower()
        transaction_id = notification.transaction_id

        # Row lock serialises concurrent notifications for the same order
        order = (
            self.db.query(Order)
            .filter(Order.id == notification.order_id)
            .with_for_update()
            .first()
        )
        if order is None:
            logger.warning(
                f"Payment notification for unknown order {notification.order_id} "
                f"(transaction {transaction_id})"
            )
            return ReconciliationResult.UNKNOWN_ORDER

        existing = await self._find_payment(transaction_id)
        if existing is not None or order.transaction_id == transaction_id:
            owner_id = existing.order_id if existing is not None else order.id
            if owner_id != order.id:
                logger.warning(
                    f"Transaction {transaction_id} already belongs to order {owner_id}, "
                    f"ignoring notification for order {order.id}"
                )
                return ReconciliationResult.CONFLICT
            logger.info(f"Transaction {transaction_id} already reconciled for order {order.id}")
            return ReconciliationResult.DUPLICATE

        if external_status == ExternalPaymentStatus.APPROVED.value:
            paid = True
        elif external_status in FAILURE_STATUSES:
            paid = False
        else:
            logger.info(
                f"Ignoring payment status {notification.status!r} for order {order.id}"
            )
            return ReconciliationResult.IGNORED

        if notification.amount is not None and to_money(notification.amount) != to_money(order.total_amount):
            logger.warning(
                f"Amount mismatch for order {order.id}: notified {notification.amount}, "
                f"expected {order.total_amount} (transaction {transaction_id})"
            )
            return ReconciliationResult.AMOUNT_MISMATCH

        payment = Payment(
            order_id=order.id,
            payment_method=notification.payment_method or order.payment_method or "unknown",
            transaction_id=transaction_id,
            amount=to_money(notification.amount if notification.amount is not None else order.total_amount),
            currency=(notification.currency or DEFAULT_CURRENCY).upper(),
            status=PaymentStatus.PAID if paid else PaymentStatus.FAILED,
            payment_date=utcnow() if paid else None,
            gateway_response=notification.model_dump(mode="json"),
        )

        if paid:
            if order.payment_status == PaymentStatus.PAID:
                logger.warning(
                    f"Order {order.id} is already paid by {order.transaction_id}, "
                    f"recording extra payment {transaction_id}"
                )
            else:
                order.payment_status = PaymentStatus.PAID
                order.transaction_id = transaction_id
                if order.status == OrderStatus.PENDING:
                    order.status = OrderStatus.CONFIRMED
                elif order.status == OrderStatus.CANCELLED:
                    logger.warning(f"Payment {transaction_id} approved for cancelled order {order.id}")
                order.updated_at = utcnow()
        elif order.payment_status != PaymentStatus.PAID:
            order.payment_status = PaymentStatus.FAILED
            order.updated_at = utcnow()

        def _apply() -> ReconciliationResult:
            self.db.add(payment)
            self.db.flush()
            return ReconciliationResult.APPLIED

        try:
            result = await self._handle_db_operation(_apply)
        except ConflictError:
            # A concurrent notification recorded the same transaction first
            logger.info(f"Transaction {transaction_id} was reconciled concurrently, nothing applied")
            return ReconciliationResult.DUPLICATE

        logger.info(
            f"Reconciled transaction {transaction_id} for order {order.id}: "
            f"payment_status={order.payment_status.value}, status={order.status.value}"
        )
        return result
