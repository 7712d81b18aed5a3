"""Payment reconciliation: idempotency, unknown orders and failures."""

from decimal import Decimal

import pytest

from storefront.models.database_models import Order, Payment
from storefront.models.enums import OrderStatus, PaymentStatus, ReconciliationResult
from storefront.models.schemas.payment import PaymentNotification
from storefront.services.order import OrderService
from storefront.services.payment import PaymentService
from tests.factories import item, order_data

R = ReconciliationResult


def notification(order_id, status="approved", transaction_id="TX-1", amount="250.00", **extra):
    return PaymentNotification.model_validate({
        "orderId": order_id,
        "status": status,
        "transactionId": transaction_id,
        "amount": amount,
        **extra,
    })


@pytest.fixture
async def order(db, products):
    return await OrderService(db).create(order_data([
        item(products["widget"], 2),
        item(products["gadget"], 1),
    ]))


def _reload(session_factory, order_id):
    session = session_factory()
    try:
        stored = session.get(Order, order_id)
        payments = session.query(Payment).filter(Payment.order_id == order_id).all()
        return stored, payments
    finally:
        session.close()


class TestApprovedPayment:

    async def test_confirms_and_marks_paid(self, db, order, session_factory):
        result = await PaymentService(db).reconcile(notification(order.id))

        stored, payments = _reload(session_factory, order.id)
        assert result == R.APPLIED
        assert stored.status == OrderStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.transaction_id == "TX-1"
        assert len(payments) == 1
        assert payments[0].status == PaymentStatus.PAID
        assert payments[0].amount == Decimal("250.00")
        assert payments[0].currency == "ARS"
        assert payments[0].gateway_response["transaction_id"] == "TX-1"

    async def test_replay_is_a_no_op(self, db, order, session_factory):
        service = PaymentService(db)
        await service.reconcile(notification(order.id))

        result = await service.reconcile(notification(order.id))

        stored, payments = _reload(session_factory, order.id)
        assert result == R.DUPLICATE
        assert stored.status == OrderStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.PAID
        assert len(payments) == 1

    async def test_second_worker_sees_the_recorded_transaction(self, order, session_factory):
        first_session, second_session = session_factory(), session_factory()
        try:
            first = await PaymentService(first_session).reconcile(notification(order.id))
            second = await PaymentService(second_session).reconcile(notification(order.id))
        finally:
            first_session.close()
            second_session.close()

        stored, payments = _reload(session_factory, order.id)
        check = session_factory()
        try:
            total_payments = check.query(Payment).count()
        finally:
            check.close()
        assert first == R.APPLIED
        assert second == R.DUPLICATE
        assert total_payments == 1
        assert len(payments) == 1
        assert stored.status == OrderStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.transaction_id == "TX-1"

    async def test_concurrent_duplicate_applies_once(self, db, order, session_factory, monkeypatch):
        # Another worker stored the transaction after this one's duplicate check
        other = session_factory()
        other.add(Payment(
            order_id=order.id,
            payment_method="transfer",
            transaction_id="TX-1",
            amount=Decimal("250.00"),
            currency="ARS",
            status=PaymentStatus.PAID,
        ))
        other.commit()
        other.close()

        async def stale_lookup(self, transaction_id):
            return None

        monkeypatch.setattr(PaymentService, "_find_payment", stale_lookup)

        result = await PaymentService(db).reconcile(notification(order.id))

        _, payments = _reload(session_factory, order.id)
        assert result == R.DUPLICATE
        assert len(payments) == 1

    async def test_does_not_reopen_later_stages(self, db, order, session_factory):
        order.status = OrderStatus.PREPARING
        db.commit()

        await PaymentService(db).reconcile(notification(order.id))

        stored, _ = _reload(session_factory, order.id)
        assert stored.status == OrderStatus.PREPARING
        assert stored.payment_status == PaymentStatus.PAID

    async def test_amount_is_optional(self, db, order, session_factory):
        result = await PaymentService(db).reconcile(notification(order.id, amount=None))

        _, payments = _reload(session_factory, order.id)
        assert result == R.APPLIED
        assert payments[0].amount == Decimal("250.00")


class TestRejectedNotifications:

    async def test_unknown_order_writes_nothing(self, db, session_factory):
        result = await PaymentService(db).reconcile(notification("no-such-order"))

        session = session_factory()
        assert result == R.UNKNOWN_ORDER
        assert session.query(Payment).count() == 0
        assert session.query(Order).count() == 0
        session.close()

    async def test_amount_mismatch_not_applied(self, db, order, session_factory):
        result = await PaymentService(db).reconcile(notification(order.id, amount="1.00"))

        stored, payments = _reload(session_factory, order.id)
        assert result == R.AMOUNT_MISMATCH
        assert stored.payment_status == PaymentStatus.PENDING
        assert stored.status == OrderStatus.PENDING
        assert payments == []

    async def test_transaction_owned_by_another_order(self, db, products, order, session_factory):
        other = await OrderService(db).create(order_data([
            item(products["widget"], 2),
            item(products["gadget"], 1),
        ]))
        service = PaymentService(db)
        await service.reconcile(notification(order.id))

        result = await service.reconcile(notification(other.id))

        stored, payments = _reload(session_factory, other.id)
        assert result == R.CONFLICT
        assert stored.payment_status == PaymentStatus.PENDING
        assert payments == []

    async def test_unrecognised_status_is_ignored(self, db, order, session_factory):
        result = await PaymentService(db).reconcile(notification(order.id, status="in_process"))

        stored, payments = _reload(session_factory, order.id)
        assert result == R.IGNORED
        assert stored.payment_status == PaymentStatus.PENDING
        assert payments == []


class TestFailedPayment:

    async def test_rejection_marks_payment_failed(self, db, order, session_factory):
        result = await PaymentService(db).reconcile(
            notification(order.id, status="rejected", transaction_id="TX-9")
        )

        stored, payments = _reload(session_factory, order.id)
        assert result == R.APPLIED
        assert stored.payment_status == PaymentStatus.FAILED
        assert stored.status == OrderStatus.PENDING
        assert stored.transaction_id is None
        assert payments[0].status == PaymentStatus.FAILED

    async def test_retry_after_rejection_can_succeed(self, db, order, session_factory):
        service = PaymentService(db)
        await service.reconcile(notification(order.id, status="rejected", transaction_id="TX-9"))

        result = await service.reconcile(notification(order.id, transaction_id="TX-10"))

        stored, payments = _reload(session_factory, order.id)
        assert result == R.APPLIED
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.transaction_id == "TX-10"
        assert len(payments) == 2

    async def test_failure_never_downgrades_a_paid_order(self, db, order, session_factory):
        service = PaymentService(db)
        await service.reconcile(notification(order.id))

        await service.reconcile(notification(order.id, status="failed", transaction_id="TX-2"))

        stored, _ = _reload(session_factory, order.id)
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.transaction_id == "TX-1"
