"""Order creation: totals, atomicity and catalog snapshots."""

from decimal import Decimal

import pydantic
import pytest
from sqlalchemy.exc import OperationalError

from storefront.models.database_models import Order, OrderItem
from storefront.models.enums import OrderStatus, PaymentStatus
from storefront.services.order import OrderService
from storefront.utils.exceptions import InfrastructureError, ValidationError
from tests.factories import item, order_data


def _counts(session_factory):
    session = session_factory()
    try:
        return session.query(Order).count(), session.query(OrderItem).count()
    finally:
        session.close()


class TestCreateOrderHappyPath:

    async def test_total_is_sum_of_subtotals(self, db, products):
        service = OrderService(db)
        order = await service.create(order_data([
            item(products["widget"], 2),
            item(products["gadget"], 1),
        ]))

        assert order.total_amount == Decimal("250.00")
        assert sum(i.subtotal for i in order.items) == order.total_amount
        assert len(order.items) == 2

    async def test_initial_state_is_pending(self, db, products):
        order = await OrderService(db).create(order_data([item(products["gadget"], 1)]))

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.transaction_id is None

    async def test_persists_every_item_in_submitted_order(self, db, products, session_factory):
        order = await OrderService(db).create(order_data([
            item(products["gadget"], 3),
            item(products["widget"], 1, variety="Integral"),
        ]))

        session = session_factory()
        stored = (
            session.query(OrderItem)
            .filter(OrderItem.order_id == order.id)
            .order_by(OrderItem.position)
            .all()
        )
        assert [i.product_name for i in stored] == ["Gadget", "Widget"]
        assert [i.quantity for i in stored] == [3, 1]
        assert stored[0].subtotal == Decimal("150.00")
        assert stored[1].variety == "Integral"
        session.close()

    async def test_customer_details_are_stored(self, db, products):
        order = await OrderService(db).create(
            order_data([item(products["gadget"], 1)], email="Jane@Example.com")
        )

        assert order.customer_name == "Jane Doe"
        assert order.customer_email == "jane@example.com"
        assert order.delivery_method == "pickup"
        assert order.payment_method == "transfer"
        assert order.notes == "Ring twice"

    async def test_matching_client_total_is_accepted(self, db, products):
        data = order_data([item(products["widget"], 1)], total="100.00")
        order = await OrderService(db).create(data)
        assert order.total_amount == Decimal("100.00")


class TestCreateOrderRejections:

    async def test_empty_items_rejected_and_nothing_persisted(self, db, products, session_factory):
        with pytest.raises(ValidationError, match="at least one item"):
            await OrderService(db).create(order_data([]))

        assert _counts(session_factory) == (0, 0)

    async def test_client_total_mismatch_rejected(self, db, products, session_factory):
        data = order_data([item(products["widget"], 2)], total="1.00")

        with pytest.raises(ValidationError, match="does not match"):
            await OrderService(db).create(data)

        assert _counts(session_factory) == (0, 0)

    async def test_price_differing_from_catalog_rejected(self, db, products):
        data = order_data([item(products["widget"], 1, price="1.00")])

        with pytest.raises(ValidationError, match="Price"):
            await OrderService(db).create(data)

    async def test_unknown_product_rejected(self, db, products):
        data = order_data([{"productId": "missing", "quantity": 1, "price": "5.00"}])

        with pytest.raises(ValidationError, match="not available"):
            await OrderService(db).create(data)

    async def test_inactive_product_rejected(self, db, products):
        data = order_data([item(products["retired"], 1)])

        with pytest.raises(ValidationError, match="not available"):
            await OrderService(db).create(data)

    async def test_unknown_variety_rejected(self, db, products):
        data = order_data([item(products["widget"], 1, variety="Chocolate")])

        with pytest.raises(ValidationError, match="Variety"):
            await OrderService(db).create(data)

    def test_invalid_email_rejected_by_schema(self, products):
        with pytest.raises(pydantic.ValidationError):
            order_data([item(products["widget"], 1)], email="not-an-email")

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected_by_schema(self, products, quantity):
        with pytest.raises(pydantic.ValidationError):
            order_data([item(products["widget"], quantity)])

    def test_negative_price_rejected_by_schema(self, products):
        with pytest.raises(pydantic.ValidationError):
            order_data([item(products["widget"], 1, price="-1.00")])


class TestCreateOrderAtomicity:

    async def test_failure_after_partial_write_rolls_back(self, db, products, session_factory, monkeypatch):
        real_commit = db.commit

        def failing_commit():
            # Rows reach the database, then the commit fails
            db.flush()
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(db, "commit", failing_commit)

        with pytest.raises(InfrastructureError):
            await OrderService(db).create(order_data([
                item(products["widget"], 1),
                item(products["gadget"], 2),
            ]))

        monkeypatch.setattr(db, "commit", real_commit)
        assert _counts(session_factory) == (0, 0)


class TestPriceSnapshot:

    async def test_catalog_price_change_does_not_alter_history(self, db, products, session_factory):
        widget = products["widget"]
        order = await OrderService(db).create(order_data([item(widget, 2)]))

        widget.price = Decimal("999.00")
        widget.active = False
        db.commit()

        session = session_factory()
        stored = await OrderService(session).get(order.id)
        assert stored.items[0].unit_price == Decimal("100.00")
        assert stored.items[0].product_name == "Widget"
        assert stored.total_amount == Decimal("200.00")
        session.close()
