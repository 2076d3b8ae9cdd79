"""Tests for the Order aggregate."""

import pytest
from protean.exceptions import ValidationError

from checkout.order.events import OrderConfirmed, OrderPaymentStatusChanged, OrderPlaced
from checkout.order.order import Order, OrderSource, OrderStatus, PaymentStatus


def _make_order(**overrides):
    defaults = {
        "order_number": "ORD-123456ABCDEF",
        "owner_id": "owner-001",
        "source": OrderSource.BUY_NOW.value,
        "items": [
            {
                "product_id": "prod-widget",
                "name": "Widget",
                "sku": "WID-001",
                "description": "A widget",
                "quantity": 2,
                "unit_price": 25.0,
                "customization": {"engraving": "J.D."},
            }
        ],
        "subtotal": 50.0,
        "shipping": 0.0,
        "tax": 4.25,
        "total": 54.25,
    }
    defaults.update(overrides)
    return Order.place(**defaults)


class TestPlacement:
    def test_place_starts_pending(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_method == "online"

    def test_items_copy_product_details(self):
        item = _make_order().items[0]
        assert item.name == "Widget"
        assert item.sku == "WID-001"
        assert item.total_price == 50.0

    def test_order_needs_items(self):
        with pytest.raises(ValidationError):
            _make_order(items=[])

    def test_place_raises_event(self):
        order = _make_order()
        event = next(e for e in order._events if isinstance(e, OrderPlaced))
        assert event.total == 54.25
        assert event.item_count == 1

    def test_to_dict_decodes_customization(self):
        data = _make_order().to_dict()
        assert data["items"][0]["customization"] == {"engraving": "J.D."}


class TestStatusTransitions:
    def test_confirm(self):
        order = _make_order()
        order.confirm(payment_method="cod")
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.payment_method == "cod"
        assert any(isinstance(e, OrderConfirmed) for e in order._events)

    @pytest.mark.parametrize("confirm_first", [False, True])
    def test_cancellable_while_pending_or_confirmed(self, confirm_first):
        order = _make_order()
        if confirm_first:
            order.confirm()
        assert order.is_cancellable
        order.cancel(reason="Changed my mind")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Changed my mind"

    def test_cancelled_is_terminal(self):
        order = _make_order()
        order.cancel(reason="Changed my mind")
        assert not order.is_cancellable
        with pytest.raises(ValidationError):
            order.confirm()


class TestPaymentStatus:
    def test_mark_paid_confirms_pending_order(self):
        order = _make_order()
        order.mark_paid(transaction_id="tx-001")
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.CONFIRMED.value
        event = next(e for e in order._events if isinstance(e, OrderPaymentStatusChanged))
        assert event.transaction_id == "tx-001"

    def test_cannot_pay_twice(self):
        order = _make_order()
        order.mark_paid()
        with pytest.raises(ValidationError):
            order.mark_paid()

    def test_partial_then_full_refund(self):
        order = _make_order()
        order.mark_paid()
        order.record_refund(10.0)
        assert order.payment_status == PaymentStatus.PARTIALLY_REFUNDED.value
        order.record_refund(54.25)
        assert order.payment_status == PaymentStatus.REFUNDED.value

    def test_refund_requires_payment(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.record_refund(10.0)
