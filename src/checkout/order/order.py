"""Order aggregate: the durable result of a checkout.

An order is created exactly once per completed purchase intent or per
successful cart checkout. Line items copy product name, SKU and description
at materialization time, so later catalog edits never rewrite history.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    PENDING/CONFIRMED → CANCELLED

Payment status (driven by the transaction ledger):
    PENDING → PAID → PARTIALLY_REFUNDED → REFUNDED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from checkout.domain import checkout
from checkout.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPaymentStatusChanged,
    OrderPlaced,
)
from checkout.shared.address import ShippingAddress


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


class OrderSource(Enum):
    BUY_NOW = "buy_now"
    CART = "cart"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED},
    PaymentStatus.PARTIALLY_REFUNDED: {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}


@checkout.entity(part_of="Order")
class OrderItem:
    """A line of an order, priced and described as of checkout time."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    name = String(required=True, max_length=255)
    sku = String(max_length=100)
    description = Text()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    customization = Text()  # JSON object


@checkout.aggregate
class Order:
    order_number = String(required=True, max_length=30)
    owner_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=50, default="online")
    source = String(choices=OrderSource, required=True)
    intent_id = Identifier()
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0)
    shipping = Float(default=0.0)
    tax = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    shipping_address = ValueObject(ShippingAddress)
    billing_address = ValueObject(ShippingAddress)
    email = String(max_length=254)
    phone = String(max_length=20)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @classmethod
    def place(
        cls,
        order_number,
        owner_id,
        source,
        items,
        subtotal,
        shipping,
        tax,
        total,
        shipping_address=None,
        payment_method="online",
        intent_id=None,
        email=None,
        phone=None,
        currency="USD",
    ):
        """Create an order with its line items.

        Args:
            items: List of dicts with product_id, variant_id, name, sku,
                description, quantity, unit_price and customization.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            owner_id=owner_id,
            source=source,
            intent_id=intent_id,
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=total,
            currency=currency,
            shipping_address=shipping_address,
            billing_address=shipping_address,
            payment_method=payment_method or "online",
            email=email,
            phone=phone,
            items=[
                OrderItem(
                    product_id=item["product_id"],
                    variant_id=item.get("variant_id"),
                    name=item["name"],
                    sku=item.get("sku"),
                    description=item.get("description"),
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    total_price=round(item["unit_price"] * item["quantity"], 2),
                    customization=json.dumps(item["customization"]) if item.get("customization") else None,
                )
                for item in items
            ],
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                owner_id=str(owner_id),
                source=source,
                item_count=len(items),
                subtotal=subtotal,
                shipping=shipping,
                tax=tax,
                total=total,
                placed_at=now,
            )
        )
        return order

    def _assert_can_transition(self, target):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus.CANCELLED in _VALID_TRANSITIONS[OrderStatus(self.status)]

    def confirm(self, payment_method=None):
        self._assert_can_transition(OrderStatus.CONFIRMED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        if payment_method:
            self.payment_method = payment_method
        self.updated_at = now

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                payment_method=self.payment_method,
                confirmed_at=now,
            )
        )

    def cancel(self, reason):
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                owner_id=str(self.owner_id),
                reason=reason,
                cancelled_at=now,
            )
        )

    def _change_payment_status(self, target, transaction_id=None):
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise ValidationError(
                {"payment_status": [f"Cannot change payment status from {current.value} to {target.value}"]}
            )

        now = datetime.now(UTC)
        self.payment_status = target.value
        self.updated_at = now

        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                payment_status=target.value,
                transaction_id=str(transaction_id) if transaction_id else None,
                changed_at=now,
            )
        )

    def mark_paid(self, transaction_id=None, payment_method=None):
        """Record a collected payment. Pending orders are confirmed along the way."""
        self._change_payment_status(PaymentStatus.PAID, transaction_id)
        if OrderStatus(self.status) == OrderStatus.PENDING:
            self.confirm(payment_method=payment_method)
        elif payment_method:
            self.payment_method = payment_method

    def record_refund(self, refunded_total, transaction_id=None):
        """Move to refunded once refunds cover the order total, else partially refunded."""
        target = PaymentStatus.REFUNDED if round(refunded_total, 2) >= round(self.total, 2) else PaymentStatus.PARTIALLY_REFUNDED
        self._change_payment_status(target, transaction_id)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "owner_id": str(self.owner_id),
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "source": self.source,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "currency": self.currency,
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "items": [
                {
                    "id": str(item.id),
                    "product_id": str(item.product_id),
                    "variant_id": str(item.variant_id) if item.variant_id else None,
                    "name": item.name,
                    "sku": item.sku,
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                    "customization": json.loads(item.customization) if item.customization else None,
                }
                for item in self.items
            ],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
