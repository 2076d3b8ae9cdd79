"""Tests for order numbering and pricing."""

import random
import re

from checkout.order.materializer import generate_order_number, price_lines, shipping_for


class TestOrderNumber:
    def test_format(self):
        number = generate_order_number()
        assert re.fullmatch(r"ORD-\d{6}[A-Z0-9]{6}", number)

    def test_uses_last_six_timestamp_digits(self):
        number = generate_order_number(clock=lambda: 1700000123.456, rng=random.Random(7))
        assert number.startswith("ORD-123456")

    def test_random_suffix_varies(self):
        rng = random.Random(1)
        numbers = {generate_order_number(clock=lambda: 1.0, rng=rng) for _ in range(50)}
        assert len(numbers) == 50


class TestPricing:
    def test_flat_shipping_below_threshold(self):
        assert shipping_for(49.99) == 9.99

    def test_free_shipping_at_threshold(self):
        assert shipping_for(50.0) == 0.0

    def test_price_lines(self):
        pricing = price_lines([{"unit_price": 25.0, "quantity": 2}])
        assert pricing == {"subtotal": 50.0, "shipping": 0.0, "tax": 4.25, "total": 54.25}

    def test_price_lines_with_shipping(self):
        pricing = price_lines([{"unit_price": 20.0, "quantity": 1}])
        assert pricing == {"subtotal": 20.0, "shipping": 9.99, "tax": 1.7, "total": 31.69}
