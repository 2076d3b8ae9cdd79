"""Tests for checkout error payloads."""

from checkout.errors import AuthRequired, Expired, Forbidden, InsufficientStock, NotFound


class TestErrorPayloads:
    def test_not_found(self):
        error = NotFound("Order not found")
        assert error.status_code == 404
        assert error.to_dict() == {"error": "not_found", "message": "Order not found"}

    def test_insufficient_stock_carries_available(self):
        error = InsufficientStock(available=2)
        assert error.status_code == 409
        assert error.to_dict()["available"] == 2

    def test_auth_required_flags_login(self):
        error = AuthRequired()
        assert error.status_code == 401
        assert error.to_dict()["requires_auth"] is True

    def test_expired_is_distinct_from_not_found(self):
        assert Expired().status_code == 410

    def test_forbidden_does_not_leak_owner(self):
        assert "owner" not in Forbidden().to_dict()
