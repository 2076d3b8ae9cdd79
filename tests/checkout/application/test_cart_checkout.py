"""Application tests for cart validation and cart checkout."""

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout.cart.items import AddCartItem
from checkout.cart.lookup import get_cart
from checkout.cart.management import SaveForLater
from checkout.cart.validation import validate_cart
from checkout.errors import AuthRequired, Conflict, InsufficientStock, NotFound
from checkout.order.checkout import CheckoutCart, checkout_cart
from checkout.order.order import Order, OrderSource
from checkout.shared.caller import command_fields


def _add(caller, product_id="prod-widget", quantity=1):
    return current_domain.process(
        AddCartItem(**command_fields(caller), product_id=product_id, quantity=quantity),
        asynchronous=False,
    )


def _checkout(caller, address, **extra):
    return checkout_cart(caller, address, **extra)


class TestValidateCart:
    def test_valid_cart(self, owner, hub):
        _add(owner)
        assert validate_cart(owner) == {"valid": True, "issues": []}
        assert "cart-validated" in hub.events_on("cart-user-owner-001")

    def test_no_cart_is_valid(self, owner, hub):
        assert validate_cart(owner) == {"valid": True, "issues": []}
        assert hub.published == []

    def test_reports_each_issue_kind(self, owner, catalog):
        _add(owner, quantity=2)
        _add(owner, product_id="prod-gadget")
        _add(owner, product_id="prod-last")
        catalog.update_product("prod-widget", stock=1)
        catalog.update_product("prod-gadget", sale_price=45.0)
        catalog.remove_product("prod-last")

        result = validate_cart(owner)
        assert result["valid"] is False
        kinds = {issue["type"]: issue for issue in result["issues"]}
        assert kinds["insufficient_stock"]["available"] == 1
        assert kinds["price_changed"]["old_price"] == 50.0
        assert kinds["price_changed"]["new_price"] == 45.0
        assert "unavailable" in kinds

    def test_validation_does_not_reprice(self, owner, catalog):
        _add(owner, product_id="prod-gadget")
        catalog.update_product("prod-gadget", sale_price=45.0)
        validate_cart(owner)
        assert get_cart(owner)["items"][0]["unit_price"] == 50.0


class TestCheckoutCart:
    def test_checkout_places_one_order(self, owner, address, catalog, hub):
        _add(owner, quantity=2)
        _add(owner, product_id="prod-gadget")

        result = _checkout(owner, address, email="jane@example.com", phone="+1-555-0100")
        assert result["redirect_url"] == "/orders"
        # 50 + 50 subtotal, free shipping, 8.50 tax
        assert result["total"] == 108.5

        order = current_domain.repository_for(Order).get(result["order_id"])
        assert order.source == OrderSource.CART.value
        assert len(order.items) == 2
        assert order.intent_id is None

        assert catalog.get_product("prod-widget").stock == 8
        assert catalog.get_product("prod-gadget").stock == 2
        assert get_cart(owner)["items"] == []
        assert "cart-cleared" in hub.events_on("cart-user-owner-001")

    def test_saved_lines_stay_behind(self, owner, address):
        cart = _add(owner)
        _add(owner, product_id="prod-gadget")
        saved_id = next(item["id"] for item in cart["items"])
        current_domain.process(SaveForLater(**command_fields(owner), item_ids=[saved_id]), asynchronous=False)

        _checkout(owner, address)
        assert [item["id"] for item in get_cart(owner)["saved_items"]] == [saved_id]

    def test_short_line_releases_taken_stock(self, owner, address, catalog):
        _add(owner, quantity=2)
        _add(owner, product_id="prod-last")
        catalog.update_product("prod-last", stock=0)

        with pytest.raises(InsufficientStock) as exc:
            _checkout(owner, address)
        assert exc.value.to_dict()["product_id"] == "prod-last"
        assert catalog.get_product("prod-widget").stock == 10
        assert current_domain.repository_for(Order)._dao.query.all().items == []
        assert len(get_cart(owner)["items"]) == 2

    def test_failed_order_puts_stock_back(self, owner, address, catalog):
        catalog.add_product("prod-long", name="L" * 300, price=10.00, stock=5, sku="LNG-001")
        _add(owner, quantity=2)
        _add(owner, product_id="prod-long", quantity=2)

        with pytest.raises(ValidationError):
            _checkout(owner, address)

        assert catalog.get_product("prod-long").stock == 5
        assert catalog.get_product("prod-widget").stock == 10
        assert current_domain.repository_for(Order)._dao.query.all().items == []
        assert len(get_cart(owner)["items"]) == 2

    def test_cart_changed_after_stock_taken(self, owner, address):
        _add(owner, quantity=2)

        with pytest.raises(Conflict):
            current_domain.process(
                CheckoutCart(
                    **command_fields(owner),
                    shipping_address=address,
                    reserved_quantities={"prod-widget": 1},
                ),
                asynchronous=False,
            )
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_malformed_email_rejected(self, owner, address, catalog):
        _add(owner, quantity=2)

        with pytest.raises(ValidationError):
            _checkout(owner, address, email="jane@@example.com")

        assert catalog.get_product("prod-widget").stock == 10
        assert len(get_cart(owner)["items"]) == 1

    def test_vanished_product(self, owner, address, catalog):
        _add(owner)
        catalog.remove_product("prod-widget")
        with pytest.raises(NotFound):
            _checkout(owner, address)

    def test_empty_cart(self, owner, address):
        with pytest.raises(ValidationError):
            _checkout(owner, address)

    def test_guest_must_sign_in(self, guest, address):
        _add(guest)
        with pytest.raises(AuthRequired):
            _checkout(guest, address)
