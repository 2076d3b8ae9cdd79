"""Tests for the Cart aggregate: line management and total recomputation."""

import pytest
from protean.exceptions import ValidationError

from checkout.cart.cart import Cart
from checkout.cart.events import CartItemAdded, CartItemRemoved, CartItemUpdated, CartsMerged


def _make_cart(**overrides):
    defaults = {"owner_id": "owner-001"}
    defaults.update(overrides)
    return Cart.create(**defaults)


def _subtotal_of_active(cart):
    return round(sum(line.unit_price * line.quantity for line in cart.active_lines), 2)


class TestCreation:
    def test_owner_cart_drops_session(self):
        cart = Cart.create(owner_id="owner-001", session_id="sess-001")
        assert cart.owner_id == "owner-001"
        assert cart.session_id is None

    def test_guest_cart(self):
        cart = Cart.create(session_id="sess-001")
        assert cart.session_id == "sess-001"

    def test_cart_needs_an_owner(self):
        with pytest.raises(ValidationError):
            Cart.create()

    def test_empty_cart_totals_are_zero(self):
        cart = _make_cart()
        cart.recalculate()
        assert (cart.subtotal, cart.tax, cart.shipping, cart.total) == (0.0, 0.0, 0.0, 0.0)


class TestAddItem:
    def test_add_item(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 2, 25.0)
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_same_product_and_variant_merges(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 25.0, variant_id="var-red")
        cart.add_item("prod-widget", 2, 25.0, variant_id="var-red")
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3

    def test_different_variant_creates_new_line(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 25.0, variant_id="var-red")
        cart.add_item("prod-widget", 1, 25.0, variant_id="var-blue")
        assert len(cart.lines) == 2

    def test_saved_line_is_not_merged_into(self):
        cart = _make_cart()
        line = cart.add_item("prod-widget", 1, 25.0)
        cart.save_for_later([str(line.id)])
        cart.add_item("prod-widget", 1, 25.0)
        assert len(cart.lines) == 2
        assert len(cart.active_lines) == 1

    def test_add_item_raises_event(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 25.0)
        events = [e for e in cart._events if isinstance(e, CartItemAdded)]
        assert len(events) == 1
        assert events[0].product_id == "prod-widget"


class TestTotals:
    def test_under_threshold_pays_shipping(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 20.0)
        assert cart.subtotal == 20.0
        assert cart.shipping == 5.99
        assert cart.tax == 1.7
        assert cart.total == 27.69

    def test_threshold_reached_ships_free(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 2, 25.0)
        assert cart.subtotal == 50.0
        assert cart.shipping == 0.0

    def test_saved_lines_do_not_count(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 25.0)
        saved = cart.add_item("prod-gadget", 1, 50.0)
        cart.save_for_later([str(saved.id)])
        assert cart.subtotal == 25.0

    def test_subtotal_matches_lines_after_any_sequence(self):
        cart = _make_cart()
        first = cart.add_item("prod-widget", 3, 25.0)
        second = cart.add_item("prod-gadget", 1, 50.0)
        cart.update_quantity(str(first.id), 1)
        cart.add_item("prod-last", 2, 40.0)
        cart.remove_item(str(second.id))
        assert cart.subtotal == _subtotal_of_active(cart) == 105.0


class TestUpdateAndRemove:
    def test_update_quantity(self):
        cart = _make_cart()
        line = cart.add_item("prod-widget", 1, 25.0)
        cart._events.clear()
        cart.update_quantity(str(line.id), 4)
        assert cart.lines[0].quantity == 4
        event = cart._events[0]
        assert isinstance(event, CartItemUpdated)
        assert (event.previous_quantity, event.new_quantity) == (1, 4)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_removes_line(self, quantity):
        cart = _make_cart()
        line = cart.add_item("prod-widget", 1, 25.0)
        cart.update_quantity(str(line.id), quantity)
        assert cart.lines == []
        assert any(isinstance(e, CartItemRemoved) for e in cart._events)

    def test_unknown_line(self):
        cart = _make_cart()
        with pytest.raises(ValidationError):
            cart.update_quantity("missing", 2)
        with pytest.raises(ValidationError):
            cart.remove_item("missing")

    def test_clear_keeps_saved_lines(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 25.0)
        saved = cart.add_item("prod-gadget", 1, 50.0)
        cart.save_for_later([str(saved.id)])
        removed = cart.clear()
        assert removed == 1
        assert cart.active_lines == []
        assert len(cart.saved_lines) == 1
        assert cart.total == 0.0


class TestSaveForLater:
    def test_round_trip(self):
        cart = _make_cart()
        line = cart.add_item("prod-widget", 2, 25.0)
        cart.save_for_later([str(line.id)])
        assert cart.saved_lines[0].id == line.id
        cart.move_to_cart([str(line.id)])
        assert cart.active_lines[0].id == line.id
        assert cart.subtotal == 50.0

    def test_restoring_folds_into_matching_active_line(self):
        cart = _make_cart()
        saved = cart.add_item("prod-widget", 1, 25.0)
        cart.save_for_later([str(saved.id)])
        cart.add_item("prod-widget", 2, 25.0)
        cart.move_to_cart([str(saved.id)])
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3


class TestMergeGuestLines:
    def test_merge_sums_matching_and_adds_new(self):
        cart = _make_cart()
        cart.add_item("prod-widget", 1, 25.0)

        guest = Cart.create(session_id="sess-guest")
        guest.add_item("prod-widget", 2, 25.0)
        guest.add_item("prod-gadget", 1, 50.0)

        merged = cart.merge_guest_lines(guest)
        assert merged == 2
        quantities = {line.product_id: line.quantity for line in cart.lines}
        assert quantities == {"prod-widget": 3, "prod-gadget": 1}
        assert cart.subtotal == 125.0

        event = next(e for e in cart._events if isinstance(e, CartsMerged))
        assert event.source_session_id == "sess-guest"
