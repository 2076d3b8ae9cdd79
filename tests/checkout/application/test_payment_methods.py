"""Application tests for stored payment methods."""

import pytest
from protean.utils.globals import current_domain

from checkout.errors import AuthRequired, NotFound
from checkout.payment.methods import RemovePaymentMethod, SavePaymentMethod, list_payment_methods
from checkout.shared.caller import command_fields


def _save(caller, ref, **extra):
    return current_domain.process(
        SavePaymentMethod(**command_fields(caller), method_type="card", gateway_method_ref=ref, **extra),
        asynchronous=False,
    )


def _remove(caller, method_id):
    return current_domain.process(
        RemovePaymentMethod(**command_fields(caller), payment_method_id=method_id),
        asynchronous=False,
    )


def _default_id(caller):
    return next(m["id"] for m in list_payment_methods(caller) if m["is_default"])


class TestSavePaymentMethod:
    def test_first_method_becomes_default(self, owner, card):
        assert _default_id(owner) == card

    def test_new_default_replaces_old(self, owner, card):
        newer = _save(owner, "pm_card_mastercard", brand="mastercard", last4="4444", is_default=True)
        methods = list_payment_methods(owner)
        assert [m["id"] for m in methods if m["is_default"]] == [newer]
        assert methods[0]["id"] == newer

    def test_non_default_method_keeps_existing_default(self, owner, card):
        _save(owner, "pm_card_amex")
        assert _default_id(owner) == card
        assert len(list_payment_methods(owner)) == 2

    def test_listing_hides_gateway_reference(self, owner, card):
        assert "gateway_method_ref" not in list_payment_methods(owner)[0]

    def test_guest_must_sign_in(self, guest):
        with pytest.raises(AuthRequired):
            _save(guest, "pm_card_visa")


class TestRemovePaymentMethod:
    def test_removed_method_disappears(self, owner, card):
        _save(owner, "pm_card_amex")
        _remove(owner, card)
        assert card not in [m["id"] for m in list_payment_methods(owner)]

    def test_removing_default_promotes_oldest_remaining(self, owner, card):
        second = _save(owner, "pm_card_amex")
        _save(owner, "pm_card_discover")
        _remove(owner, card)
        assert _default_id(owner) == second

    def test_other_owner_cannot_remove(self, other_owner, card):
        with pytest.raises(NotFound):
            _remove(other_owner, card)

    def test_removed_twice(self, owner, card):
        _remove(owner, card)
        with pytest.raises(NotFound):
            _remove(owner, card)
