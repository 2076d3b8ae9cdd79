"""Shared BDD fixtures and step definitions for the checkout engine."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then

from checkout.errors import CheckoutError
from checkout.intent.intent import PurchaseIntent
from checkout.order.order import Order
from checkout.shared.caller import Caller


@pytest.fixture()
def context():
    """Scratch space steps use to hand results and failures along."""
    return {"error": None, "result": None}


@pytest.fixture()
def attempt(context):
    """Run an operation, keeping a checkout failure for later Then steps."""

    def _attempt(operation, *args, **kwargs):
        try:
            context["result"] = operation(*args, **kwargs)
        except CheckoutError as exc:
            context["error"] = exc
        return context["result"]

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a signed-in shopper", target_fixture="shopper")
def _signed_in_shopper():
    return Caller(owner_id="owner-bdd", session_id="sess-bdd", is_authenticated=True)


@given("a guest shopper", target_fixture="shopper")
def _guest_shopper():
    return Caller(session_id="sess-bdd-guest")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the purchase intent is "{status}"'))
def _intent_status(intent_id, status):
    assert current_domain.repository_for(PurchaseIntent).get(intent_id).status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def _order_payment_status(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).payment_status == status
