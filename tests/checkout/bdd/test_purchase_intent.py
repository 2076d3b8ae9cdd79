"""BDD tests for the buy-now purchase intent lifecycle."""

from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

from checkout.errors import AuthRequired, Conflict, Expired, InsufficientStock
from checkout.intent.address import attach_contact_details
from checkout.intent.cancellation import CancelPurchaseIntent
from checkout.intent.completion import complete_purchase_intent
from checkout.intent.creation import CreatePurchaseIntent
from checkout.intent.retrieval import get_purchase_intent
from checkout.order.order import Order
from checkout.shared.caller import command_fields

scenarios("features/purchase_intent.feature")

ADDRESS = {
    "full_name": "Sam Rivera",
    "street": "9 Elm Rd",
    "city": "Portland",
    "state": "OR",
    "postal_code": "97201",
    "country": "US",
}


@given(
    parsers.cfparse('the shopper starts a buy-now purchase of {quantity:d} "{product_id}"'),
    target_fixture="intent_id",
)
def start_purchase(shopper, quantity, product_id):
    command = CreatePurchaseIntent(**command_fields(shopper), product_id=product_id, quantity=quantity)
    return current_domain.process(command, asynchronous=False)["intent"]["id"]


@given(parsers.cfparse('another shopper has already bought the last "{product_id}"'))
def last_unit_sold(catalog, product_id):
    assert catalog.decrement_stock(product_id, 1)


@when("the shopper provides delivery details")
def provide_details(shopper, intent_id):
    attach_contact_details(intent_id, shopper, ADDRESS, "sam@example.com", "+1-555-0199")


@when("the shopper completes the purchase")
def complete(attempt, shopper, intent_id):
    attempt(complete_purchase_intent, intent_id, shopper)


@when("the shopper cancels the purchase")
def cancel(shopper, intent_id):
    current_domain.process(CancelPurchaseIntent(**command_fields(shopper), intent_id=intent_id), asynchronous=False)


@when("the shopper returns after the intent has lapsed")
def return_late(attempt, shopper, intent_id):
    attempt(get_purchase_intent, intent_id, shopper, as_of=datetime.now(UTC) + timedelta(hours=1))


@then(parsers.cfparse("an order totalling {total:f} is placed"))
def order_placed(context, total):
    assert context["error"] is None
    order = current_domain.repository_for(Order).get(context["result"]["order_id"])
    assert order.total == total


@then(parsers.cfparse('{remaining:d} units of "{product_id}" remain in stock'))
def stock_left(catalog, remaining, product_id):
    assert catalog.get_product(product_id).stock == remaining


@then("the shopper is asked to sign in")
def asked_to_sign_in(context):
    assert isinstance(context["error"], AuthRequired)


@then("the shopper is told the intent has expired")
def told_expired(context):
    assert isinstance(context["error"], Expired)


@then(parsers.cfparse("the shopper is told only {available:d} are available"))
def told_out_of_stock(context, available):
    assert isinstance(context["error"], InsufficientStock)
    assert context["error"].available == available


@then("the shopper is told the purchase conflicts with its state")
def told_conflict(context):
    assert isinstance(context["error"], Conflict)
