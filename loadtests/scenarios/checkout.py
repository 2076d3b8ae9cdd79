"""Checkout load test scenarios.

Two stateful SequentialTaskSet journeys: the buy-now path from purchase
intent to a refunded payment, and the cart path from a guest cart through
merge and checkout.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    cart_checkout_data,
    cart_item_data,
    contact_details_data,
    owner_id,
    payment_method_data,
    purchase_intent_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import BuyNowState, CartState


class BuyNowJourney(SequentialTaskSet):
    """Create Intent -> Address -> Complete -> Save Card -> Pay -> Refund.

    The happy buy-now path, ending with a partial refund so the ledger
    carries payment, refund and Refund rows for every run.
    """

    def on_start(self):
        self.state = BuyNowState(owner_id=owner_id())

    @property
    def headers(self):
        return {"X-Owner-Id": self.state.owner_id}

    @task
    def create_intent(self):
        with self.client.post(
            "/checkout/buy-now",
            json=purchase_intent_data(),
            headers=self.headers,
            catch_response=True,
            name="POST /checkout/buy-now",
        ) as resp:
            if resp.status_code == 201:
                self.state.intent_id = resp.json()["intent"]["id"]
            else:
                resp.failure(f"Create intent failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def attach_address(self):
        with self.client.put(
            f"/checkout/buy-now/{self.state.intent_id}/address",
            json=contact_details_data(),
            headers=self.headers,
            catch_response=True,
            name="PUT /checkout/buy-now/{id}/address",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Attach address failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def complete_intent(self):
        with self.client.post(
            f"/checkout/buy-now/{self.state.intent_id}/complete",
            json={"payment_method": "online"},
            headers=self.headers,
            catch_response=True,
            name="POST /checkout/buy-now/{id}/complete",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
                self.state.current_status = "completed"
            else:
                resp.failure(f"Complete intent failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def save_card(self):
        with self.client.post(
            "/payments/methods",
            json=payment_method_data(),
            headers=self.headers,
            catch_response=True,
            name="POST /payments/methods",
        ) as resp:
            if resp.status_code == 201:
                self.state.payment_method_id = resp.json()["payment_method_id"]
            else:
                resp.failure(f"Save card failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def pay(self):
        with self.client.post(
            "/payments/process",
            json={"order_id": self.state.order_id, "payment_method_id": self.state.payment_method_id},
            headers=self.headers,
            catch_response=True,
            name="POST /payments/process",
        ) as resp:
            if resp.status_code == 201 and resp.json()["status"] == "success":
                self.state.transaction_id = resp.json()["transaction_id"]
                self.state.current_status = "paid"
            else:
                resp.failure(f"Payment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def partial_refund(self):
        with self.client.post(
            f"/payments/transactions/{self.state.transaction_id}/refund",
            json={"amount": 1.00, "reason": "load test"},
            headers=self.headers,
            catch_response=True,
            name="POST /payments/transactions/{id}/refund",
        ) as resp:
            if resp.status_code == 201:
                self.state.current_status = "partially_refunded"
            else:
                resp.failure(f"Refund failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CartJourney(SequentialTaskSet):
    """Guest Add x2 -> Validate -> Sign In + Merge -> Checkout."""

    def on_start(self):
        self.state = CartState()

    def _headers(self):
        if self.state.owner_id:
            return {"X-Owner-Id": self.state.owner_id, "X-Session-Id": self.state.session_id}
        return {"X-Session-Id": self.state.session_id} if self.state.session_id else {}

    @task
    def add_first_item(self):
        with self.client.post(
            "/carts/items",
            json=cart_item_data(),
            headers=self._headers(),
            catch_response=True,
            name="POST /carts/items",
        ) as resp:
            if resp.status_code == 201:
                self.state.session_id = resp.headers["X-Session-Id"]
                self.state.item_ids = [item["id"] for item in resp.json()["items"]]
            else:
                resp.failure(f"Add item failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_second_item(self):
        with self.client.post(
            "/carts/items",
            json=cart_item_data(),
            headers=self._headers(),
            catch_response=True,
            name="POST /carts/items",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Add item failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def validate(self):
        with self.client.post(
            "/carts/validate",
            headers=self._headers(),
            catch_response=True,
            name="POST /carts/validate",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Validate failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def sign_in_and_merge(self):
        guest_session = self.state.session_id
        self.state.owner_id = owner_id()
        with self.client.post(
            "/carts/merge",
            json={"guest_session_id": guest_session},
            headers=self._headers(),
            catch_response=True,
            name="POST /carts/merge",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Merge failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def checkout(self):
        with self.client.post(
            "/carts/checkout",
            json=cart_checkout_data(),
            headers=self._headers(),
            catch_response=True,
            name="POST /carts/checkout",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    """Simulates shoppers on the buy-now and cart paths."""

    wait_time = between(1, 3)
    tasks = {BuyNowJourney: 3, CartJourney: 2}
