"""Tests for the catalog, channel hub and notification adapters."""

from protean.utils.globals import current_domain

from checkout.catalog import get_catalog, reset_catalog
from checkout.catalog.memory_adapter import InMemoryCatalog
from checkout.catalog.seed import DEMO_PRODUCTS, seed_demo_catalog
from checkout.intent.address import attach_contact_details
from checkout.intent.completion import complete_purchase_intent
from checkout.intent.creation import CreatePurchaseIntent
from checkout.notifications.dispatch import dispatch_notification
from checkout.realtime.broadcast import channel_for
from checkout.realtime.memory_hub import InMemoryChannelHub
from checkout.realtime.recording_hub import RecordingChannelHub
from checkout.shared.caller import command_fields


class TestInMemoryCatalog:
    def test_effective_price_prefers_sale(self, catalog):
        assert catalog.get_product("prod-gadget").effective_price == 50.0
        assert catalog.get_product("prod-widget").effective_price == 25.0

    def test_decrement_is_all_or_nothing(self, catalog):
        assert catalog.decrement_stock("prod-gadget", 2) is True
        assert catalog.decrement_stock("prod-gadget", 2) is False
        assert catalog.get_product("prod-gadget").stock == 1

    def test_release_returns_stock(self, catalog):
        catalog.decrement_stock("prod-widget", 4)
        catalog.release_stock("prod-widget", 4)
        assert catalog.get_product("prod-widget").stock == 10

    def test_missing_product(self, catalog):
        assert catalog.get_product("prod-missing") is None
        assert catalog.decrement_stock("prod-missing", 1) is False

    def test_seed_demo_catalog(self):
        catalog = InMemoryCatalog()
        seed_demo_catalog(catalog)
        assert all(catalog.get_product(p["product_id"]) for p in DEMO_PRODUCTS)

    def test_factory_defaults_to_in_memory(self):
        reset_catalog()
        assert isinstance(get_catalog(), InMemoryCatalog)


class TestChannelHub:
    def test_channel_keys(self):
        assert channel_for(owner_id="owner-001", session_id="sess-1") == "cart-user-owner-001"
        assert channel_for(session_id="sess-1") == "cart-session-sess-1"

    def test_publish_reaches_only_channel_listeners(self):
        hub = InMemoryChannelHub()
        seen = []
        hub.subscribe("cart-user-a", lambda event, payload: seen.append(("a", event)))
        hub.subscribe("cart-user-b", lambda event, payload: seen.append(("b", event)))

        assert hub.publish("cart-user-a", "cart-updated", {}) == 1
        assert seen == [("a", "cart-updated")]

    def test_unsubscribe(self):
        hub = InMemoryChannelHub()
        subscription = hub.subscribe("cart-user-a", lambda event, payload: None)
        hub.unsubscribe(subscription)
        assert hub.listener_count("cart-user-a") == 0
        assert hub.publish("cart-user-a", "cart-updated", {}) == 0

    def test_failing_listener_does_not_block_others(self):
        hub = InMemoryChannelHub()
        seen = []

        def broken(event, payload):
            raise RuntimeError("socket closed")

        hub.subscribe("cart-user-a", broken)
        hub.subscribe("cart-user-a", lambda event, payload: seen.append(event))
        assert hub.publish("cart-user-a", "cart-updated", {}) == 1
        assert seen == ["cart-updated"]

    def test_publishing_keeps_no_history(self):
        hub = InMemoryChannelHub()
        for _ in range(100):
            hub.publish("cart-user-a", "cart-updated", {"item_count": 1})

        assert vars(hub).keys() == {"_listeners", "_lock"}

    def test_recording_hub_keeps_published_events(self):
        hub = RecordingChannelHub()
        hub.publish("cart-user-a", "cart-updated", {})
        hub.publish("cart-user-b", "cart-cleared", {})

        assert hub.events_on("cart-user-a") == ["cart-updated"]
        assert len(hub.published) == 2


class TestNotificationDispatch:
    def test_dispatch_records(self, notifier):
        assert dispatch_notification("owner-001", "order_confirmation", {"order_id": "o-1"}) is True
        assert notifier.sent == [
            {"owner_id": "owner-001", "event": "order_confirmation", "payload": {"order_id": "o-1"}}
        ]

    def test_failure_is_dropped(self, notifier):
        notifier.configure(should_succeed=False)
        assert dispatch_notification("owner-001", "order_confirmation", {}) is False

    def test_no_owner_is_skipped(self, notifier):
        assert dispatch_notification(None, "order_confirmation", {}) is False
        assert notifier.sent == []

    def test_failing_notifier_never_fails_checkout(self, owner, address, notifier):
        notifier.configure(should_succeed=False)
        created = current_domain.process(
            CreatePurchaseIntent(**command_fields(owner), product_id="prod-widget", quantity=1),
            asynchronous=False,
        )
        intent_id = created["intent"]["id"]
        attach_contact_details(intent_id, owner, address, "jane@example.com", "+1-555-0100")
        assert complete_purchase_intent(intent_id, owner)["order_id"]
