from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

from checkout.catalog import reset_catalog, set_catalog
from checkout.catalog.memory_adapter import InMemoryCatalog
from checkout.gateway import reset_gateway, set_gateway
from checkout.gateway.fake_adapter import FakeGateway
from checkout.notifications import reset_notifier, set_notifier
from checkout.notifications.fake_adapter import RecordingNotifier
from checkout.realtime import reset_hub, set_hub
from checkout.realtime.recording_hub import RecordingChannelHub
from checkout.shared.caller import Caller


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


# ---------------------------------------------------------------------------
# Adapters, a fresh instance of each per test
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_product("prod-widget", name="Widget", price=25.00, stock=10, sku="WID-001", description="A widget")
    catalog.add_product(
        "prod-gadget",
        name="Gadget",
        price=60.00,
        sale_price=50.00,
        stock=3,
        sku="GAD-001",
        description="A gadget on sale",
    )
    catalog.add_product("prod-last", name="Last One", price=40.00, stock=1, sku="LST-001")
    set_catalog(catalog)
    yield catalog
    reset_catalog()


@pytest.fixture(autouse=True)
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture(autouse=True)
def notifier():
    notifier = RecordingNotifier()
    set_notifier(notifier)
    yield notifier
    reset_notifier()


@pytest.fixture(autouse=True)
def hub():
    hub = RecordingChannelHub()
    set_hub(hub)
    yield hub
    reset_hub()


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------
@pytest.fixture()
def owner():
    return Caller(owner_id="owner-001", session_id="sess-owner", is_authenticated=True)


@pytest.fixture()
def other_owner():
    return Caller(owner_id="owner-002", session_id="sess-other", is_authenticated=True)


@pytest.fixture()
def guest():
    return Caller(session_id="sess-guest")


@pytest.fixture()
def staff():
    return Caller(owner_id="staff-001", is_authenticated=True, is_staff=True)


@pytest.fixture()
def address():
    return {
        "full_name": "Jane Doe",
        "street": "123 Main St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    }


@pytest.fixture()
def later():
    """A reference time past every freshly created intent's expiry."""
    return datetime.now(UTC) + timedelta(minutes=30)


# ---------------------------------------------------------------------------
# Seeded records
# ---------------------------------------------------------------------------
@pytest.fixture()
def placed_order(owner, address):
    """A pending buy-now order for two widgets: 50.00 + 4.25 tax, free shipping."""
    from checkout.order.materializer import materialize
    from checkout.order.order import OrderSource
    from checkout.shared.address import ShippingAddress

    return materialize(
        owner_id=owner.owner_id,
        lines=[
            {
                "product_id": "prod-widget",
                "name": "Widget",
                "sku": "WID-001",
                "description": "A widget",
                "quantity": 2,
                "unit_price": 25.00,
            }
        ],
        source=OrderSource.BUY_NOW.value,
        shipping_address=ShippingAddress(**address),
        email="jane@example.com",
        phone="+1-555-0100",
    )


@pytest.fixture()
def card(owner):
    """The owner's default card on file."""
    from checkout.payment.methods import SavePaymentMethod
    from checkout.shared.caller import command_fields

    return current_domain.process(
        SavePaymentMethod(
            **command_fields(owner),
            method_type="card",
            gateway_method_ref="pm_card_visa",
            brand="visa",
            last4="4242",
            exp_month=12,
            exp_year=2030,
        ),
        asynchronous=False,
    )
