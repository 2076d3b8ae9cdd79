import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers

from checkout.api import (
    cart_router,
    intent_router,
    order_router,
    payment_router,
    register_checkout_error_handlers,
)


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(intent_router)
    app.include_router(payment_router)
    app.include_router(order_router)
    app.include_router(cart_router)
    register_exception_handlers(app)
    register_checkout_error_handlers(app)
    return TestClient(app)
