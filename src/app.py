"""Checkout FastAPI application.

Web server for the checkout engine: buy-now purchase intents, payments,
orders and carts. Commands are processed synchronously over HTTP inside
the checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from checkout import settings
from checkout.api import (
    cart_router,
    intent_router,
    order_router,
    payment_router,
    register_checkout_error_handlers,
)
from checkout.catalog import get_catalog
from checkout.catalog.seed import seed_demo_catalog
from checkout.domain import checkout

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay in checkout/domain.toml.
checkout.init()

if settings.SEED_DEMO_CATALOG and not settings.is_production():
    seed_demo_catalog(get_catalog())

# ---------------------------------------------------------------------------
# Route prefixes served by the checkout domain
# ---------------------------------------------------------------------------
_DOMAIN_PREFIXES = ("/checkout", "/payments", "/orders", "/carts")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Checkout API",
    description="Purchase intents, payment ledger, orders and carts",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Id"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context for each domain request."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with checkout.domain_context():
            response = await call_next(request)
        return response
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
app.include_router(intent_router)
app.include_router(payment_router)
app.include_router(order_router)
app.include_router(cart_router)

register_exception_handlers(app)
register_checkout_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"checkout": {"name": checkout.name}},
        }
    )
