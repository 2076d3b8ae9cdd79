"""Map checkout failures onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from checkout.domain import logger
from checkout.errors import CheckoutError


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    logger.info(
        "Checkout request refused",
        path=request.url.path,
        error=exc.kind,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_checkout_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutError, checkout_error_handler)
