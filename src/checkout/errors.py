"""Checkout error kinds.

Each error carries the HTTP status the API layer answers with and a short
``kind`` used as the ``error`` field of the response body. Field-level input
problems are not modelled here; aggregates raise Protean's ``ValidationError``
for those.
"""


class CheckoutError(Exception):
    """Base class for checkout failures surfaced directly to the caller."""

    status_code = 400
    kind = "checkout_error"

    def __init__(self, message: str, **extras) -> None:
        super().__init__(message)
        self.message = message
        self.extras = extras

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, **self.extras}


class NotFound(CheckoutError):
    status_code = 404
    kind = "not_found"


class Forbidden(CheckoutError):
    status_code = 403
    kind = "forbidden"

    def __init__(self, message: str = "You do not have access to this resource") -> None:
        super().__init__(message)


class Expired(CheckoutError):
    status_code = 410
    kind = "expired"

    def __init__(self, message: str = "Purchase intent has expired") -> None:
        super().__init__(message)


class Conflict(CheckoutError):
    status_code = 409
    kind = "conflict"


class InsufficientStock(CheckoutError):
    status_code = 409
    kind = "insufficient_stock"

    def __init__(self, available: int, message: str | None = None, **extras) -> None:
        super().__init__(message or f"Only {available} item(s) available", available=available, **extras)
        self.available = available


class AuthRequired(CheckoutError):
    status_code = 401
    kind = "auth_required"

    def __init__(self, message: str = "Please sign in or register to complete your purchase") -> None:
        super().__init__(message, requires_auth=True)


class GatewayError(CheckoutError):
    """Raised by gateway adapters when the processor call itself fails.

    The ledger converts it into a ``failed`` transaction row, so callers of
    ledger operations never see it.
    """

    status_code = 502
    kind = "gateway_error"
