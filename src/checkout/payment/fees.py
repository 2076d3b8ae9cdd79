"""Processor fee computation: a flat fee plus a percentage of the amount."""

from checkout import settings
from checkout.payment.transaction import FeeBreakdown

CASH_ON_DELIVERY = "cod"


def compute_fees(amount: float, gateway: str) -> FeeBreakdown:
    """Fee breakdown for ``amount`` processed through ``gateway``.

    Cash on delivery bypasses the processor and carries no fees.
    """
    if gateway == CASH_ON_DELIVERY:
        return FeeBreakdown(fixed_fee=0.0, percentage_fee=0.0, total_fee=0.0, net_amount=round(amount, 2))

    fixed_fee = round(settings.FEE_FIXED, 2)
    percentage_fee = round(amount * settings.FEE_PERCENT / 100, 2)
    total_fee = round(fixed_fee + percentage_fee, 2)
    return FeeBreakdown(
        fixed_fee=fixed_fee,
        percentage_fee=percentage_fee,
        total_fee=total_fee,
        net_amount=round(amount - total_fee, 2),
    )


def refund_fees(amount: float) -> FeeBreakdown:
    """Refunds carry no processor fee; the net amount leaves the merchant."""
    return FeeBreakdown(fixed_fee=0.0, percentage_fee=0.0, total_fee=0.0, net_amount=-round(amount, 2))
