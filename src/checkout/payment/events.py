"""Domain events for the transaction ledger."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="PaymentTransaction")
class TransactionRecorded:
    """A row was appended to the ledger."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    order_id = Identifier()
    owner_id = Identifier(required=True)
    transaction_type = String(required=True)
    status = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    gateway = String(required=True)
    original_transaction_id = Identifier()
    recorded_at = DateTime(required=True)


@checkout.event(part_of="PaymentTransaction")
class TransactionSettled:
    """A pending row (cash on delivery, wallet, 3-D Secure) reached its outcome."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    order_id = Identifier()
    status = String(required=True)
    failure_reason = String()
    settled_at = DateTime(required=True)


@checkout.event(part_of="PaymentTransaction")
class AuthorizationCaptured:
    __version__ = 1

    authorization_id = Identifier(required=True)
    capture_transaction_id = Identifier(required=True)
    captured_at = DateTime(required=True)


@checkout.event(part_of="Refund")
class RefundIssued:
    __version__ = 1

    refund_id = Identifier(required=True)
    original_transaction_id = Identifier(required=True)
    order_id = Identifier()
    amount = Float(required=True)
    refund_type = String(required=True)
    status = String(required=True)
    requested_by = Identifier(required=True)
    issued_at = DateTime(required=True)


@checkout.event(part_of="PaymentMethod")
class PaymentMethodSaved:
    __version__ = 1

    payment_method_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    method_type = String(required=True)
    last4 = String()
    is_default = Boolean(required=True)
    saved_at = DateTime(required=True)


@checkout.event(part_of="PaymentMethod")
class PaymentMethodRemoved:
    __version__ = 1

    payment_method_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    removed_at = DateTime(required=True)


@checkout.event(part_of="WalletPayment")
class WalletPaymentRecorded:
    __version__ = 1

    wallet_payment_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    wallet_type = String(required=True)
    verification = String(required=True)
    risk_score = Integer()
    recorded_at = DateTime(required=True)
