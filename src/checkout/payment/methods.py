"""Stored payment methods: commands, handler and listing."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import NotFound
from checkout.payment.payment_method import PaymentMethod, PaymentMethodType
from checkout.shared.caller import Caller, caller_from, require_signed_in


@checkout.command(part_of="PaymentMethod")
class SavePaymentMethod:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    method_type = String(required=True, choices=PaymentMethodType)
    gateway_method_ref = String(required=True, max_length=255)
    brand = String(max_length=50)
    last4 = String(max_length=4)
    exp_month = Integer(min_value=1, max_value=12)
    exp_year = Integer()
    is_default = Boolean(default=False)


@checkout.command(part_of="PaymentMethod")
class RemovePaymentMethod:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    payment_method_id = Identifier(required=True)


def _active_methods(owner_id):
    return (
        current_domain.repository_for(PaymentMethod)
        ._dao.query.filter(owner_id=str(owner_id), is_active=True)
        .all()
        .items
    )


def list_payment_methods(caller: Caller) -> list[dict]:
    owner_id = require_signed_in(caller)
    methods = sorted(_active_methods(owner_id), key=lambda m: (not m.is_default, m.created_at))
    return [m.to_dict() for m in methods]


@checkout.command_handler(part_of=PaymentMethod)
class PaymentMethodHandler:
    @handle(SavePaymentMethod)
    def save_payment_method(self, command):
        owner_id = require_signed_in(caller_from(command))
        repo = current_domain.repository_for(PaymentMethod)
        existing = _active_methods(owner_id)

        # The first method on file becomes the default
        make_default = bool(command.is_default) or not existing
        if make_default:
            for method in existing:
                if method.is_default:
                    method.is_default = False
                    repo.add(method)

        method = PaymentMethod.save(
            owner_id=owner_id,
            method_type=command.method_type,
            gateway_method_ref=command.gateway_method_ref,
            brand=command.brand,
            last4=command.last4,
            exp_month=command.exp_month,
            exp_year=command.exp_year,
            is_default=make_default,
        )
        repo.add(method)
        return str(method.id)

    @handle(RemovePaymentMethod)
    def remove_payment_method(self, command):
        owner_id = require_signed_in(caller_from(command))
        repo = current_domain.repository_for(PaymentMethod)
        try:
            method = repo.get(command.payment_method_id)
        except ObjectNotFoundError:
            raise NotFound("Payment method not found") from None
        if str(method.owner_id) != str(owner_id) or not method.is_active:
            raise NotFound("Payment method not found")

        was_default = method.is_default
        method.remove()
        repo.add(method)

        # Promote the oldest remaining method
        if was_default:
            remaining = sorted(
                (m for m in _active_methods(owner_id) if str(m.id) != str(method.id)),
                key=lambda m: m.created_at,
            )
            if remaining:
                remaining[0].is_default = True
                repo.add(remaining[0])
