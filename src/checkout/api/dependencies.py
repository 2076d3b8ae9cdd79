"""Request-scoped dependencies: resolving the caller.

Authentication lives in the identity service, which fronts this API and
forwards the resolved identity as headers. Guests without a session are
minted one here and handed it back in the ``X-Session-Id`` header.
"""

from fastapi import Header, Response

from checkout.shared.caller import Caller, SessionIdentityFactory

SESSION_HEADER = "X-Session-Id"

_TRUTHY = {"1", "true", "yes"}

session_factory = SessionIdentityFactory()


def build_caller(owner_id: str | None, session_id: str | None, staff: str | None) -> Caller:
    return Caller(
        owner_id=owner_id or None,
        session_id=session_id or None,
        is_authenticated=bool(owner_id),
        is_staff=bool(owner_id) and (staff or "").lower() in _TRUTHY,
    )


def resolve_caller(
    response: Response,
    x_owner_id: str | None = Header(default=None),
    x_session_id: str | None = Header(default=None),
    x_staff: str | None = Header(default=None),
) -> Caller:
    if not x_session_id:
        x_session_id = session_factory.mint().session_id
    response.headers[SESSION_HEADER] = x_session_id
    return build_caller(x_owner_id, x_session_id, x_staff)
