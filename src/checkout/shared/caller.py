"""Caller identity as seen by the checkout engine.

Authentication is owned by the identity service. By the time a request
reaches a checkout operation, the caller has been resolved into a
``Caller`` carrying an owner id (authenticated users) and/or a guest
session id.
"""

import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from checkout.errors import AuthRequired


@dataclass(frozen=True)
class Caller:
    owner_id: str | None = None
    session_id: str | None = None
    is_authenticated: bool = False
    is_staff: bool = False

    @property
    def discriminator(self) -> str | None:
        """The single identity recorded on intents and carts the caller creates."""
        if self.is_authenticated and self.owner_id:
            return self.owner_id
        return self.session_id

    def owns(self, owner_id: str | None, session_id: str | None) -> bool:
        """Exact match against the one discriminator stored on a record.

        A record created by an owner is matched on owner id only, a record
        created by a guest on session id only. A missing discriminator on
        either side never matches.
        """
        if owner_id:
            return self.owner_id is not None and str(self.owner_id) == str(owner_id)
        if session_id:
            return self.session_id is not None and str(self.session_id) == str(session_id)
        return False


@dataclass(frozen=True)
class SessionIdentity:
    session_id: str
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def _token() -> str:
    return secrets.token_hex(16)


class SessionIdentityFactory:
    """Mints guest session identities.

    The randomness source is injectable so tests can produce predictable ids.
    """

    def __init__(self, random_source: Callable[[], str] = _token, prefix: str = "sess") -> None:
        self.random_source = random_source
        self.prefix = prefix

    def mint(self) -> SessionIdentity:
        return SessionIdentity(session_id=f"{self.prefix}_{self.random_source()}")


def caller_from(command) -> Caller:
    """Rebuild the caller carried on a command."""
    return Caller(
        owner_id=command.owner_id or None,
        session_id=command.session_id or None,
        is_authenticated=bool(command.is_authenticated),
        is_staff=bool(command.is_staff),
    )


def require_signed_in(caller: Caller) -> str:
    """Return the caller's owner id, or raise AuthRequired for guests."""
    if not caller.is_authenticated or not caller.owner_id:
        raise AuthRequired()
    return caller.owner_id


def command_fields(caller: Caller) -> dict:
    """The caller fields every caller-scoped command carries."""
    return {
        "owner_id": caller.owner_id,
        "session_id": caller.session_id,
        "is_authenticated": caller.is_authenticated,
        "is_staff": caller.is_staff,
    }
