"""Tests for caller identity and session minting."""

import pytest

from checkout.errors import AuthRequired
from checkout.shared.caller import Caller, SessionIdentityFactory, command_fields, require_signed_in


class TestOwnership:
    def test_owner_record_matches_owner_only(self):
        caller = Caller(owner_id="owner-001", session_id="sess-001", is_authenticated=True)
        assert caller.owns("owner-001", None)
        assert not caller.owns("owner-002", None)

    def test_session_record_matches_session_only(self):
        guest = Caller(session_id="sess-001")
        assert guest.owns(None, "sess-001")
        assert not guest.owns(None, "sess-002")
        assert not guest.owns("owner-001", None)

    def test_missing_discriminator_never_matches(self):
        assert not Caller().owns(None, None)
        assert not Caller(owner_id="owner-001", is_authenticated=True).owns(None, "sess-001")

    def test_discriminator(self):
        assert Caller(owner_id="owner-001", session_id="s", is_authenticated=True).discriminator == "owner-001"
        assert Caller(session_id="s").discriminator == "s"


class TestSessionIdentityFactory:
    def test_mint_uses_injected_randomness(self):
        factory = SessionIdentityFactory(random_source=lambda: "abc123")
        assert factory.mint().session_id == "sess_abc123"

    def test_default_tokens_are_unique(self):
        factory = SessionIdentityFactory()
        assert factory.mint().session_id != factory.mint().session_id


class TestHelpers:
    def test_require_signed_in(self):
        assert require_signed_in(Caller(owner_id="owner-001", is_authenticated=True)) == "owner-001"
        with pytest.raises(AuthRequired):
            require_signed_in(Caller(session_id="sess-001"))

    def test_command_fields(self):
        fields = command_fields(Caller(owner_id="owner-001", is_authenticated=True, is_staff=True))
        assert fields == {
            "owner_id": "owner-001",
            "session_id": None,
            "is_authenticated": True,
            "is_staff": True,
        }
