"""ThreeDSecureChallenge aggregate: the authentication step gating a confirmation.

A challenge is pending until the payer returns from the card network's
authentication page. Pending is not a failure: the gated transaction stays
``pending`` alongside it.

State Machine:
    PENDING → AUTHENTICATED
    PENDING → FAILED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from checkout.domain import checkout
from checkout.secure.events import ChallengeCompleted, ChallengeIssued


class ChallengeStatus(Enum):
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@checkout.aggregate
class ThreeDSecureChallenge:
    transaction_id = Identifier(required=True)
    status = String(choices=ChallengeStatus, default=ChallengeStatus.PENDING.value)
    challenge_required = Boolean(default=True)
    redirect_url = String(required=True, max_length=1000)
    return_url = String(max_length=1000)
    provider_reference = String(max_length=255)
    created_at = DateTime()
    completed_at = DateTime()

    @classmethod
    def issue(cls, transaction_id, redirect_url, return_url=None, provider_reference=None):
        now = datetime.now(UTC)
        challenge = cls(
            transaction_id=transaction_id,
            status=ChallengeStatus.PENDING.value,
            challenge_required=True,
            redirect_url=redirect_url,
            return_url=return_url,
            provider_reference=provider_reference,
            created_at=now,
        )
        challenge.raise_(
            ChallengeIssued(
                challenge_id=str(challenge.id),
                transaction_id=str(transaction_id),
                redirect_url=redirect_url,
                issued_at=now,
            )
        )
        return challenge

    @property
    def is_pending(self) -> bool:
        return self.status == ChallengeStatus.PENDING.value

    def complete(self, authenticated):
        if not self.is_pending:
            raise ValidationError({"status": [f"Challenge is already {self.status}"]})

        now = datetime.now(UTC)
        self.status = ChallengeStatus.AUTHENTICATED.value if authenticated else ChallengeStatus.FAILED.value
        self.completed_at = now

        self.raise_(
            ChallengeCompleted(
                challenge_id=str(self.id),
                transaction_id=str(self.transaction_id),
                status=self.status,
                completed_at=now,
            )
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "transaction_id": str(self.transaction_id),
            "status": self.status,
            "challenge_required": self.challenge_required,
            "redirect_url": self.redirect_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
