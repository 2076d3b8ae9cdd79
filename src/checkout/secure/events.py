"""Domain events for 3-D Secure challenges."""

from protean.fields import DateTime, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="ThreeDSecureChallenge")
class ChallengeIssued:
    __version__ = 1

    challenge_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    redirect_url = String(required=True)
    issued_at = DateTime(required=True)


@checkout.event(part_of="ThreeDSecureChallenge")
class ChallengeCompleted:
    __version__ = 1

    challenge_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    status = String(required=True)
    completed_at = DateTime(required=True)
