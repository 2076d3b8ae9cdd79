"""EmailAddress value object for contact emails captured at checkout."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from checkout.domain import checkout

_FORBIDDEN = (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


def _invalid():
    return ValidationError({"email": ["Enter a valid email address"]})


@checkout.value_object
class EmailAddress:
    """An email address with exactly one ``@``, a dotted domain and no stray characters.

    Domain literals such as ``user@[127.0.0.1]`` are accepted as written.
    """

    address = String(required=True, max_length=254)

    @invariant.post
    def verify_email_address(self):
        email = self.address
        if any(ch.isspace() for ch in email) or email.count("@") != 1:
            raise _invalid()

        local_part, domain_part = email.split("@", 1)
        literal = domain_part.startswith("[") and domain_part.endswith("]")

        for part in (local_part, domain_part):
            if not part or part.startswith(".") or part.endswith(".") or ".." in part:
                raise _invalid()

        if not literal:
            labels = domain_part.split(".")
            if len(labels) < 2 or any(label.startswith("-") or label.endswith("-") for label in labels):
                raise _invalid()

        checked = local_part if literal else email
        if any(ch in checked for ch in _FORBIDDEN):
            raise _invalid()
