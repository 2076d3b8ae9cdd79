"""ShippingAddress value object shared by purchase intents and orders."""

from protean.fields import String

from checkout.domain import checkout


@checkout.value_object
class ShippingAddress:
    """A delivery address captured during checkout.

    Once copied onto an Order the address never changes, regardless of later
    edits to the customer's address book.
    """

    full_name = String(required=True, max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)

    def to_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }
