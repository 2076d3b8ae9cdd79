"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String, Text

from checkout.domain import checkout


@checkout.event(part_of="Cart")
class CartItemAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)


@checkout.event(part_of="Cart")
class CartItemUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@checkout.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@checkout.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)


@checkout.event(part_of="Cart")
class CartItemsSaved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_ids = Text(required=True)  # JSON array


@checkout.event(part_of="Cart")
class CartItemsRestored:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_ids = Text(required=True)  # JSON array


@checkout.event(part_of="Cart")
class CartsMerged:
    __version__ = 1

    cart_id = Identifier(required=True)
    source_session_id = String(required=True)
    items_merged_count = Integer(required=True)
