"""Cart aggregate: the mutable line-item list of one owner or guest session.

Totals are never adjusted incrementally. Every mutation re-derives subtotal,
tax, shipping and total from the full set of active lines, so two
concurrent mutations can only race on which quantity wins, never leave the
totals stale. Lines saved for later stay in the cart but count toward
nothing.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from checkout import settings
from checkout.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemsRestored,
    CartItemsSaved,
    CartItemUpdated,
    CartsMerged,
)
from checkout.domain import checkout


@checkout.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    customization = Text()  # JSON object
    saved_for_later = Boolean(default=False)
    added_at = DateTime()

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "variant_id": str(self.variant_id) if self.variant_id else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": round(self.unit_price * self.quantity, 2),
            "customization": json.loads(self.customization) if self.customization else None,
            "saved_for_later": self.saved_for_later,
        }


@checkout.aggregate
class Cart:
    owner_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)  # For guest cart identification
    lines = HasMany(CartLine)
    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    shipping = Float(default=0.0)
    total = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner_id=None, session_id=None):
        if not owner_id and not session_id:
            raise ValidationError({"owner": ["A cart belongs to an owner id or a session id"]})

        now = datetime.now(UTC)
        return cls(
            owner_id=owner_id,
            session_id=None if owner_id else session_id,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def active_lines(self):
        return [line for line in self.lines if not line.saved_for_later]

    @property
    def saved_lines(self):
        return [line for line in self.lines if line.saved_for_later]

    def line(self, line_id):
        return next((line for line in self.lines if str(line.id) == str(line_id)), None)

    def _matching_line(self, product_id, variant_id):
        return next(
            (
                line
                for line in self.active_lines
                if str(line.product_id) == str(product_id) and str(line.variant_id or "") == str(variant_id or "")
            ),
            None,
        )

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def recalculate(self):
        """Re-derive every total from the current active lines."""
        subtotal = round(sum(line.unit_price * line.quantity for line in self.active_lines), 2)
        if subtotal == 0 or subtotal >= settings.FREE_SHIPPING_THRESHOLD:
            shipping = 0.0
        else:
            shipping = settings.CART_SHIPPING_FEE
        tax = round(subtotal * settings.TAX_RATE, 2)

        self.subtotal = subtotal
        self.shipping = round(shipping, 2)
        self.tax = tax
        self.total = round(subtotal + shipping + tax, 2)
        self.updated_at = datetime.now(UTC)

    def summary(self) -> dict:
        return {
            "cart_id": str(self.id),
            "item_count": sum(line.quantity for line in self.active_lines),
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
        }

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, unit_price, variant_id=None, customization=None):
        """Add a line, or grow the matching active line. Returns the line."""
        existing = self._matching_line(product_id, variant_id)

        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = CartLine(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                unit_price=unit_price,
                customization=json.dumps(customization) if customization else None,
                saved_for_later=False,
                added_at=datetime.now(UTC),
            )
            self.add_lines(line)

        self.recalculate()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(line.id),
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                quantity=quantity,
            )
        )
        return line

    def update_quantity(self, line_id, quantity):
        """Set a line's quantity; zero or less removes the line."""
        line = self.line(line_id)
        if line is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        if quantity <= 0:
            self.remove_item(line_id)
            return

        previous_quantity = line.quantity
        line.quantity = quantity
        self.recalculate()

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                item_id=str(line_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, line_id):
        line = self.line(line_id)
        if line is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        self.remove_lines(line)
        self.recalculate()

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(line_id)))

    def clear(self, include_saved=False):
        """Remove every active line (and saved lines when asked)."""
        doomed = list(self.lines) if include_saved else self.active_lines
        for line in doomed:
            self.remove_lines(line)
        self.recalculate()

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(doomed)))
        return len(doomed)

    def save_for_later(self, line_ids):
        moved = self._toggle_saved(line_ids, saved=True)
        self.raise_(CartItemsSaved(cart_id=str(self.id), item_ids=json.dumps(moved)))
        return moved

    def move_to_cart(self, line_ids):
        moved = self._toggle_saved(line_ids, saved=False)
        self.raise_(CartItemsRestored(cart_id=str(self.id), item_ids=json.dumps(moved)))
        return moved

    def _toggle_saved(self, line_ids, saved):
        moved = []
        for line_id in line_ids:
            line = self.line(line_id)
            if line is None:
                raise ValidationError({"item_ids": [f"Item {line_id} not found in cart"]})
            if line.saved_for_later == saved:
                continue

            match = None if saved else self._matching_line(line.product_id, line.variant_id)
            if match is not None:
                # Restoring onto an identical active line folds the quantities together
                match.quantity += line.quantity
                self.remove_lines(line)
            else:
                line.saved_for_later = saved
            moved.append(str(line_id))

        self.recalculate()
        return moved

    # -------------------------------------------------------------------
    # Cart merging (guest → authenticated)
    # -------------------------------------------------------------------
    def merge_guest_lines(self, guest_cart):
        """Fold a guest cart's active lines into this cart by product and variant."""
        merged = 0
        now = datetime.now(UTC)

        for guest_line in guest_cart.active_lines:
            existing = self._matching_line(guest_line.product_id, guest_line.variant_id)
            if existing:
                existing.quantity += guest_line.quantity
            else:
                self.add_lines(
                    CartLine(
                        product_id=guest_line.product_id,
                        variant_id=guest_line.variant_id,
                        quantity=guest_line.quantity,
                        unit_price=guest_line.unit_price,
                        customization=guest_line.customization,
                        saved_for_later=False,
                        added_at=now,
                    )
                )
            merged += 1

        self.recalculate()

        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                source_session_id=str(guest_cart.session_id),
                items_merged_count=merged,
            )
        )
        return merged

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "items": [line.to_dict() for line in self.active_lines],
            "saved_items": [line.to_dict() for line in self.saved_lines],
            **{k: v for k, v in self.summary().items() if k != "cart_id"},
        }
