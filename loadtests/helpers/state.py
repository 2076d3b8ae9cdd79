"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state: no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class BuyNowState:
    """Tracks state for a single buy-now purchase."""

    owner_id: str | None = None
    intent_id: str | None = None
    order_id: str | None = None
    payment_method_id: str | None = None
    transaction_id: str | None = None
    current_status: str = "pending"


@dataclass
class CartState:
    """Tracks state for a shopping cart lifecycle."""

    session_id: str | None = None
    owner_id: str | None = None
    item_ids: list[str] = field(default_factory=list)
    order_id: str | None = None
