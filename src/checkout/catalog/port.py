"""Product catalog port.

The checkout engine reads products through this interface only. Catalog
browsing, categories and brands are owned elsewhere.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductSnapshot:
    """Product fields the checkout engine depends on, as of the read."""

    id: str
    name: str
    price: float
    stock: int
    sku: str = ""
    description: str = ""
    sale_price: float | None = None

    @property
    def effective_price(self) -> float:
        return self.sale_price if self.sale_price else self.price


class ProductCatalog(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductSnapshot | None:
        """Fetch a product by id, or None when it does not exist."""
        ...

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units off the shelf.

        Returns False, leaving stock untouched, when fewer than ``quantity``
        units remain or the product is gone.
        """
        ...

    @abstractmethod
    def release_stock(self, product_id: str, quantity: int) -> None:
        """Put units taken by ``decrement_stock`` back on the shelf."""
        ...
