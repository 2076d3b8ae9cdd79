"""In-memory product catalog, used in development and tests."""

import threading
from dataclasses import replace

from checkout.catalog.port import ProductCatalog, ProductSnapshot


class InMemoryCatalog(ProductCatalog):
    def __init__(self) -> None:
        self._products: dict[str, ProductSnapshot] = {}
        self._lock = threading.Lock()

    def add_product(
        self,
        product_id: str,
        name: str,
        price: float,
        stock: int,
        sku: str = "",
        description: str = "",
        sale_price: float | None = None,
    ) -> ProductSnapshot:
        product = ProductSnapshot(
            id=str(product_id),
            name=name,
            price=price,
            stock=stock,
            sku=sku,
            description=description,
            sale_price=sale_price,
        )
        with self._lock:
            self._products[str(product_id)] = product
        return product

    def update_product(self, product_id: str, **changes) -> ProductSnapshot:
        with self._lock:
            product = replace(self._products[str(product_id)], **changes)
            self._products[str(product_id)] = product
        return product

    def remove_product(self, product_id: str) -> None:
        with self._lock:
            self._products.pop(str(product_id), None)

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        with self._lock:
            return self._products.get(str(product_id))

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        with self._lock:
            product = self._products.get(str(product_id))
            if product is None or product.stock < quantity:
                return False
            self._products[str(product_id)] = replace(product, stock=product.stock - quantity)
            return True

    def release_stock(self, product_id: str, quantity: int) -> None:
        with self._lock:
            product = self._products.get(str(product_id))
            if product is not None:
                self._products[str(product_id)] = replace(product, stock=product.stock + quantity)
