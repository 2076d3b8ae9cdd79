"""Stock taken for the length of an order-creating operation.

``reserved_stock`` decrements every line up front and gives all of it back
if anything inside the block raises, including a failed commit of the
command's unit of work. It must therefore wrap ``current_domain.process``
rather than run inside a handler: the handler's unit of work commits after
the handler returns, and a version conflict re-runs the handler from the top.
"""

from collections.abc import Iterable
from contextlib import contextmanager

from checkout.catalog import get_catalog
from checkout.domain import logger
from checkout.errors import InsufficientStock, NotFound


@contextmanager
def reserved_stock(lines: Iterable[tuple[str, int]], product_label: bool = False):
    """Take ``quantity`` units of each ``product_id`` for the duration of the block.

    Args:
        lines: ``(product_id, quantity)`` pairs.
        product_label: Name the short product in ``InsufficientStock`` (cart
            checkout covers several products, buy-now only one).

    Raises:
        NotFound: A product is no longer in the catalog.
        InsufficientStock: A line cannot be covered. Stock already taken for
            earlier lines is put back first.
    """
    catalog = get_catalog()
    taken = []

    try:
        for product_id, quantity in lines:
            if catalog.get_product(product_id) is None:
                raise NotFound(f"Product {product_id} is no longer available" if product_label else "Product not found")
            if not catalog.decrement_stock(product_id, quantity):
                current = catalog.get_product(product_id)
                available = current.stock if current else 0
                if product_label:
                    raise InsufficientStock(available=available, product_id=str(product_id))
                raise InsufficientStock(available=available)
            taken.append((product_id, quantity))

        yield taken
    except Exception:
        for product_id, quantity in taken:
            catalog.release_stock(product_id, quantity)
        if taken:
            logger.info("Reserved stock released", lines=len(taken))
        raise
