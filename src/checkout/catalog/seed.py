"""Demo products for local development and load testing."""

from checkout.catalog.memory_adapter import InMemoryCatalog

DEMO_PRODUCTS = [
    {"product_id": "demo-tee", "name": "Classic Tee", "sku": "TEE-001", "price": 19.99, "stock": 100000},
    {"product_id": "demo-hoodie", "name": "Zip Hoodie", "sku": "HOOD-001", "price": 54.00, "stock": 100000},
    {
        "product_id": "demo-mug",
        "name": "Enamel Mug",
        "sku": "MUG-001",
        "price": 14.00,
        "sale_price": 11.50,
        "stock": 100000,
    },
    {"product_id": "demo-poster", "name": "Limited Poster", "sku": "POS-001", "price": 30.00, "stock": 25},
]


def seed_demo_catalog(catalog: InMemoryCatalog) -> int:
    for product in DEMO_PRODUCTS:
        catalog.add_product(description=f"Demo product {product['sku']}", **product)
    return len(DEMO_PRODUCTS)
