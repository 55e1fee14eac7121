import pytest

from bundlereco.core.config import Settings
from bundlereco.domain.services.normalizer import normalize_catalog


@pytest.fixture
def settings():
    return Settings(_env_file=None, OPENAI_API_KEY="sk-test", REDIS_URL="")


@pytest.fixture
def raw_products():
    # Shopify GraphQL node shape, as returned by the Admin API
    return [
        {"id": "gid://shopify/Product/1", "title": "Tee", "productType": "Apparel", "vendor": "Acme",
         "tags": ["cotton"], "variants": {"edges": [{"node": {"price": "20.00"}}]}},
        {"id": "gid://shopify/Product/2", "title": "Hoodie", "productType": "Apparel", "vendor": "Acme",
         "tags": [], "variants": {"edges": [{"node": {"price": "45.00"}}]}},
        {"id": "gid://shopify/Product/3", "title": "Mug", "productType": "Kitchen", "vendor": "Acme",
         "tags": [], "variants": {"edges": [{"node": {"price": "12.00"}}]}},
        {"id": "gid://shopify/Product/4", "title": "Big Mug", "productType": "Kitchen", "vendor": "Acme",
         "tags": [], "variants": {"edges": [{"node": {"price": "15.00"}}]}},
    ]


def _order(oid, *pids, total="0"):
    return {
        "id": f"gid://shopify/Order/{oid}",
        "createdAt": "2024-05-01T10:00:00Z",
        "totalPriceSet": {"shopMoney": {"amount": total}},
        "lineItems": {"edges": [
            {"node": {"quantity": 1, "variant": {"product": {"id": f"gid://shopify/Product/{pid}"}}}}
            for pid in pids
        ]},
    }


@pytest.fixture
def raw_orders():
    return [
        _order(1, 1, 2, total="65.00"),
        _order(2, 2, 1, total="65.00"),
        _order(3, 1, 3, total="32.00"),
        _order(4, 3, 4, total="27.00"),
        _order(5, 3, 4, 1, total="47.00"),
    ]


@pytest.fixture
def catalog(raw_products, raw_orders):
    return normalize_catalog(raw_products, raw_orders)


@pytest.fixture
def tee_hoodie():
    """Flat-shape scenario: two apparel products bought together twice."""
    products = [
        {"id": "1", "title": "Tee", "category": "Apparel", "price": 20},
        {"id": "2", "title": "Hoodie", "category": "Apparel", "price": 45},
    ]
    orders = [
        {"lineItems": [{"productId": "1"}, {"productId": "2"}]},
        {"lineItems": [{"productId": "1"}, {"productId": "2"}]},
    ]
    return products, orders
