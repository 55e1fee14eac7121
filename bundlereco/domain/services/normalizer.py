import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from bundlereco.domain.models.product import DEFAULT_CATEGORY, Catalog, LineItem, Order, Product
from bundlereco.domain.services.constants import GID_SCHEME

logger = logging.getLogger(__name__)

# --- helpers ---------------------------------------------------------------

def strip_id_prefix(raw_id: Any) -> Optional[str]:
    """
    "gid://shopify/Product/123" -> "123"; bare ids are returned trimmed.
    Returns None when nothing usable is left.
    """
    if raw_id is None:
        return None
    s = str(raw_id).strip()
    if GID_SCHEME in s:
        s = s.rsplit("/", 1)[-1]
    return s or None

def _nodes(value: Any) -> List[Dict[str, Any]]:
    """
    Flatten the connection shapes returned by GraphQL APIs:
      {"edges": [{"node": {...}}]}, {"nodes": [...]}, or a plain list.
    Non-dict entries are dropped.
    """
    if isinstance(value, dict):
        if isinstance(value.get("edges"), list):
            value = [e.get("node") if isinstance(e, dict) else None for e in value["edges"]]
        elif isinstance(value.get("nodes"), list):
            value = value["nodes"]
        else:
            return []
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, dict)]

def _to_price(value: Any) -> Decimal:
    # via str(): "19.99" and 19.99 both give Decimal("19.99"), not the binary float
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError, OverflowError):
        return Decimal(0)
    if not d.is_finite() or d < 0:
        return Decimal(0)
    return d

def _to_quantity(value: Any) -> int:
    try:
        q = int(value)
    except (TypeError, ValueError, OverflowError):  # int(float("inf")) overflows
        return 1
    return q if q >= 1 else 1

def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

def _to_tags(value: Any) -> frozenset:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(t.strip() for t in value if isinstance(t, str) and t.strip())

def _dig(doc: Dict[str, Any], *path: str) -> Any:
    cur: Any = doc
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur

# --- products --------------------------------------------------------------

def _first_variant_price(raw: Dict[str, Any]) -> Decimal:
    if "price" in raw and not isinstance(raw.get("price"), dict):
        return _to_price(raw.get("price"))
    variants = _nodes(raw.get("variants"))
    if not variants:
        return Decimal(0)
    return _to_price(variants[0].get("price"))

def normalize_product(raw: Dict[str, Any]) -> Optional[Product]:
    pid = strip_id_prefix(raw.get("id"))
    if not pid:
        return None
    category = raw.get("category") or raw.get("productType") or raw.get("product_type")
    if not isinstance(category, str) or not category.strip():
        category = DEFAULT_CATEGORY
    title = raw.get("title") or raw.get("name") or ""
    vendor = raw.get("vendor")
    return Product(
        id=pid,
        title=str(title),
        category=category.strip(),
        vendor=str(vendor) if vendor else None,
        tags=_to_tags(raw.get("tags")),
        price=_first_variant_price(raw),
    )

def normalize_products(raw_products: Any) -> List[Product]:
    out: List[Product] = []
    seen = set()
    for raw in _nodes(raw_products):
        p = normalize_product(raw)
        if p is None:
            logger.debug("normalizer skipped product without id keys=%s", sorted(raw.keys()))
            continue
        if p.id in seen:
            continue
        seen.add(p.id)
        out.append(p)
    return out

# --- orders ----------------------------------------------------------------

def _line_item_product_id(raw: Dict[str, Any]) -> Optional[str]:
    for candidate in (
        raw.get("productId"),
        raw.get("product_id"),
        _dig(raw, "product", "id"),
        _dig(raw, "variant", "product", "id"),
    ):
        pid = strip_id_prefix(candidate)
        if pid:
            return pid
    return None

def _order_total(raw: Dict[str, Any]) -> Decimal:
    for candidate in (
        raw.get("totalAmount"),
        raw.get("total_amount"),
        _dig(raw, "totalPriceSet", "shopMoney", "amount"),
    ):
        if candidate is not None:
            return _to_price(candidate)
    return Decimal(0)

def normalize_order(raw: Dict[str, Any], *, fallback_id: str) -> Order:
    items: List[LineItem] = []
    for li in _nodes(raw.get("lineItems", raw.get("line_items"))):
        pid = _line_item_product_id(li)
        if not pid:
            continue  # custom/deleted products have no product reference
        items.append(LineItem(product_id=pid, quantity=_to_quantity(li.get("quantity", 1))))
    return Order(
        id=strip_id_prefix(raw.get("id")) or fallback_id,
        created_at=_to_datetime(raw.get("createdAt", raw.get("created_at"))),
        total_amount=_order_total(raw),
        line_items=items,
    )

def normalize_orders(raw_orders: Any) -> List[Order]:
    return [normalize_order(raw, fallback_id=f"order-{i}") for i, raw in enumerate(_nodes(raw_orders))]

# --- public API ------------------------------------------------------------

def normalize_catalog(raw_products: Any, raw_orders: Any) -> Catalog:
    """
    Convert raw platform records into the flat Catalog used by every analyser.
    Never raises on malformed input: bad fields degrade to defaults.
    """
    products = normalize_products(raw_products)
    orders = normalize_orders(raw_orders)
    logger.info("normalizer products=%s orders=%s", len(products), len(orders))
    return Catalog(products=products, orders=orders)
