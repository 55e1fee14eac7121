import json
from decimal import Decimal
from statistics import mean
from typing import Any, Dict, Tuple

from bundlereco.domain.models.product import Catalog, Product
from bundlereco.domain.services.affinity_svc import top_pairs
from bundlereco.domain.services.constants import (
    ALL_KINDS,
    BUNDLE_CAP,
    GENERATED_BUNDLE_DISCOUNT_RANGE,
    GENERATED_UPSELL_DISCOUNT_RANGE,
    KIND_BUNDLE,
    KIND_UPSELL,
    UPSELL_CAP,
)
from bundlereco.domain.services.price_tier_svc import upgrade_paths

# Context caps (tokens are the budget, not correctness)
MAX_PROMPT_ORDERS = 250
MAX_TAGS = 8

def system_prompt(kind: str) -> str:
    if kind == KIND_BUNDLE:
        return (
            "You are an e-commerce optimization expert. Propose product BUNDLES that raise "
            "average order value, using ONLY the provided store data. Return strict JSON only."
        )
    if kind == KIND_UPSELL:
        return (
            "You are an e-commerce optimization expert. Propose UPSELL offers (a higher-value "
            "product for a given trigger product), using ONLY the provided store data. Return strict JSON only."
        )
    raise ValueError(f"Unknown kind for system prompt: {kind}")

def user_task(kind: str) -> str:
    constraints = (
        "RULES:\n"
        "- Use ONLY product ids present in PRODUCTS\n"
        "- Most important first\n"
        "- Reason: ≤25 words, factual\n"
        "- Format: strict JSON, no prose, no code fences"
    )

    if kind == KIND_BUNDLE:
        lo, hi = GENERATED_BUNDLE_DISCOUNT_RANGE
        output_format = (
            '{"bundles":[{"name":"Bundle name","description":"short pitch",'
            '"products":["<product.id>","<product.id>"],"discount":' + str(lo) + '-' + str(hi) + ','
            '"reason":"brief reason"}]}'
        )
        return (
            f"Propose up to {BUNDLE_CAP} bundles of 2-4 products bought together.\n\n"
            "SIGNALS:\n"
            "- CO_PURCHASES: product pairs with the number of orders containing both\n"
            "- ORDERS: product ids per order\n"
            "- Prefer complementary items over substitutes\n\n"
            f"DISCOUNT: integer percent between {lo} and {hi}\n\n"
            + constraints + "\n\n"
            "OUTPUT FORMAT: " + output_format
        )

    if kind == KIND_UPSELL:
        lo, hi = GENERATED_UPSELL_DISCOUNT_RANGE
        output_format = (
            '{"upsells":[{"name":"Offer name","triggerProductId":"<product.id>",'
            '"upsellProductId":"<product.id>","triggerType":"cart|product_page|post_purchase",'
            '"discount":' + str(lo) + '-' + str(hi) + ',"reason":"brief reason"}]}'
        )
        return (
            f"Propose up to {UPSELL_CAP} upsells: when a customer considers TRIGGER, offer UPSELL.\n\n"
            "SIGNALS:\n"
            "- PRICE_TIERS: same-category upgrade paths with relative price gap\n"
            "- ORDER_TOTALS: recent order values (AOV context)\n"
            "- UPSELL must differ from TRIGGER and be higher value\n\n"
            f"DISCOUNT: integer percent between {lo} and {hi}\n\n"
            + constraints + "\n\n"
            "OUTPUT FORMAT: " + output_format
        )

    raise ValueError(f"Unknown kind for user task: {kind}")

# =============================================================================
#                               JSON PRUNING
# =============================================================================

def _prune_empty(obj):
    """
    Recursively remove:
      - None
      - empty strings (after strip)
      - empty lists/dicts
    Keep: 0, False, and non-empty values.
    """
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            pv = _prune_empty(v)
            if pv is None or (isinstance(pv, (list, dict)) and len(pv) == 0):
                continue
            out[k] = pv
        return out
    if isinstance(obj, list):
        out = []
        for v in obj:
            pv = _prune_empty(v)
            if pv is None or (isinstance(pv, (list, dict)) and len(pv) == 0):
                continue
            out.append(pv)
        return out
    if isinstance(obj, str):
        s = obj.strip()
        return s if s != "" else None
    return obj

def _json_minify(obj: Dict[str, Any]) -> str:
    """
    Prune empty/null fields and serialize to compact JSON (no spaces).
    """
    return json.dumps(_prune_empty(obj), ensure_ascii=False, separators=(',', ':'))

# =============================================================================
#                               COMPACT HELPERS
# =============================================================================

def _money(value: Decimal) -> float:
    # json cannot serialize Decimal; cents precision is all the prompt needs
    return round(float(value), 2)

def _compact_product(p: Product) -> Dict[str, Any]:
    return {
        "id": p.id,
        "title": p.title,
        "category": p.category,
        "vendor": p.vendor,
        "price": _money(p.price),
        "tags": sorted(p.tags)[:MAX_TAGS],
    }

def _bundle_payload(catalog: Catalog) -> Dict[str, Any]:
    orders = catalog.orders[:MAX_PROMPT_ORDERS]
    return {
        "products": [_compact_product(p) for p in catalog.products],
        "co_purchases": [
            {"products": [p.first, p.second], "orders": p.frequency}
            for p in top_pairs(catalog.orders, limit=BUNDLE_CAP)
        ],
        "orders": [o.product_ids() for o in orders if len(o.product_ids()) > 1],
        "task": user_task(KIND_BUNDLE),
    }

def _upsell_payload(catalog: Catalog) -> Dict[str, Any]:
    totals = [_money(o.total_amount) for o in catalog.orders[:MAX_PROMPT_ORDERS]]
    return {
        "products": [
            {"id": p.id, "title": p.title, "category": p.category, "price": _money(p.price)}
            for p in catalog.products
        ],
        "price_tiers": [
            {"trigger": path.trigger.id, "upsell": path.upsell.id, "gap": round(float(path.ratio), 2)}
            for path in upgrade_paths(catalog.products, limit=UPSELL_CAP)
        ],
        "order_totals": {
            "count": len(totals),
            "average": round(mean(totals), 2) if totals else 0,
            "values": totals,
        },
        "task": user_task(KIND_UPSELL),
    }

def build_prompt(kind: str, catalog: Catalog) -> Tuple[str, str]:
    """Return (system, user) prompt texts for the given kind."""
    if kind not in ALL_KINDS:
        raise ValueError(f"Unknown kind for prompt: {kind}")
    payload = _bundle_payload(catalog) if kind == KIND_BUNDLE else _upsell_payload(catalog)
    return system_prompt(kind), _json_minify(payload)

