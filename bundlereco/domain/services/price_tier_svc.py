import logging
import math
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional, Sequence

from bundlereco.domain.models.product import Catalog, Product
from bundlereco.domain.models.recommendation import SourceTag, TriggerContext, UpsellCandidate
from bundlereco.domain.services.constants import (
    HEURISTIC_UPSELL_DISCOUNT,
    MAX_UPGRADE_RATIO,
    MIN_UPGRADE_RATIO,
    UPSELL_CAP,
)

logger = logging.getLogger(__name__)

class UpgradePath(NamedTuple):
    trigger: Product
    upsell: Product
    ratio: Decimal

    @property
    def priority(self) -> int:
        return math.floor(self.ratio * 100)

def group_by_category(products: Sequence[Product]) -> Dict[str, List[Product]]:
    """Categories in first-appearance order."""
    groups: Dict[str, List[Product]] = {}
    for p in products:
        groups.setdefault(p.category, []).append(p)
    return groups

def upgrade_ratio(lower: Decimal, upper: Decimal) -> Optional[Decimal]:
    """(upper - lower) / lower, or None when lower is 0 (no valid upgrade path)."""
    if lower <= 0:
        return None
    return (upper - lower) / lower

def within_upgrade_bounds(lower: Decimal, upper: Decimal) -> bool:
    """
    MIN_UPGRADE_RATIO <= (upper - lower) / lower <= MAX_UPGRADE_RATIO, checked
    by cross-multiplying so exact +20% / +200% prices sit on the bound.
    """
    gap = upper - lower
    return MIN_UPGRADE_RATIO * lower <= gap <= MAX_UPGRADE_RATIO * lower

def upgrade_paths(products: Sequence[Product], *, limit: Optional[int] = UPSELL_CAP) -> List[UpgradePath]:
    """
    Adjacent price tiers inside each category whose relative gap is in
    [MIN_UPGRADE_RATIO, MAX_UPGRADE_RATIO] (both inclusive).
    Keeps category order, then ascending price order.
    """
    paths: List[UpgradePath] = []
    for category, members in group_by_category(products).items():
        if len(members) < 2:
            continue
        tiers = sorted(members, key=lambda p: p.price)  # stable on equal prices
        for lower, upper in zip(tiers, tiers[1:]):
            ratio = upgrade_ratio(lower.price, upper.price)
            if ratio is None:
                logger.debug("price_tier skip zero-price trigger=%s category=%s", lower.id, category)
                continue
            if within_upgrade_bounds(lower.price, upper.price):
                paths.append(UpgradePath(lower, upper, ratio))
    return paths if limit is None else paths[:limit]

def heuristic_upsells(catalog: Catalog, *, limit: int = UPSELL_CAP) -> List[UpsellCandidate]:
    upsells = [
        UpsellCandidate(
            name=f"Upgrade to {path.upsell.title}",
            trigger_product_id=path.trigger.id,
            upsell_product_id=path.upsell.id,
            trigger_context=TriggerContext.CART,
            discount_percent=HEURISTIC_UPSELL_DISCOUNT,
            priority=path.priority,
            source_tag=SourceTag.HEURISTIC,
        )
        for path in upgrade_paths(catalog.products, limit=limit)
    ]
    logger.info("price_tier heuristic upsells=%s products=%s", len(upsells), len(catalog.products))
    return upsells
