import logging
from itertools import combinations
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from bundlereco.domain.models.product import Catalog, Order
from bundlereco.domain.models.recommendation import BundleCandidate, BundleMember, SourceTag
from bundlereco.domain.services.constants import (
    BUNDLE_CAP,
    HEURISTIC_BUNDLE_DISCOUNT,
    MIN_PAIR_FREQUENCY,
)

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]

class PairFrequency(NamedTuple):
    first: str
    second: str
    frequency: int

def pair_key(a: str, b: str) -> PairKey:
    """Order-independent key: (A, B) and (B, A) collapse to the same counter."""
    return (a, b) if a <= b else (b, a)

def count_pairs(orders: Sequence[Order]) -> Dict[PairKey, int]:
    """
    Co-occurrence counts of every unordered pair of distinct products per order.
    Built fresh per call; insertion order = first time the pair was seen.
    """
    counts: Dict[PairKey, int] = {}
    for order in orders:
        for a, b in combinations(order.product_ids(), 2):
            key = pair_key(a, b)
            counts[key] = counts.get(key, 0) + 1
    return counts

def top_pairs(
    orders: Sequence[Order],
    *,
    limit: Optional[int] = BUNDLE_CAP,
    min_frequency: int = MIN_PAIR_FREQUENCY,
) -> List[PairFrequency]:
    """
    Most frequent qualifying pairs, count descending (limit=None keeps all).
    sorted() is stable, so equal counts keep first-encountered order.
    """
    counts = count_pairs(orders)
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    qualifying = [PairFrequency(a, b, n) for (a, b), n in ranked if n >= min_frequency]
    return qualifying if limit is None else qualifying[:limit]

def heuristic_bundles(catalog: Catalog, *, limit: int = BUNDLE_CAP) -> List[BundleCandidate]:
    """
    Deterministic bundle proposals: one two-product bundle per frequent pair.
    Pairs whose products are missing from the catalog are skipped.
    """
    by_id = catalog.by_id()
    pairs = [
        p for p in top_pairs(catalog.orders, limit=None)
        if p.first in by_id and p.second in by_id
    ][:limit]

    bundles: List[BundleCandidate] = []
    for p in pairs:
        first, second = by_id[p.first], by_id[p.second]
        bundles.append(
            BundleCandidate(
                name=f"{first.title} + {second.title} Bundle",
                description="Bundle based on purchase patterns",
                main_product_id=first.id,
                members=[BundleMember(product_id=first.id), BundleMember(product_id=second.id)],
                discount_percent=HEURISTIC_BUNDLE_DISCOUNT,
                priority=p.frequency,
                source_tag=SourceTag.HEURISTIC,
            )
        )
    logger.info("affinity heuristic bundles=%s orders=%s", len(bundles), len(catalog.orders))
    return bundles
