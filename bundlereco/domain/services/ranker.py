import logging
from typing import Callable, Hashable, List, Sequence, TypeVar

from bundlereco.domain.models.recommendation import BundleCandidate, UpsellCandidate

logger = logging.getLogger(__name__)

C = TypeVar("C", BundleCandidate, UpsellCandidate)

def bundle_key(c: BundleCandidate) -> Hashable:
    return c.member_key()

def upsell_key(c: UpsellCandidate) -> Hashable:
    return c.pair_key()

def dedupe(candidates: Sequence[C], key: Callable[[C], Hashable]) -> List[C]:
    """First occurrence wins; relative order is preserved."""
    seen = set()
    out: List[C] = []
    for c in candidates:
        k = key(c)
        if k in seen:
            continue
        seen.add(k)
        out.append(c)
    return out

def renumber(candidates: Sequence[C]) -> List[C]:
    """
    Consecutive, strictly descending priorities in presentation order.
    Starts at the highest surviving priority (at least len(candidates),
    so the last one never drops below 1).
    """
    if not candidates:
        return []
    top = max(max(c.priority for c in candidates), len(candidates))
    return [c.model_copy(update={"priority": top - i}) for i, c in enumerate(candidates)]

def rank_and_dedupe(candidates: Sequence[C], key: Callable[[C], Hashable]) -> List[C]:
    unique = dedupe(candidates, key)
    if len(unique) != len(candidates):
        logger.info("ranker dropped duplicates=%s kept=%s", len(candidates) - len(unique), len(unique))
    return renumber(unique)
