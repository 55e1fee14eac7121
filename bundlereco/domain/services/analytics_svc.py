import logging
import time
from typing import Any, Dict, List, Optional

from bundlereco.core.config import Settings, get_settings
from bundlereco.domain.models.analytics import PerformanceTotals, StoreAnalytics, StorePerformance
from bundlereco.utils.cache import cache_delete, cache_get, cache_set

logger = logging.getLogger(__name__)

PERFORMANCE_DAYS = 30
TOP_RECORDS = 10

def _cache_key(shop_domain: str) -> str:
    return f"analytics:{shop_domain}"

async def get_store_analytics(
    store_repo,
    redis,
    shop_domain: str,
    *,
    settings: Optional[Settings] = None,
) -> StoreAnalytics:
    """
    Latest daily snapshot for a store; zeros when the store or its snapshots
    do not exist yet. Cached in Redis for settings.analytics_cache_ttl.
    """
    settings = settings or get_settings()
    t0 = time.perf_counter()
    key = _cache_key(shop_domain)

    if (cached := await cache_get(redis, key)) is not None:
        logger.info("analytics cache_hit shop=%s", shop_domain)
        return StoreAnalytics.model_validate(cached)

    store_id = await store_repo.get_store_id(shop_domain)
    doc = await store_repo.latest_analytics(store_id) if store_id else None
    result = StoreAnalytics.model_validate(doc) if doc else StoreAnalytics()

    await cache_set(redis, key, result.model_dump(), ex=settings.analytics_cache_ttl)
    logger.info(
        "analytics done shop=%s found=%s total_time=%.3fs",
        shop_domain, bool(doc), time.perf_counter() - t0,
    )
    return result

async def update_store_analytics(store_repo, redis, shop_domain: str, data: StoreAnalytics) -> None:
    """Upsert today's snapshot (one document per store and day) and drop the cached read."""
    store_id = await store_repo.get_or_create(shop_domain)
    await store_repo.upsert_analytics(store_id, data.model_dump())
    await cache_delete(redis, _cache_key(shop_domain))
    logger.info("analytics upserted shop=%s store_id=%s", shop_domain, store_id)

def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole > 0 else 0.0

def summarize_snapshots(snapshots: List[Dict[str, Any]]) -> PerformanceTotals:
    """Sum the additive fields of daily snapshots (missing fields count as zero)."""
    totals = PerformanceTotals()
    for raw in snapshots:
        snap = StoreAnalytics.model_validate(raw)
        totals = PerformanceTotals(
            total_revenue=totals.total_revenue + snap.total_revenue,
            bundle_revenue=totals.bundle_revenue + snap.bundle_revenue,
            upsell_revenue=totals.upsell_revenue + snap.upsell_revenue,
            total_orders=totals.total_orders + snap.total_orders,
            orders_with_bundles=totals.orders_with_bundles + snap.orders_with_bundles,
            orders_with_upsells=totals.orders_with_upsells + snap.orders_with_upsells,
        )
    return totals

async def get_store_performance(
    store_repo,
    reco_repo,
    shop_domain: str,
    *,
    days: int = PERFORMANCE_DAYS,
    top: int = TOP_RECORDS,
) -> StorePerformance:
    """
    Totals over the last `days` daily snapshots, order conversion rates and the
    active bundles / upsells with the most attributed revenue.
    """
    t0 = time.perf_counter()
    store_id = await store_repo.get_store_id(shop_domain)
    if not store_id:
        return StorePerformance(days=days)

    snapshots = await store_repo.analytics_history(store_id, limit=days)
    totals = summarize_snapshots(snapshots)
    result = StorePerformance(
        days=days,
        snapshots=len(snapshots),
        totals=totals,
        bundle_conversion_rate=_rate(totals.orders_with_bundles, totals.total_orders),
        upsell_conversion_rate=_rate(totals.orders_with_upsells, totals.total_orders),
        top_bundles=await reco_repo.top_bundles(store_id, limit=top),
        top_upsells=await reco_repo.top_upsells(store_id, limit=top),
    )
    logger.info(
        "performance done shop=%s snapshots=%s orders=%s total_time=%.3fs",
        shop_domain, result.snapshots, totals.total_orders, time.perf_counter() - t0,
    )
    return result
