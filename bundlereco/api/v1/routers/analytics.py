from fastapi import APIRouter, Depends, Query
from bundlereco.api.deps import redis_dep, reco_repo_dep, settings_dep, store_repo_dep
from bundlereco.api.v1.routers.bundles import _unavailable
from bundlereco.api.v1.schemas.reco import PerformanceOut
from bundlereco.core.errors import PersistenceError
from bundlereco.domain.models.analytics import StoreAnalytics
from bundlereco.domain.services.analytics_svc import (
    PERFORMANCE_DAYS,
    get_store_analytics,
    get_store_performance,
    update_store_analytics,
)

router = APIRouter(prefix="/stores/{shop_domain}/analytics", tags=["analytics"])

@router.get("", response_model=StoreAnalytics)
async def read_analytics(
    shop_domain: str,
    store_repo = Depends(store_repo_dep),
    redis = Depends(redis_dep),
    settings = Depends(settings_dep),
) -> StoreAnalytics:
    try:
        return await get_store_analytics(store_repo, redis, shop_domain, settings=settings)
    except PersistenceError as e:
        raise _unavailable(e) from e

@router.put("", response_model=StoreAnalytics)
async def write_analytics(
    shop_domain: str,
    body: StoreAnalytics,
    store_repo = Depends(store_repo_dep),
    redis = Depends(redis_dep),
) -> StoreAnalytics:
    try:
        await update_store_analytics(store_repo, redis, shop_domain, body)
    except PersistenceError as e:
        raise _unavailable(e) from e
    return body

@router.get("/performance", response_model=PerformanceOut)
async def read_performance(
    shop_domain: str,
    days: int = Query(PERFORMANCE_DAYS, ge=1, le=90),
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> PerformanceOut:
    """Window totals, order conversion rates and top active bundles / upsells by revenue."""
    try:
        result = await get_store_performance(store_repo, reco_repo, shop_domain, days=days)
    except PersistenceError as e:
        raise _unavailable(e) from e
    return PerformanceOut.model_validate(result.model_dump())
