import logging
import time
from typing import Optional

from bundlereco.core.config import Settings, get_settings
from bundlereco.core.errors import DataSourceError, GenerationError, PersistenceError
from bundlereco.domain.models.recommendation import GenerationSummary
from bundlereco.domain.repositories.shopify_source import DataSource
from bundlereco.domain.services.llm_client import CompletionClient
from bundlereco.domain.services.normalizer import normalize_catalog
from bundlereco.domain.services.pipeline_svc import bundle_pipeline, run_pipeline, upsell_pipeline

logger = logging.getLogger(__name__)


async def generate_recommendations(
    shop_domain: str,
    *,
    source: DataSource,
    store_repo,
    reco_repo,
    client: Optional[CompletionClient],
    settings: Optional[Settings] = None,
) -> GenerationSummary:
    """
    End-to-end recommendation generation for one store.

    High-level flow:
      1) Find or create the store record.
      2) Fetch raw products (100) and orders (250) from the data source.
      3) Normalize into a Catalog.
      4) Bundles: generative attempt -> validate -> heuristic fallback -> rank/dedupe -> persist.
      5) Upsells: same pipeline, independently of how bundles went.

    Returns counts of records actually persisted. Only the loss of the store
    record or of the data source raises (GenerationError); generative failures
    are absorbed by the fallback and single write failures are skipped.
    """
    settings = settings or get_settings()
    t0 = time.perf_counter()
    logger.info("generation start shop=%s", shop_domain)

    # ---- 1) Store ------------------------------------------------------------
    try:
        store_id = await store_repo.get_or_create(shop_domain)
    except PersistenceError as e:
        logger.error("generation aborted shop=%s store unavailable err=%s", shop_domain, e)
        raise GenerationError(f"Store record unavailable: {e}", shop_domain=shop_domain) from e

    # ---- 2) Raw data -----------------------------------------------------------
    try:
        raw_products = await source.fetch_products(settings.product_fetch_limit)
        raw_orders = await source.fetch_orders(settings.order_fetch_limit)
    except DataSourceError as e:
        logger.error("generation aborted shop=%s data source err=%s", shop_domain, e)
        raise GenerationError(f"Could not load store data: {e}", shop_domain=shop_domain) from e

    # ---- 3) Normalize ----------------------------------------------------------
    catalog = normalize_catalog(raw_products, raw_orders)

    # ---- 4/5) Pipelines (independent fallbacks) --------------------------------
    bundles = await run_pipeline(
        bundle_pipeline(reco_repo.create_bundle), catalog,
        store_id=store_id, client=client, settings=settings,
    )
    upsells = await run_pipeline(
        upsell_pipeline(reco_repo.create_upsell), catalog,
        store_id=store_id, client=client, settings=settings,
    )

    summary = GenerationSummary(bundles_created=bundles.created, upsells_created=upsells.created)
    logger.info(
        "generation done shop=%s bundles=%s(%s) upsells=%s(%s) total_time=%.3fs",
        shop_domain, summary.bundles_created, bundles.state.value,
        summary.upsells_created, upsells.state.value, time.perf_counter() - t0,
    )
    return summary
