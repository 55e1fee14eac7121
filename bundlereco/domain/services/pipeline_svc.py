import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Generic, Hashable, List, Optional, TypeVar

from bundlereco.core.config import Settings
from bundlereco.core.errors import PersistenceError, ProviderError, ValidationError
from bundlereco.domain.models.product import Catalog
from bundlereco.domain.models.recommendation import BundleCandidate, UpsellCandidate
from bundlereco.domain.services.affinity_svc import heuristic_bundles
from bundlereco.domain.services.constants import KIND_BUNDLE, KIND_UPSELL
from bundlereco.domain.services.llm_client import CompletionClient
from bundlereco.domain.services.parser import parse_bundles, parse_upsells
from bundlereco.domain.services.price_tier_svc import heuristic_upsells
from bundlereco.domain.services.prompts import build_prompt
from bundlereco.domain.services.ranker import bundle_key, rank_and_dedupe, upsell_key

logger = logging.getLogger(__name__)

C = TypeVar("C", BundleCandidate, UpsellCandidate)


class PipelineState(str, Enum):
    ATTEMPT_GENERATIVE = "attempt_generative"
    USE_GENERATIVE_RESULT = "use_generative_result"
    ATTEMPT_HEURISTIC = "attempt_heuristic"


@dataclass(frozen=True)
class CandidatePipeline(Generic[C]):
    """
    One candidate kind wired through generate -> validate -> fallback -> rank -> persist.
    Bundles and upsells are two instances of this, nothing else differs.
    """
    kind: str
    parse: Callable[[str, Catalog], List[C]]
    heuristic: Callable[[Catalog], List[C]]
    key: Callable[[C], Hashable]
    persist: Callable[[str, C], Awaitable[str]]


@dataclass
class PipelineOutcome(Generic[C]):
    kind: str
    state: PipelineState
    candidates: List[C] = field(default_factory=list)
    created_ids: List[str] = field(default_factory=list)
    failed: int = 0
    fallback_reason: Optional[str] = None

    @property
    def created(self) -> int:
        return len(self.created_ids)


def bundle_pipeline(persist: Callable[[str, BundleCandidate], Awaitable[str]]) -> CandidatePipeline[BundleCandidate]:
    return CandidatePipeline(
        kind=KIND_BUNDLE,
        parse=parse_bundles,
        heuristic=heuristic_bundles,
        key=bundle_key,
        persist=persist,
    )


def upsell_pipeline(persist: Callable[[str, UpsellCandidate], Awaitable[str]]) -> CandidatePipeline[UpsellCandidate]:
    return CandidatePipeline(
        kind=KIND_UPSELL,
        parse=parse_upsells,
        heuristic=heuristic_upsells,
        key=upsell_key,
        persist=persist,
    )


# --- fallback coordinator --------------------------------------------------

async def _attempt_generative(
    pipeline: CandidatePipeline[C],
    catalog: Catalog,
    client: CompletionClient,
    settings: Settings,
) -> List[C]:
    system, prompt = build_prompt(pipeline.kind, catalog)
    logger.info("%s generative request size=%.1fKB", pipeline.kind, len(prompt) / 1024)
    raw = await client.complete(
        prompt,
        system=system,
        max_tokens=settings.generative_max_tokens,
        temperature=settings.generative_temperature,
    )
    logger.debug("%s generative raw preview=%s", pipeline.kind, raw[:500])
    return pipeline.parse(raw, catalog)


async def resolve_candidates(
    pipeline: CandidatePipeline[C],
    catalog: Catalog,
    *,
    client: Optional[CompletionClient],
    settings: Settings,
) -> PipelineOutcome[C]:
    """
    ATTEMPT_GENERATIVE -> USE_GENERATIVE_RESULT on a clean parse (even with 0 entries),
    otherwise ATTEMPT_HEURISTIC, which is pure and terminal.
    Ranking/dedup is applied to whichever list wins.
    """
    reason: Optional[str] = None
    if not settings.generative_enabled:
        reason = "generative path disabled"
    elif client is None or not getattr(client, "available", True):
        reason = "missing generative credential"
    else:
        try:
            generated = await _attempt_generative(pipeline, catalog, client, settings)
            ranked = rank_and_dedupe(generated, pipeline.key)
            logger.info("%s generative ok parsed=%s ranked=%s", pipeline.kind, len(generated), len(ranked))
            return PipelineOutcome(pipeline.kind, PipelineState.USE_GENERATIVE_RESULT, ranked)
        except (ProviderError, ValidationError) as e:
            reason = f"{type(e).__name__}: {e}"
        except Exception as e:
            # the generative path must never break the run
            logger.exception("%s generative path crashed", pipeline.kind)
            reason = f"unexpected {type(e).__name__}: {e}"

    logger.warning("%s falling back to heuristic reason=%s", pipeline.kind, reason)
    ranked = rank_and_dedupe(pipeline.heuristic(catalog), pipeline.key)
    return PipelineOutcome(pipeline.kind, PipelineState.ATTEMPT_HEURISTIC, ranked, fallback_reason=reason)


async def run_pipeline(
    pipeline: CandidatePipeline[C],
    catalog: Catalog,
    *,
    store_id: str,
    client: Optional[CompletionClient],
    settings: Settings,
) -> PipelineOutcome[C]:
    """Resolve candidates, then persist them one by one (no transaction)."""
    t0 = time.perf_counter()
    outcome = await resolve_candidates(pipeline, catalog, client=client, settings=settings)

    for candidate in outcome.candidates:
        try:
            outcome.created_ids.append(await pipeline.persist(store_id, candidate))
        except PersistenceError as e:
            outcome.failed += 1
            logger.error("%s persist failed store_id=%s name=%r err=%s", pipeline.kind, store_id, candidate.name, e)

    logger.info(
        "%s pipeline done state=%s created=%s failed=%s time=%.3fs",
        pipeline.kind, outcome.state.value, outcome.created, outcome.failed, time.perf_counter() - t0,
    )
    return outcome
