# bundlereco/api/v1/routers/recommendations.py
from typing import Callable
from fastapi import APIRouter, Depends, HTTPException
from bundlereco.api.deps import (
    completion_client_dep,
    data_source_factory_dep,
    reco_repo_dep,
    settings_dep,
    store_repo_dep,
)
from bundlereco.api.v1.schemas.reco import GenerationSummaryOut
from bundlereco.core.errors import GenerationError
from bundlereco.domain.services.generation_svc import generate_recommendations

router = APIRouter(prefix="/stores/{shop_domain}", tags=["recommendations"])

@router.post("/recommendations", response_model=GenerationSummaryOut)
async def generate(
    shop_domain: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
    client = Depends(completion_client_dep),
    source_factory: Callable = Depends(data_source_factory_dep),
    settings = Depends(settings_dep),
) -> GenerationSummaryOut:
    """Generate bundle + upsell recommendations from the store's catalog and order history."""
    try:
        summary = await generate_recommendations(
            shop_domain,
            source=source_factory(shop_domain),
            store_repo=store_repo,
            reco_repo=reco_repo,
            client=client,
            settings=settings,
        )
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return GenerationSummaryOut(**summary.model_dump())
