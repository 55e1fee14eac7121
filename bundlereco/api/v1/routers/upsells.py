# bundlereco/api/v1/routers/upsells.py
from fastapi import APIRouter, Depends, HTTPException, Response
from bundlereco.api.deps import reco_repo_dep, store_repo_dep
from bundlereco.api.v1.routers.bundles import _store_id_or_404, _unavailable
from bundlereco.api.v1.schemas.reco import UpsellListOut, UpsellOut
from bundlereco.core.errors import PersistenceError

router = APIRouter(prefix="/stores/{shop_domain}/upsells", tags=["upsells"])

@router.get("", response_model=UpsellListOut)
async def list_upsells(
    shop_domain: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> UpsellListOut:
    try:
        store_id = await store_repo.get_store_id(shop_domain)
        docs = await reco_repo.list_upsells(store_id) if store_id else []
    except PersistenceError as e:
        raise _unavailable(e) from e
    items = [UpsellOut.model_validate(d) for d in docs]
    return UpsellListOut(items=items, count=len(items))

@router.post("/{upsell_id}/toggle", response_model=UpsellOut)
async def toggle_upsell(
    shop_domain: str,
    upsell_id: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> UpsellOut:
    try:
        store_id = await _store_id_or_404(store_repo, shop_domain)
        doc = await reco_repo.toggle_upsell(store_id, upsell_id)
    except PersistenceError as e:
        raise _unavailable(e) from e
    if not doc:
        raise HTTPException(status_code=404, detail="Upsell not found")
    return UpsellOut.model_validate(doc)

@router.delete("/{upsell_id}", status_code=204)
async def delete_upsell(
    shop_domain: str,
    upsell_id: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> Response:
    try:
        store_id = await _store_id_or_404(store_repo, shop_domain)
        deleted = await reco_repo.delete_upsell(store_id, upsell_id)
    except PersistenceError as e:
        raise _unavailable(e) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Upsell not found")
    return Response(status_code=204)
