# bundlereco/api/v1/routers/bundles.py
from fastapi import APIRouter, Depends, HTTPException, Response
from bundlereco.api.deps import reco_repo_dep, store_repo_dep
from bundlereco.api.v1.schemas.reco import BundleListOut, BundleOut
from bundlereco.core.errors import PersistenceError

router = APIRouter(prefix="/stores/{shop_domain}/bundles", tags=["bundles"])

async def _store_id_or_404(store_repo, shop_domain: str) -> str:
    store_id = await store_repo.get_store_id(shop_domain)
    if not store_id:
        raise HTTPException(status_code=404, detail=f"Unknown store {shop_domain}")
    return store_id

def _unavailable(e: PersistenceError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))

@router.get("", response_model=BundleListOut)
async def list_bundles(
    shop_domain: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> BundleListOut:
    try:
        store_id = await store_repo.get_store_id(shop_domain)
        docs = await reco_repo.list_bundles(store_id) if store_id else []
    except PersistenceError as e:
        raise _unavailable(e) from e
    items = [BundleOut.model_validate(d) for d in docs]
    return BundleListOut(items=items, count=len(items))

@router.post("/{bundle_id}/toggle", response_model=BundleOut)
async def toggle_bundle(
    shop_domain: str,
    bundle_id: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> BundleOut:
    try:
        store_id = await _store_id_or_404(store_repo, shop_domain)
        doc = await reco_repo.toggle_bundle(store_id, bundle_id)
    except PersistenceError as e:
        raise _unavailable(e) from e
    if not doc:
        raise HTTPException(status_code=404, detail="Bundle not found")
    return BundleOut.model_validate(doc)

@router.delete("/{bundle_id}", status_code=204)
async def delete_bundle(
    shop_domain: str,
    bundle_id: str,
    store_repo = Depends(store_repo_dep),
    reco_repo = Depends(reco_repo_dep),
) -> Response:
    try:
        store_id = await _store_id_or_404(store_repo, shop_domain)
        deleted = await reco_repo.delete_bundle(store_id, bundle_id)
    except PersistenceError as e:
        raise _unavailable(e) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Bundle not found")
    return Response(status_code=204)
