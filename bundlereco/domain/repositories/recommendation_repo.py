# bundlereco/domain/repositories/recommendation_repo.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from bundlereco.core.errors import PersistenceError
from bundlereco.domain.models.recommendation import BundleCandidate, UpsellCandidate


def _oid(record_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        return None


def _out(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Mongo document -> API dict ("_id" becomes a string "id")."""
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


class RecommendationRepo:
    """
    Bundle and upsell records, backed by the 'bundles' and 'upsells' collections.
    Generation only ever inserts; toggle/delete serve the merchant CRUD screens.
    """

    def __init__(self, db: AsyncIOMotorDatabase, bundles: str = "bundles", upsells: str = "upsells"):
        self.bundles: AsyncIOMotorCollection = db[bundles]
        self.upsells: AsyncIOMotorCollection = db[upsells]

    # ----- create (generation) ---------------------------------------------

    async def _insert(self, col: AsyncIOMotorCollection, store_id: str, payload: Dict[str, Any]) -> str:
        doc = {
            "store_id": store_id,
            **payload,
            "is_active": True,
            # performance counters, fed by storefront tracking
            "impressions": 0,
            "conversions": 0,
            "revenue": 0.0,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            res = await col.insert_one(doc)
        except PyMongoError as e:
            raise PersistenceError(f"insert into {col.name} failed: {e}") from e
        return str(res.inserted_id)

    async def create_bundle(self, store_id: str, candidate: BundleCandidate) -> str:
        return await self._insert(self.bundles, store_id, candidate.model_dump(mode="json"))

    async def create_upsell(self, store_id: str, candidate: UpsellCandidate) -> str:
        return await self._insert(self.upsells, store_id, candidate.model_dump(mode="json"))

    # ----- CRUD screens -------------------------------------------------------

    async def _list(self, col: AsyncIOMotorCollection, store_id: str) -> List[Dict[str, Any]]:
        cursor = col.find({"store_id": store_id}).sort([("priority", DESCENDING), ("created_at", DESCENDING)])
        try:
            return [_out(doc) async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(f"list {col.name} failed store_id={store_id}: {e}") from e

    async def _toggle(self, col: AsyncIOMotorCollection, store_id: str, record_id: str) -> Optional[Dict[str, Any]]:
        oid = _oid(record_id)
        if oid is None:
            return None
        try:
            doc = await col.find_one_and_update(
                {"_id": oid, "store_id": store_id},
                [{"$set": {"is_active": {"$not": ["$is_active"]}}}],  # pipeline update: flip in place
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise PersistenceError(f"toggle in {col.name} failed id={record_id}: {e}") from e
        return _out(doc) if doc else None

    async def _delete(self, col: AsyncIOMotorCollection, store_id: str, record_id: str) -> bool:
        oid = _oid(record_id)
        if oid is None:
            return False
        try:
            res = await col.delete_one({"_id": oid, "store_id": store_id})
        except PyMongoError as e:
            raise PersistenceError(f"delete in {col.name} failed id={record_id}: {e}") from e
        return res.deleted_count == 1

    async def _top_active(self, col: AsyncIOMotorCollection, store_id: str, limit: int) -> List[Dict[str, Any]]:
        cursor = col.find({"store_id": store_id, "is_active": True}).sort("revenue", DESCENDING).limit(limit)
        try:
            return [_out(doc) async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(f"top {col.name} failed store_id={store_id}: {e}") from e

    async def list_bundles(self, store_id: str) -> List[Dict[str, Any]]:
        return await self._list(self.bundles, store_id)

    async def list_upsells(self, store_id: str) -> List[Dict[str, Any]]:
        return await self._list(self.upsells, store_id)

    async def toggle_bundle(self, store_id: str, record_id: str) -> Optional[Dict[str, Any]]:
        return await self._toggle(self.bundles, store_id, record_id)

    async def toggle_upsell(self, store_id: str, record_id: str) -> Optional[Dict[str, Any]]:
        return await self._toggle(self.upsells, store_id, record_id)

    async def delete_bundle(self, store_id: str, record_id: str) -> bool:
        return await self._delete(self.bundles, store_id, record_id)

    async def delete_upsell(self, store_id: str, record_id: str) -> bool:
        return await self._delete(self.upsells, store_id, record_id)

    async def top_bundles(self, store_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Active bundles with the highest attributed revenue."""
        return await self._top_active(self.bundles, store_id, limit)

    async def top_upsells(self, store_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        return await self._top_active(self.upsells, store_id, limit)
