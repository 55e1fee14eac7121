# bundlereco/domain/repositories/store_repo.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from bundlereco.core.errors import PersistenceError


def day_start(ts: Optional[datetime] = None) -> datetime:
    """Midnight UTC of the given instant (analytics are stored one doc per day)."""
    ts = ts or datetime.now(timezone.utc)
    return ts.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


class StoreRepo:
    """
    Stores (one per shop domain) and their daily analytics snapshots.
      stores:    { _id, shop_domain, created_at }
      analytics: { store_id, date, total_revenue, ..., total_orders, ..., updated_at }
    """

    def __init__(self, db: AsyncIOMotorDatabase, stores: str = "stores", analytics: str = "analytics"):
        self.stores = db[stores]
        self.analytics = db[analytics]

    async def get_store_id(self, shop_domain: str) -> Optional[str]:
        try:
            doc = await self.stores.find_one({"shop_domain": shop_domain}, {"_id": 1})
        except PyMongoError as e:
            raise PersistenceError(f"store lookup failed for {shop_domain}: {e}") from e
        return str(doc["_id"]) if doc else None

    async def get_or_create(self, shop_domain: str) -> str:
        """Return the store id for a shop domain, creating the store on first use."""
        try:
            doc = await self.stores.find_one_and_update(
                {"shop_domain": shop_domain},
                {"$setOnInsert": {"shop_domain": shop_domain, "created_at": datetime.now(timezone.utc)}},
                upsert=True,
                projection={"_id": 1},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise PersistenceError(f"store lookup failed for {shop_domain}: {e}") from e
        return str(doc["_id"])

    async def latest_analytics(self, store_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.analytics.find_one(
                {"store_id": store_id},
                {"_id": 0, "store_id": 0},
                sort=[("date", DESCENDING)],
            )
        except PyMongoError as e:
            raise PersistenceError(f"analytics read failed store_id={store_id}: {e}") from e

    async def upsert_analytics(self, store_id: str, data: Dict[str, Any], *, date: Optional[datetime] = None) -> None:
        day = day_start(date)
        try:
            await self.analytics.update_one(
                {"store_id": store_id, "date": day},
                {"$set": {**data, "updated_at": datetime.now(timezone.utc)}},
                upsert=True,
            )
        except PyMongoError as e:
            raise PersistenceError(f"analytics upsert failed store_id={store_id}: {e}") from e

    async def analytics_history(self, store_id: str, limit: int = 30) -> List[Dict[str, Any]]:
        """Most recent daily snapshots first."""
        cursor = (
            self.analytics.find({"store_id": store_id}, {"_id": 0, "store_id": 0})
            .sort("date", DESCENDING)
            .limit(limit)
        )
        try:
            return [doc async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(f"analytics history failed store_id={store_id}: {e}") from e
