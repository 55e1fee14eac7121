# bundlereco/db/mongo.py
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError
from bundlereco.core.config import get_settings
import certifi

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    assert _client is not None, "Mongo client not initialized"
    return _client


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


def _new_client(uri: str) -> AsyncIOMotorClient:
    tls_opts = {"tls": True, "tlsCAFile": certifi.where()} if uri.startswith("mongodb+srv://") else {}
    return AsyncIOMotorClient(
        uri,
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=6000,
        connectTimeoutMS=6000,
        **tls_opts,
    )


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db["stores"].create_index([("shop_domain", ASCENDING)], unique=True)
    await db["analytics"].create_index([("store_id", ASCENDING), ("date", ASCENDING)], unique=True)
    await db["bundles"].create_index([("store_id", ASCENDING), ("priority", ASCENDING)])
    await db["upsells"].create_index([("store_id", ASCENDING), ("priority", ASCENDING)])


async def connect():
    """
    Create the Motor client. A failed startup ping does not abort the app:
    the client stays lazy and the first real query retries the connection.
    """
    global _client, _db
    settings = get_settings()

    _client = _new_client(settings.MONGO_URI)
    _db = _client[settings.MONGO_DB]
    try:
        await _client.admin.command("ping")
        await ensure_indexes(_db)
        logger.info("Mongo connected (ping ok) db=%s", settings.MONGO_DB)
    except PyMongoError as e:
        logger.warning("Mongo ping at startup failed, will connect lazily: %s", e)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
