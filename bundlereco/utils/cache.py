import json
import logging
from typing import Any, Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Redis is optional: every helper is a no-op when the client is None,
# and cache errors never fail the request.

async def cache_get(redis: Optional[Redis], key: str) -> Any:
    if redis is None:
        return None
    try:
        if val := await redis.get(key):
            return json.loads(val)
    except (RedisError, ValueError) as e:
        logger.warning("cache get error key=%s err=%s", key, e)
    return None

async def cache_set(redis: Optional[Redis], key: str, value, ex: int = 60):
    if redis is None:
        return
    try:
        await redis.set(key, json.dumps(value, default=str), ex=ex)
    except RedisError as e:
        logger.warning("cache set error key=%s err=%s", key, e)

async def cache_delete(redis: Optional[Redis], key: str):
    if redis is None:
        return
    try:
        await redis.delete(key)
    except RedisError as e:
        logger.warning("cache delete error key=%s err=%s", key, e)
