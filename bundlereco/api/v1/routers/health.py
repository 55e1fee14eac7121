# bundlereco/api/v1/routers/health.py
import time
from fastapi import APIRouter
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError
from bundlereco.core.config import get_settings
from bundlereco.db import mongo
from bundlereco.db.redis import get_redis  # returns Redis instance or None

router = APIRouter()
START_TIME = time.time()


@router.get("/health")
async def health():
    """
    Tolerant health check:
    - ping Mongo via Motor (async)
    - Redis 'skipped' when not configured
    - OpenAI key absence only downgrades to heuristics, so it is informative, not a failure
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA,
        "uptime_seconds": int(time.time() - START_TIME),
    }

    # --- Mongo ---
    try:
        db = mongo.get_db()
        await db.command("ping")
        checks["mongodb"] = "ok"
    except (AssertionError, PyMongoError) as e:
        checks["mongodb"] = f"error: {e}"

    # --- Redis (tolerant) ---
    try:
        r = get_redis()
        if r:
            await r.ping()
            checks["redis"] = "ok"
        else:
            checks["redis"] = "skipped"
    except RedisError as e:
        checks["redis"] = f"error: {e}"

    checks["openai_api_key_set"] = bool(settings.OPENAI_API_KEY)
    checks["generative_enabled"] = settings.generative_enabled

    health_keys = ("mongodb", "redis")
    status = "ok" if all(checks.get(k) in ("ok", "skipped") for k in health_keys) else "error"

    return {"status": status, "checks": checks, "timestamp": int(time.time())}
