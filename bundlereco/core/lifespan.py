# bundlereco/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from bundlereco.db import mongo, redis as r

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    await mongo.connect()
    await r.connect()  # optional, degrades to "no cache"

    # Application runs
    yield

    # --- Shutdown ---
    await r.disconnect()
    await mongo.disconnect()
    logger.info("Connections closed")
