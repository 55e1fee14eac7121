from fastapi import FastAPI
from bundlereco.core.config import get_settings
from bundlereco.core.lifespan import lifespan
from bundlereco.api.v1.routers.health import router as health_router
from bundlereco.api.v1.routers.recommendations import router as recommendations_router
from bundlereco.api.v1.routers.bundles import router as bundles_router
from bundlereco.api.v1.routers.upsells import router as upsells_router
from bundlereco.api.v1.routers.analytics import router as analytics_router
from bundlereco.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import os

settings = get_settings()
configure_logging(settings)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS from env (CSV), e.g. "https://admin.shopify.com,https://my-dashboard.example"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["https://admin.shopify.com"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(recommendations_router, prefix=settings.api_prefix)   # generate
app.include_router(bundles_router, prefix=settings.api_prefix)           # bundle CRUD
app.include_router(upsells_router, prefix=settings.api_prefix)           # upsell CRUD
app.include_router(analytics_router, prefix=settings.api_prefix)         # store analytics
