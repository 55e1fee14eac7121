from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "BundleReco"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "bundlereco"

    # Redis (optional)
    REDIS_URL: str = ""

    # Cache config
    analytics_cache_ttl: int = 5 * 60            # 5 minutes

    # OpenAI (empty key = generative path unavailable, heuristics only)
    OPENAI_API_KEY: str = ""
    OPENAI_RECO_MODEL: str = "gpt-4o-mini"
    openai_timeout_s: int = 30  # seconds
    generative_enabled: bool = True
    generative_max_tokens: int = 1500
    generative_temperature: float = 0.7

    # Shopify Admin API
    SHOPIFY_ACCESS_TOKEN: str = ""
    SHOPIFY_API_VERSION: str = "2024-10"
    shopify_timeout_s: int = 20
    product_fetch_limit: int = 100
    order_fetch_limit: int = 250

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
