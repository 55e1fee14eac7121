# bundlereco/api/deps.py
from typing import Callable
from fastapi import Depends
from bundlereco.core.config import Settings, get_settings
from bundlereco.db.mongo import get_db
from bundlereco.db.redis import get_redis
from bundlereco.domain.repositories.recommendation_repo import RecommendationRepo
from bundlereco.domain.repositories.shopify_source import DataSource, ShopifyDataSource
from bundlereco.domain.repositories.store_repo import StoreRepo
from bundlereco.domain.services.llm_client import OpenAICompletionClient

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    # Returns the MongoDB database instance (async)
    return db

# Dependency for injecting the Redis client into endpoints/services
def redis_dep():
    return get_redis()

def settings_dep() -> Settings:
    return get_settings()

def store_repo_dep(db = Depends(mongo_db)) -> StoreRepo:
    return StoreRepo(db)

def reco_repo_dep(db = Depends(mongo_db)) -> RecommendationRepo:
    return RecommendationRepo(db)

def completion_client_dep(settings: Settings = Depends(settings_dep)) -> OpenAICompletionClient:
    return OpenAICompletionClient(settings)

# Data sources are per shop, so inject a factory
def data_source_factory_dep(settings: Settings = Depends(settings_dep)) -> Callable[[str], DataSource]:
    return lambda shop_domain: ShopifyDataSource.from_settings(shop_domain, settings)
