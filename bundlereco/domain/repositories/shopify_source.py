# bundlereco/domain/repositories/shopify_source.py

from __future__ import annotations
import logging
import time
from typing import Any, Dict, List, Optional, Protocol

import httpx

from bundlereco.core.config import Settings
from bundlereco.core.errors import DataSourceError

logger = logging.getLogger(__name__)

# Shopify caps `first` at 250 per page
MAX_PAGE_SIZE = 250

PRODUCTS_QUERY = """
query getProducts($first: Int!) {
  products(first: $first) {
    edges {
      node {
        id
        title
        handle
        productType
        vendor
        tags
        variants(first: 10) {
          edges { node { id price inventoryQuantity } }
        }
      }
    }
  }
}
"""

ORDERS_QUERY = """
query getOrders($first: Int!) {
  orders(first: $first, reverse: true) {
    edges {
      node {
        id
        createdAt
        totalPriceSet { shopMoney { amount } }
        lineItems(first: 50) {
          edges {
            node {
              id
              quantity
              variant { id product { id title } }
            }
          }
        }
      }
    }
  }
}
"""


class DataSource(Protocol):
    """Raw catalog/order provider. Raises DataSourceError on any failure."""

    async def fetch_products(self, limit: int) -> List[Dict[str, Any]]:
        ...

    async def fetch_orders(self, limit: int) -> List[Dict[str, Any]]:
        ...


class ShopifyDataSource:
    """
    Reads products and orders from the Shopify Admin GraphQL API.
    Returns raw `node` dicts; normalization happens downstream.
    """

    def __init__(
        self,
        shop_domain: str,
        *,
        access_token: str,
        api_version: str,
        timeout_s: float = 20,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.shop_domain = shop_domain
        self.url = f"https://{shop_domain}/admin/api/{api_version}/graphql.json"
        self.headers = {"X-Shopify-Access-Token": access_token, "Content-Type": "application/json"}
        self.timeout_s = timeout_s
        self._client = client

    @classmethod
    def from_settings(cls, shop_domain: str, settings: Settings) -> "ShopifyDataSource":
        return cls(
            shop_domain,
            access_token=settings.SHOPIFY_ACCESS_TOKEN,
            api_version=settings.SHOPIFY_API_VERSION,
            timeout_s=settings.shopify_timeout_s,
        )

    async def _post(self, client: httpx.AsyncClient, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        r = await client.post(self.url, json={"query": query, "variables": variables}, headers=self.headers)
        r.raise_for_status()
        return r.json()

    async def _query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        t0 = time.perf_counter()
        try:
            if self._client is not None:
                body = await self._post(self._client, query, variables)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    body = await self._post(client, query, variables)
        except httpx.HTTPError as e:
            raise DataSourceError(f"Shopify request failed shop={self.shop_domain}: {e}") from e
        except ValueError as e:
            raise DataSourceError(f"Shopify returned non-JSON body shop={self.shop_domain}") from e

        if not isinstance(body, dict):
            raise DataSourceError(f"Shopify returned a {type(body).__name__} body shop={self.shop_domain}")
        if body.get("errors"):
            raise DataSourceError(f"Shopify GraphQL errors shop={self.shop_domain}: {body['errors']}")
        data = body.get("data") or {}
        if not isinstance(data, dict):
            raise DataSourceError(f"Shopify 'data' is not an object shop={self.shop_domain}")
        logger.info("shopify query ok shop=%s time=%.3fs", self.shop_domain, time.perf_counter() - t0)
        return data

    @staticmethod
    def _edges(data: Dict[str, Any], root: str) -> List[Dict[str, Any]]:
        connection = data.get(root)
        if not isinstance(connection, dict):
            return []
        edges = connection.get("edges")
        if not isinstance(edges, list):
            return []
        return [e["node"] for e in edges if isinstance(e, dict) and isinstance(e.get("node"), dict)]

    async def fetch_products(self, limit: int = 100) -> List[Dict[str, Any]]:
        data = await self._query(PRODUCTS_QUERY, {"first": min(limit, MAX_PAGE_SIZE)})
        return self._edges(data, "products")

    async def fetch_orders(self, limit: int = 250) -> List[Dict[str, Any]]:
        data = await self._query(ORDERS_QUERY, {"first": min(limit, MAX_PAGE_SIZE)})
        return self._edges(data, "orders")
