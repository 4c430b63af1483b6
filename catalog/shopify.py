"""Shopify Admin GraphQL client: item source, curator note cache and re-tagging."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import DarkroomSettings, ShopifySettings
from core import BackgroundType, CatalogImage, CatalogItem
from utils.exceptions import CatalogError, ConfigurationError

from .base import CopyCache, ItemSource, ItemTagger, branded_tags


logger = logging.getLogger(__name__)

CURATOR_NOTE_NAMESPACE = "custom"
CURATOR_NOTE_KEY = "curator_note"
CURATOR_NOTE_TYPE = "multi_line_text_field"

PRODUCTS_QUERY = """
query getProductsNeedingBranding($query: String!, $first: Int!) {
  products(first: $first, query: $query) {
    edges {
      node {
        id
        handle
        title
        tags
        productType
        description
        images(first: 10) {
          edges { node { id url altText } }
        }
      }
    }
  }
}
"""

METAFIELD_QUERY = """
query getProductMetafield($id: ID!) {
  product(id: $id) {
    metafield(namespace: "custom", key: "curator_note") { value }
  }
}
"""

PRODUCT_UPDATE_MUTATION = """
mutation productUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id }
    userErrors { field message }
  }
}
"""


def build_search_query(tags: List[str]) -> str:
    # Tags containing colons must be quoted in Shopify search syntax.
    return " AND ".join(f'tag:"{tag}"' for tag in tags if tag)


def _parse_product(node: Dict[str, Any]) -> CatalogItem:
    images = [
        CatalogImage(
            id=str(edge["node"].get("id") or ""),
            url=str(edge["node"].get("url") or ""),
            alt_text=edge["node"].get("altText"),
        )
        for edge in ((node.get("images") or {}).get("edges") or [])
    ]
    return CatalogItem(
        id=str(node["id"]),
        handle=str(node.get("handle") or ""),
        title=str(node.get("title") or ""),
        tags=list(node.get("tags") or []),
        images=images,
        category=node.get("productType"),
        description=node.get("description"),
    )


class ShopifyAdminClient(ItemSource, CopyCache, ItemTagger):
    """Thin async wrapper over the Admin GraphQL endpoint."""

    def __init__(
        self,
        settings: ShopifySettings,
        darkroom: Optional[DarkroomSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.darkroom = darkroom or DarkroomSettings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        if not self.settings.store_domain:
            raise ConfigurationError("SHOPIFY_STORE_DOMAIN is not configured")
        return f"https://{self.settings.store_domain}/admin/api/{self.settings.api_version}/graphql.json"

    def _headers(self) -> Dict[str, str]:
        if not self.settings.admin_access_token:
            raise ConfigurationError("SHOPIFY_ADMIN_ACCESS_TOKEN is not configured")
        return {
            "X-Shopify-Access-Token": self.settings.admin_access_token,
            "Content-Type": "application/json",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout),
                transport=self._transport,
            )
        return self._client

    async def _graphql(self, query: str, variables: Dict[str, Any], *, operation: str) -> Dict[str, Any]:
        try:
            response = await self._get_client().post(
                self.endpoint,
                headers=self._headers(),
                json={"query": query, "variables": variables},
            )
        except httpx.TransportError:
            raise
        except httpx.HTTPError as exc:
            raise CatalogError(f"Shopify request failed: {exc}", operation=operation) from exc

        if response.status_code >= 400:
            raise CatalogError(
                f"Shopify API error: {response.status_code} {response.reason_phrase}",
                operation=operation,
                status=response.status_code,
            )

        body = response.json()
        if body.get("errors"):
            raise CatalogError(f"GraphQL errors: {body['errors']}", operation=operation)
        return body.get("data") or {}

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _fetch_products(self, limit: int) -> List[CatalogItem]:
        search = build_search_query(
            [
                self.darkroom.queue_tag,
                self.darkroom.required_source_tag,
                self.darkroom.required_department_tag,
            ]
        )
        data = await self._graphql(
            PRODUCTS_QUERY,
            {"query": search, "first": int(limit)},
            operation="fetch_items",
        )
        edges = ((data.get("products") or {}).get("edges")) or []
        return [_parse_product(edge["node"]) for edge in edges]

    async def fetch_items_needing_enrichment(self, limit: int) -> List[CatalogItem]:
        try:
            items = await self._fetch_products(limit)
        except httpx.TransportError as exc:
            raise CatalogError(f"Shopify unreachable: {exc}", operation="fetch_items") from exc
        logger.info(f"[Shopify] Fetched {len(items)} products tagged {self.darkroom.queue_tag}")
        return items

    async def read_cached_copy(self, item_id: str) -> Optional[str]:
        try:
            data = await self._graphql(METAFIELD_QUERY, {"id": item_id}, operation="read_cached_copy")
        except httpx.TransportError as exc:
            raise CatalogError(f"Shopify unreachable: {exc}", operation="read_cached_copy") from exc
        metafield = ((data.get("product") or {}).get("metafield")) or {}
        value = str(metafield.get("value") or "").strip()
        return value or None

    async def _update_product(self, product_input: Dict[str, Any], *, operation: str) -> None:
        try:
            data = await self._graphql(PRODUCT_UPDATE_MUTATION, {"input": product_input}, operation=operation)
        except httpx.TransportError as exc:
            raise CatalogError(f"Shopify unreachable: {exc}", operation=operation) from exc
        user_errors = ((data.get("productUpdate") or {}).get("userErrors")) or []
        if user_errors:
            raise CatalogError(f"productUpdate rejected: {user_errors}", operation=operation)

    async def write_cached_copy(self, item_id: str, text: str) -> bool:
        try:
            await self._update_product(
                {
                    "id": item_id,
                    "metafields": [
                        {
                            "namespace": CURATOR_NOTE_NAMESPACE,
                            "key": CURATOR_NOTE_KEY,
                            "value": text,
                            "type": CURATOR_NOTE_TYPE,
                        }
                    ],
                },
                operation="write_cached_copy",
            )
        except CatalogError as exc:
            logger.warning(f"[Shopify] Failed to save curator note for {item_id}: {exc}")
            return False
        return True

    async def mark_branded(self, item: CatalogItem, background: Optional[BackgroundType]) -> None:
        tags = branded_tags(
            item.tags,
            queue_tag=self.darkroom.queue_tag,
            branded_tag=self.darkroom.branded_tag,
            background=background,
        )
        await self._update_product({"id": item.id, "tags": tags}, operation="mark_branded")

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
