"""Commerce platform collaborators."""

from .base import CopyCache, ImageBrander, ItemSource, ItemTagger, branded_tags
from .memory import InMemoryCatalog
from .shopify import ShopifyAdminClient, build_search_query

__all__ = [
    "CopyCache",
    "ImageBrander",
    "InMemoryCatalog",
    "ItemSource",
    "ItemTagger",
    "ShopifyAdminClient",
    "branded_tags",
    "build_search_query",
]
