"""
Catalog collaborators
Narrow interfaces the pipeline consumes from the commerce platform
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from core import BackgroundType, CatalogItem


class ItemSource(ABC):
    """Lists catalog items waiting for automated branding."""

    @abstractmethod
    async def fetch_items_needing_enrichment(self, limit: int) -> List[CatalogItem]:
        """
        Return up to ``limit`` items. Ordering is defined by the source and is
        stable for one call. Raises ``CatalogError`` when the source is unreachable.
        """
        pass

    async def aclose(self) -> None:
        return None


class CopyCache(ABC):
    """Curator note stored on the item record itself."""

    @abstractmethod
    async def read_cached_copy(self, item_id: str) -> Optional[str]:
        pass

    @abstractmethod
    async def write_cached_copy(self, item_id: str, text: str) -> bool:
        """Best-effort write. Returns False when the platform rejected it."""
        pass


class ItemTagger(ABC):
    """Moves an item out of the branding queue once it has been processed."""

    @abstractmethod
    async def mark_branded(self, item: CatalogItem, background: Optional[BackgroundType]) -> None:
        pass


class ImageBrander(ABC):
    """
    External image collaborator: background removal, backdrop generation and
    compositing happen outside this process.
    """

    @abstractmethod
    async def brand(self, item: CatalogItem, background: BackgroundType, prompt: str) -> int:
        """Brand every image of ``item``; returns the number of images produced."""
        pass


def branded_tags(
    current: List[str],
    *,
    queue_tag: str,
    branded_tag: str,
    background: Optional[BackgroundType] = None,
) -> List[str]:
    """Tag list after branding: queue tag removed, branded (and bg:<type>) tags appended once."""
    additions = [branded_tag]
    if background is not None:
        additions.append(f"bg:{background.value}")
    kept = [tag for tag in current if tag != queue_tag and tag not in additions]
    return kept + additions
