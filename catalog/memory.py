"""In-memory catalog used by tests and local dry runs."""

from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, List, Optional

from core import BackgroundType, CatalogItem

from .base import CopyCache, ItemSource, ItemTagger, branded_tags


class InMemoryCatalog(ItemSource, CopyCache, ItemTagger):
    """Dict-backed stand-in for the commerce platform."""

    def __init__(
        self,
        items: Optional[Iterable[CatalogItem]] = None,
        *,
        notes: Optional[Dict[str, str]] = None,
        queue_tag: str = "img:needs-brand",
        branded_tag: str = "img:branded",
    ) -> None:
        self._items: List[CatalogItem] = list(items or [])
        self._notes: Dict[str, str] = dict(notes or {})
        self.queue_tag = queue_tag
        self.branded_tag = branded_tag
        self.fetch_calls: List[int] = []
        self.note_reads: List[str] = []
        self.note_writes: List[str] = []
        self._lock = Lock()

    async def fetch_items_needing_enrichment(self, limit: int) -> List[CatalogItem]:
        with self._lock:
            self.fetch_calls.append(int(limit))
            queued = [item for item in self._items if self.queue_tag in item.tags]
            return queued[: max(0, int(limit))]

    async def read_cached_copy(self, item_id: str) -> Optional[str]:
        with self._lock:
            self.note_reads.append(item_id)
            value = str(self._notes.get(item_id) or "").strip()
            return value or None

    async def write_cached_copy(self, item_id: str, text: str) -> bool:
        with self._lock:
            self.note_writes.append(item_id)
            self._notes[item_id] = text
            return True

    async def mark_branded(self, item: CatalogItem, background: Optional[BackgroundType]) -> None:
        tags = branded_tags(item.tags, queue_tag=self.queue_tag, branded_tag=self.branded_tag, background=background)
        with self._lock:
            self._items = [
                current.model_copy(update={"tags": tags}) if current.id == item.id else current
                for current in self._items
            ]

    def get(self, item_id: str) -> Optional[CatalogItem]:
        with self._lock:
            return next((item for item in self._items if item.id == item_id), None)

    def note_for(self, item_id: str) -> Optional[str]:
        with self._lock:
            return self._notes.get(item_id)
