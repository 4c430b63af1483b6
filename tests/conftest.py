from __future__ import annotations

from typing import List, Optional

import pytest

from core import CatalogImage, CatalogItem


ELIGIBLE_TAGS = ["img:needs-brand", "source:faire", "dept:objects"]


@pytest.fixture
def make_item():
    def _make(
        item_id: str = "gid://shopify/Product/1",
        *,
        tags: Optional[List[str]] = None,
        images: int = 1,
        title: str = "Basalt Vessel",
        **extra,
    ) -> CatalogItem:
        return CatalogItem(
            id=item_id,
            handle=item_id.rsplit("/", 1)[-1],
            title=title,
            tags=list(ELIGIBLE_TAGS) if tags is None else tags,
            images=[CatalogImage(id=f"{item_id}-img-{n}", url=f"https://cdn.test/{n}.jpg") for n in range(images)],
            **extra,
        )

    return _make
