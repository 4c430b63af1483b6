"""Tests for the Darkroom FastAPI endpoints (JSON preflight + SSE run)."""

from __future__ import annotations

import json
from typing import Dict, List, Optional

from fastapi.testclient import TestClient

from auth import AdmissionGate, Identity, IdentityResolver
from catalog import InMemoryCatalog, ItemSource
from config import DarkroomSettings, Settings, ShopifySettings
from core import CatalogItem
from intelligence.curator import CuratorNoteGenerator
from orchestrator import BatchOrchestrator, BrandingService
from utils.exceptions import CatalogError
from webapp.app import create_app
from webapp.runtime import BrandingServices

from fakes import ScriptedLLM


ADMIN = {"Authorization": "Bearer admin-token"}


class _Resolver(IdentityResolver):
    identities: Dict[str, Identity] = {
        "admin-token": Identity(email="Admin@Example.com", user_id="u-admin"),
        "visitor-token": Identity(email="visitor@example.com", user_id="u-visitor"),
    }

    async def resolve(self, token: str) -> Optional[Identity]:
        return self.identities.get(token)


class _DownSource(ItemSource):
    def __init__(self):
        self.fetch_calls: List[int] = []

    async def fetch_items_needing_enrichment(self, limit: int) -> List[CatalogItem]:
        self.fetch_calls.append(limit)
        raise CatalogError("Shopify unreachable: connection refused", operation="fetch_items")


def _settings(token: Optional[str] = "shpat_test") -> Settings:
    return Settings(
        shopify=ShopifySettings(store_domain="darkroom-test.myshopify.com", admin_access_token=token),
        darkroom=DarkroomSettings(inter_item_delay_sec=0),
    )


def _client(source: ItemSource, *, settings: Optional[Settings] = None) -> TestClient:
    cache = source if isinstance(source, InMemoryCatalog) else InMemoryCatalog()
    generator = CuratorNoteGenerator(ScriptedLLM(["Ash glaze over iron. It holds still."]), cache)
    services = BrandingServices(
        settings=settings or _settings(),
        gate=AdmissionGate(_Resolver(), ["admin@example.com"]),
        service=BrandingService(source, BatchOrchestrator(generator, tagger=cache)),
        source=source,
    )
    return TestClient(create_app(services, keepalive_sec=5.0))


def _sse_events(body: str) -> List[dict]:
    events = []
    for frame in body.split("\n\n"):
        for line in frame.splitlines():
            if line.startswith("data: "):
                events.append(json.loads(line[len("data: "):]))
    return events


def test_health() -> None:
    client = _client(InMemoryCatalog())

    assert client.get("/health").json() == {"status": "ok"}


def test_missing_authorization_is_rejected_before_any_fetch() -> None:
    catalog = InMemoryCatalog()
    client = _client(catalog)

    for path in ("/api/darkroom/preflight", "/api/darkroom/run"):
        resp = client.post(path, json={})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Missing authorization"}

    resp = client.post("/api/darkroom/run", json={}, headers={"Authorization": "Bearer unknown"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    assert catalog.fetch_calls == []


def test_non_admin_is_forbidden_before_any_fetch() -> None:
    catalog = InMemoryCatalog()
    client = _client(catalog)

    resp = client.post("/api/darkroom/run", json={"limit": 5}, headers={"Authorization": "Bearer visitor-token"})

    assert resp.status_code == 403
    assert resp.json() == {"error": "Admin access required"}
    assert catalog.fetch_calls == []


def test_missing_platform_token_is_a_server_error() -> None:
    catalog = InMemoryCatalog()
    client = _client(catalog, settings=_settings(token=None))

    resp = client.post("/api/darkroom/preflight", json={}, headers=ADMIN)

    assert resp.status_code == 500
    assert resp.json() == {"error": "SHOPIFY_ADMIN_ACCESS_TOKEN not configured"}
    assert catalog.fetch_calls == []


def test_preflight_reports_eligibility(make_item) -> None:
    catalog = InMemoryCatalog(
        [
            make_item("gid://shopify/Product/1", images=2),
            make_item("gid://shopify/Product/2", tags=["img:needs-brand", "dept:objects"]),
        ]
    )
    client = _client(catalog)

    resp = client.post("/api/darkroom/preflight", json={"limit": 10}, headers=ADMIN)

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["summary"] == {"total": 2, "will_process": 1, "will_skip": 1}
    assert payload["products"][0]["image_count"] == 2
    assert payload["products"][1]["skip_reason"] == "Missing source:faire tag"
    assert catalog.note_writes == []


def test_limit_is_clamped_not_rejected() -> None:
    catalog = InMemoryCatalog()
    client = _client(catalog)

    for body, expected in (({"limit": 1000}, 50), ({"limit": 0}, 1), ({}, 20), ({"limit": "many"}, 20)):
        resp = client.post("/api/darkroom/preflight", json=body, headers=ADMIN)
        assert resp.status_code == 200
        assert catalog.fetch_calls[-1] == expected

    resp = client.post("/api/darkroom/preflight", headers=ADMIN)
    assert resp.status_code == 200
    assert catalog.fetch_calls[-1] == 20


def test_malformed_body_without_credentials_is_unauthenticated() -> None:
    catalog = InMemoryCatalog()
    client = _client(catalog)

    for path in ("/api/darkroom/preflight", "/api/darkroom/run"):
        resp = client.post(path, content="{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Missing authorization"}
    assert catalog.fetch_calls == []


def test_malformed_body_from_admin_uses_default_limit() -> None:
    catalog = InMemoryCatalog()
    client = _client(catalog)

    resp = client.post(
        "/api/darkroom/preflight",
        content="{not json",
        headers={**ADMIN, "Content-Type": "application/json"},
    )
    assert resp.status_code == 200
    assert catalog.fetch_calls == [20]

    resp = client.post("/api/darkroom/preflight", json=[5], headers=ADMIN)
    assert resp.status_code == 200
    assert catalog.fetch_calls[-1] == 20


def test_preflight_source_failure_is_reported() -> None:
    client = _client(_DownSource())

    resp = client.post("/api/darkroom/preflight", json={}, headers=ADMIN)

    assert resp.status_code == 500
    assert "unreachable" in resp.json()["error"]


def test_run_streams_ordered_events(make_item) -> None:
    catalog = InMemoryCatalog(
        [
            make_item("gid://shopify/Product/1"),
            make_item("gid://shopify/Product/2", tags=["img:needs-brand", "source:printify"]),
            make_item("gid://shopify/Product/3", images=0),
        ]
    )
    client = _client(catalog)

    resp = client.post("/api/darkroom/run", json={"limit": 3}, headers=ADMIN)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache"
    events = _sse_events(resp.text)
    assert [event["type"] for event in events] == ["start", "progress", "progress", "progress", "complete"]
    assert events[0]["limit"] == 3
    assert events[0]["run_id"].startswith("run_")
    assert [event["status"] for event in events[1:4]] == ["success", "skipped", "skipped"]
    summary = events[-1]["summary"]
    assert summary == {
        "total": 3,
        "succeeded": 1,
        "failed": 0,
        "timed_out": 0,
        "skipped": 2,
        "success_rate": 100.0,
    }
    assert events[-1]["results"][0]["payload"] == "Ash glaze over iron. It holds still."
    assert "img:needs-brand" in catalog.get("gid://shopify/Product/1").tags


def test_run_with_unreachable_source_streams_start_then_error() -> None:
    source = _DownSource()
    client = _client(source)

    resp = client.post("/api/darkroom/run", json={"limit": 7}, headers=ADMIN)

    events = _sse_events(resp.text)
    assert [event["type"] for event in events] == ["start", "error"]
    assert "connection refused" in events[1]["message"]
    assert source.fetch_calls == [7]
