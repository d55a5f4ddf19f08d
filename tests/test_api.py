from __future__ import annotations

import asyncio
from typing import Any, Dict
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from catalog_core.api.generate_openapi import build_openapi
from catalog_core.api.main import app
from catalog_core.db import make_session_factory
from catalog_core.db.models import Tenant
from catalog_core.db.session import get_async_session

from conftest import create_schema, make_engine


@pytest.fixture
def factory(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    asyncio.run(create_schema(engine))
    yield make_session_factory(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def tenants(factory) -> Dict[str, Dict[str, str]]:
    """X-Tenant-ID headers of two tenants, keyed by slug."""

    async def create() -> Dict[str, Dict[str, str]]:
        async with factory() as session:
            rows = [Tenant(name="Acme", slug="acme"), Tenant(name="Globex", slug="globex")]
            session.add_all(rows)
            await session.commit()
            return {t.slug: {"X-Tenant-ID": str(t.id)} for t in rows}

    return asyncio.run(create())


@pytest.fixture
def client(factory):
    async def override_session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.json()["message"] == "Healthy"
    assert "X-Correlation-ID" in res.headers


def test_tenant_header_is_required(client: TestClient) -> None:
    res = client.get("/api/v1/health/tenant")
    assert res.status_code == 400
    assert res.json()["error"]["type"] == "http_error"

    res = client.get("/api/v1/health/tenant", headers={"X-Tenant-ID": "not-a-uuid"})
    assert res.status_code == 400


def test_category_errors_map_to_statuses(client: TestClient) -> None:
    res = client.post("/api/v1/dropdowns/categories", json={"name": "city"})
    assert res.status_code == 201
    city = res.json()
    assert city["level"] == 0

    res = client.post("/api/v1/dropdowns/categories", json={"name": "city"})
    assert res.status_code == 409
    body = res.json()
    assert body["status"] == 409
    assert body["error"]["type"] == "conflict"

    res = client.post("/api/v1/dropdowns/categories", json={"name": "metro", "parent_id": city["id"]})
    assert res.status_code == 201
    metro = res.json()
    assert metro["level"] == 1

    res = client.post("/api/v1/dropdowns/categories", json={"name": "zones", "parent_id": metro["id"]})
    assert res.status_code == 422
    assert res.json()["error"]["type"] == "validation_error"

    res = client.get(f"/api/v1/dropdowns/values/{uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"]["type"] == "not_found"


def test_request_validation_uses_error_envelope(client: TestClient) -> None:
    res = client.post("/api/v1/dropdowns/categories", json={"name": "x"})
    assert res.status_code == 422
    body = res.json()
    assert body["error"]["type"] == "validation_error"
    assert isinstance(body["error"]["details"], list)


def test_values_and_grouped_dropdowns(client: TestClient, tenants) -> None:
    acme, globex = tenants["acme"], tenants["globex"]
    category = client.post("/api/v1/dropdowns/categories", json={"name": "amenities"}).json()
    values_url = f"/api/v1/dropdowns/categories/{category['id']}/values"

    assert client.post(values_url, json={"value": "Parking"}).json()["slug"] == "parking"
    res = client.post(values_url, json={"value": "Parking", "tenant_scoped": True}, headers=acme)
    assert res.status_code == 201
    assert res.json()["tenant_id"] == acme["X-Tenant-ID"]

    res = client.post(values_url, json={"value": "Helipad", "tenant_scoped": True})
    assert res.status_code == 400

    grouped_acme = client.get("/api/v1/dropdowns", headers=acme).json()
    grouped_globex = client.get("/api/v1/dropdowns", headers=globex).json()
    assert len(grouped_acme["amenities"]) == 2
    assert [v["slug"] for v in grouped_globex["amenities"]] == ["parking"]


def test_entities_are_tenant_private(client: TestClient, tenants) -> None:
    acme, globex = tenants["acme"], tenants["globex"]

    res = client.post("/api/v1/entities/blog_post", json={"text": "Market Update 2026"})
    assert res.status_code == 400

    res = client.post(
        "/api/v1/entities/blog_post", json={"text": "Market Update 2026"}, headers={"X-Tenant-ID": str(uuid4())}
    )
    assert res.status_code == 404

    res = client.post("/api/v1/entities/blog_post", json={"text": "Market Update 2026"}, headers=acme)
    assert res.status_code == 201
    post = res.json()
    assert post["slug"] == "market-update-2026"

    assert client.get("/api/v1/entities/blog_post/by-slug/market-update-2026", headers=acme).status_code == 200
    assert client.get("/api/v1/entities/blog_post/by-slug/market-update-2026", headers=globex).status_code == 404
    assert client.delete(f"/api/v1/entities/blog_post/{post['id']}", headers=globex).status_code == 404

    res = client.patch(f"/api/v1/entities/blog_post/{post['id']}", json={"text": "Market Update Q3"}, headers=acme)
    assert res.json()["slug"] == "market-update-q3"

    assert client.get("/api/v1/entities/newsletter", headers=acme).status_code == 404


def test_property_links_and_seo(client: TestClient, tenants) -> None:
    acme = tenants["acme"]
    amenities = client.post("/api/v1/dropdowns/categories", json={"name": "amenities"}).json()
    pool = client.post(f"/api/v1/dropdowns/categories/{amenities['id']}/values", json={"value": "Pool"}).json()
    gym = client.post(f"/api/v1/dropdowns/categories/{amenities['id']}/values", json={"value": "Gym"}).json()

    res = client.post(
        "/api/v1/properties",
        json={"title": "Skyline Towers", "amenity_ids": [pool["id"]], "seo": {"meta_title": "Skyline"}},
        headers=acme,
    )
    assert res.status_code == 201
    prop: Dict[str, Any] = res.json()

    links_url = f"/api/v1/associations/property-amenities/{prop['id']}/links"
    res = client.post(links_url, json={"right_id": gym["id"]}, headers=acme)
    assert res.status_code == 201
    res = client.post(links_url, json={"right_id": gym["id"]}, headers=acme)
    assert res.status_code == 409
    assert [link["right_id"] for link in client.get(links_url, headers=acme).json()] == [pool["id"], gym["id"]]

    seo_url = f"/api/v1/attachments/property/{prop['id']}/seo"
    res = client.put(seo_url, json={"meta_description": "Lake-facing towers"}, headers=acme)
    assert res.status_code == 200
    seo = res.json()
    assert seo["meta_title"] == "Skyline"
    assert seo["meta_description"] == "Lake-facing towers"

    assert client.get(f"/api/v1/attachments/invoice/{prop['id']}/seo", headers=acme).status_code == 422

    assert client.delete(f"/api/v1/entities/property/{prop['id']}", headers=acme).status_code == 200
    assert client.get(seo_url, headers=acme).status_code == 404
    assert client.get(links_url, headers=acme).json() == []


def test_openapi_lists_registries() -> None:
    schema = build_openapi()
    assert "/api/v1/dropdowns/categories" in schema["paths"]
    assert "/api/v1/properties" in schema["paths"]
    assert "property-amenities" in schema["x-associations"]
    assert "blog_post" in schema["x-entity-kinds"]
