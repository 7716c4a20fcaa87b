"""Tests for API endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport

from web_app import create_app
from config import Config
from tinyurl.exceptions import CodeCollision, StoreUnavailable

from helpers import BASE_URL, make_record, seed_owner


@pytest.fixture
def app(service, resolver):
    """Create test FastAPI app."""
    config = Config(base_url=BASE_URL)
    return create_app(
        service_instance=service,
        resolver_instance=resolver,
        config=config,
    )


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac


@pytest.mark.asyncio
class TestAPIEndpoints:
    """Test API endpoints."""
    
    async def test_shorten_url(self, client, sample_urls):
        """Test POST /api/shorten."""
        response = await client.post("/api/shorten", json={"url": sample_urls[0]})
        
        assert response.status_code == 200
        data = response.json()
        assert data["original_url"] == sample_urls[0]
        assert data["short_url"] == f"{BASE_URL}/{data['short_code']}"
        assert "created_at" in data
    
    async def test_shorten_adds_protocol(self, client):
        response = await client.post("/api/shorten", json={"url": "github.com/user/repo"})
        
        assert response.status_code == 200
        assert response.json()["original_url"] == "https://github.com/user/repo"
    
    async def test_shorten_invalid_url(self, client):
        """Test invalid URL rejection."""
        response = await client.post("/api/shorten", json={"url": "http://"})
        
        assert response.status_code == 400
        assert response.json()["error_code"] == "request:validation_failed"
    
    async def test_shorten_for_owner(self, client, fallback_store):
        owner = await seed_owner(fallback_store)
        
        response = await client.post(
            "/api/shorten",
            json={"url": "https://example.com/mine"},
            headers={"X-Owner-Id": str(owner.id)},
        )
        
        assert response.status_code == 200
        listing = await client.get(f"/api/owners/{owner.id}/urls")
        assert listing.status_code == 200
        data = listing.json()
        assert data["storage"] == "fallback"
        assert [u["short_code"] for u in data["urls"]] == [response.json()["short_code"]]
    
    async def test_shorten_unknown_owner(self, client):
        response = await client.post(
            "/api/shorten",
            json={"url": "https://example.com"},
            headers={"X-Owner-Id": "999"},
        )
        
        assert response.status_code == 404
        assert response.json()["error_code"] == "owner:owner_not_found"
    
    async def test_collision_is_retryable_503(self, client, service):
        service.shorten = AsyncMock(side_effect=CodeCollision("taken"))
        
        response = await client.post("/api/shorten", json={"url": "https://example.com"})
        
        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"
        data = response.json()
        assert data["retryable"] is True
        assert "try again" in data["error"]
    
    async def test_storage_outage_is_503(self, client, service):
        service.shorten = AsyncMock(side_effect=StoreUnavailable("disk gone"))
        
        response = await client.post("/api/shorten", json={"url": "https://example.com"})
        
        assert response.status_code == 503
        assert response.json()["error_code"] == "store:store_unavailable"
    
    async def test_register_owner(self, client):
        response = await client.post("/api/owners", json={"email": "new@example.com", "first_name": "New"})
        
        assert response.status_code == 201
        assert response.json()["email"] == "new@example.com"
        
        again = await client.post("/api/owners", json={"email": "new@example.com"})
        assert again.status_code == 409
    
    async def test_list_urls_unknown_owner(self, client):
        response = await client.get("/api/owners/12345/urls")
        assert response.status_code == 404
    
    async def test_redirect(self, client, resolver, sample_urls):
        """Test GET /{short_code} redirect."""
        create = await client.post("/api/shorten", json={"url": sample_urls[0]})
        short_code = create.json()["short_code"]
        
        response = await client.get(f"/{short_code}", follow_redirects=False)
        
        assert response.status_code == 301
        assert response.headers["location"] == sample_urls[0]
        
        await resolver.drain()
        info = await client.get(f"/api/urls/{short_code}")
        assert info.status_code == 200
        assert info.json()["click_count"] == 1
    
    async def test_redirect_normalizes_legacy_record(self, client, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("old01", "https://https://example.com/x"))
        
        response = await client.get("/old01", follow_redirects=False)
        
        assert response.status_code == 301
        assert response.headers["location"] == "https://example.com/x"
    
    async def test_redirect_not_found(self, client):
        """Test redirect for nonexistent code."""
        response = await client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404
    
    async def test_redirect_invalid_code(self, client):
        response = await client.get("/ab", follow_redirects=False)
        assert response.status_code == 400
        assert response.json()["error_code"] == "resolve:invalid_code"
    
    async def test_redirect_malformed_record(self, client, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("bad01", "javascript:alert(1)"))
        
        response = await client.get("/bad01", follow_redirects=False)
        assert response.status_code == 400
    
    async def test_favicon(self, client):
        response = await client.get("/favicon.ico")
        assert response.status_code == 204
    
    async def test_url_info_missing(self, client):
        response = await client.get("/api/urls/nope1")
        assert response.status_code == 404
    
    async def test_collision_statistics(self, client, sample_urls):
        for url in sample_urls:
            await client.post("/api/shorten", json={"url": url})
        
        response = await client.get("/api/stats/collisions")
        
        assert response.status_code == 200
        data = response.json()
        assert data["total_urls"] == 3
        assert data["collisions"] == 0
    
    async def test_health_check(self, client):
        """Test health check endpoint."""
        response = await client.get("/api/health")
        
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage"] == "fallback"
        assert data["primary"] == "unhealthy"
        assert data["fallback"] == "healthy"


@pytest.mark.asyncio
async def test_redirect_under_path_prefix(service, resolver, fallback_store):
    """With a path prefix the redirect route moves under it."""
    app = create_app(service, resolver, Config(base_url=BASE_URL, path_prefix="/s/"))
    owner = await seed_owner(fallback_store)
    await fallback_store.append_record(owner.id, make_record("abc12", "https://example.com/p"))
    
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as client:
        response = await client.get("/s/abc12", follow_redirects=False)
        health = await client.get("/api/health")
    
    assert response.status_code == 301
    assert response.headers["location"] == "https://example.com/p"
    assert health.status_code == 200
