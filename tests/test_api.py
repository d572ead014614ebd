"""Tests for API endpoints."""

import pytest


@pytest.mark.asyncio
class TestAPIEndpoints:
    """Test JSON API endpoints."""

    async def test_shorten_url(self, client, sample_urls):
        """Test POST /api/shorten."""
        response = await client.post("/api/shorten", json={"url": sample_urls[0]})

        assert response.status_code == 201
        data = response.json()
        assert set(data) == {"shortCode", "shortUrl", "originalUrl", "createdAt", "expiresAt"}
        assert data["originalUrl"] == sample_urls[0]
        assert data["shortUrl"] == f"http://testserver/{data['shortCode']}"

    async def test_shorten_with_options(self, client, sample_urls):
        response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[0], "customCode": "test123", "expiresInDays": 30},
        )

        assert response.status_code == 201
        assert response.json()["shortCode"] == "test123"

    async def test_shorten_accepts_snake_case(self, client, sample_urls):
        response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[0], "custom_code": "snake12"},
        )

        assert response.status_code == 201
        assert response.json()["shortCode"] == "snake12"

    async def test_shorten_behind_proxy(self, client, sample_urls):
        response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[0]},
            headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "sho.rt"},
        )

        assert response.json()["shortUrl"].startswith("https://sho.rt/")

    async def test_shorten_invalid_url(self, client):
        """Test POST /api/shorten with invalid URL."""
        response = await client.post("/api/shorten", json={"url": "not-a-url"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InvalidUrl"
        assert "Invalid URL" in data["message"]
        assert "timestamp" in data

    async def test_shorten_missing_url(self, client):
        response = await client.post("/api/shorten", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    async def test_shorten_duplicate_custom_code(self, client, sample_urls):
        await client.post("/api/shorten", json={"url": sample_urls[0], "customCode": "dupe123"})

        response = await client.post(
            "/api/shorten", json={"url": sample_urls[1], "customCode": "dupe123"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "CodeTaken"

    async def test_shorten_invalid_custom_code(self, client, sample_urls):
        response = await client.post(
            "/api/shorten", json={"url": sample_urls[0], "customCode": "bad!"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidShortCode"

    async def test_get_url_info(self, client, sample_urls):
        """Test GET /api/urls/{code}."""
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        response = await client.get(f"/api/urls/{created['shortCode']}")

        assert response.status_code == 200
        data = response.json()
        assert data["shortCode"] == created["shortCode"]
        assert data["originalUrl"] == sample_urls[0]
        assert data["domain"] == "example.com"
        assert data["clickCount"] == 0
        assert data["isActive"] is True

    async def test_get_info_not_found(self, client):
        response = await client.get("/api/urls/nope123")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    async def test_stats(self, client, sample_urls):
        for url in sample_urls:
            await client.post("/api/shorten", json={"url": url})

        response = await client.get("/api/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totalUrls"] == 3
        assert data["activeUrls"] == 3
        assert data["expiredUrls"] == 0
        assert data["totalClicks"] == 0
        assert len(data["recentUrls"]) == 3

    async def test_cleanup_without_body_deletes_nothing(self, client, clock, sample_urls):
        await client.post("/api/shorten", json={"url": sample_urls[0], "expiresInDays": 0})
        clock.advance(days=1)

        response = await client.post("/api/cleanup")

        assert response.status_code == 200
        assert response.json()["deletedCount"] == 0

    async def test_cleanup_include_expired(self, client, clock, sample_urls):
        await client.post("/api/shorten", json={"url": sample_urls[0], "expiresInDays": 0})
        await client.post("/api/shorten", json={"url": sample_urls[1]})
        clock.advance(days=1)

        response = await client.post("/api/cleanup", json={"includeExpired": True})

        assert response.status_code == 200
        data = response.json()
        assert data["deletedCount"] == 1
        assert data["message"]

    async def test_cleanup_age_out_of_range(self, client):
        response = await client.post(
            "/api/cleanup", json={"includeExpired": True, "olderThanDays": 1_000_000}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    async def test_health(self, client):
        """Test GET /api/health."""
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"


@pytest.mark.asyncio
class TestWebRoutes:
    """Test redirects and public routes."""

    async def test_redirect(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        response = await client.get(f"/{created['shortCode']}")

        assert response.status_code == 302
        assert response.headers["location"] == sample_urls[0]

        info = (await client.get(f"/info/{created['shortCode']}")).json()
        assert info["clickCount"] == 1

    async def test_redirect_not_found(self, client):
        response = await client.get("/nope123")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    async def test_redirect_expired(self, client, clock, sample_urls):
        created = (
            await client.post("/api/shorten", json={"url": sample_urls[0], "expiresInDays": 1})
        ).json()
        clock.advance(days=1)

        response = await client.get(f"/{created['shortCode']}")

        assert response.status_code == 410
        assert response.json()["error"] == "Expired"

    async def test_info_does_not_count_clicks(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        await client.get(f"/info/{created['shortCode']}")
        response = await client.get(f"/info/{created['shortCode']}")

        assert response.status_code == 200
        assert response.json()["clickCount"] == 0

    async def test_health_is_not_a_short_code(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
