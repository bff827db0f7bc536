"""Redirect endpoint behavior tests."""

import pytest
from httpx import AsyncClient


async def shorten(client: AsyncClient, url: str) -> str:
    response = await client.post("/api/shorten", json={"originalUrl": url})
    assert response.status_code == 201
    return response.json()["shortCode"]


@pytest.mark.asyncio
async def test_redirect_valid_code(client: AsyncClient) -> None:
    short_code = await shorten(client, "https://example.com")

    # httpx won't follow redirects by default
    response = await client.get(f"/{short_code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com"


@pytest.mark.asyncio
async def test_redirect_preserves_original_url_exactly(client: AsyncClient) -> None:
    original = "https://example.com/some/path?query=1&other=two#section"
    short_code = await shorten(client, original)

    response = await client.get(f"/{short_code}", follow_redirects=False)
    assert response.headers["location"] == original


@pytest.mark.asyncio
async def test_redirect_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/xyz123", follow_redirects=False)
    assert response.status_code == 404
    assert response.json() == {"error": "Short URL not found"}


@pytest.mark.asyncio
async def test_redirect_increments_clicks(client: AsyncClient) -> None:
    short_code = await shorten(client, "https://www.python.org")

    # Visit 3 times
    for _ in range(3):
        await client.get(f"/{short_code}", follow_redirects=False)

    stats_resp = await client.get(f"/api/stats/{short_code}")
    assert stats_resp.status_code == 200
    assert stats_resp.json()["clicks"] == 3


@pytest.mark.asyncio
async def test_redirect_only_counts_its_own_code(client: AsyncClient) -> None:
    visited = await shorten(client, "https://example.com/a")
    untouched = await shorten(client, "https://example.com/b")

    await client.get(f"/{visited}", follow_redirects=False)

    assert (await client.get(f"/api/stats/{visited}")).json()["clicks"] == 1
    assert (await client.get(f"/api/stats/{untouched}")).json()["clicks"] == 0


@pytest.mark.asyncio
async def test_redirect_unknown_code_does_not_create_record(client: AsyncClient, url_count) -> None:
    await client.get("/abcdef", follow_redirects=False)
    assert await url_count() == 0


@pytest.mark.asyncio
async def test_shorten_redirect_stats_scenario(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"originalUrl": "https://example.com"})
    assert create_resp.status_code == 201
    data = create_resp.json()
    short_code = data["shortCode"]
    assert len(short_code) == 6
    assert data["shortUrl"].endswith(short_code)

    redirect_resp = await client.get(f"/{short_code}", follow_redirects=False)
    assert redirect_resp.headers["location"] == "https://example.com"

    stats_resp = await client.get(f"/api/stats/{short_code}")
    assert stats_resp.json()["clicks"] == 1
