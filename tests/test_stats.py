"""Stats endpoint behavior tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_stats_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"originalUrl": "https://www.google.com"})
    short_code = create_resp.json()["shortCode"]

    response = await client.get(f"/api/stats/{short_code}")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"id", "short_code", "original_url", "clicks", "created_at"}
    assert data["short_code"] == short_code
    assert data["original_url"] == "https://www.google.com"
    assert data["clicks"] == 0
    assert data["created_at"]


@pytest.mark.asyncio
async def test_stats_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/api/stats/xyz123")
    assert response.status_code == 404
    assert response.json() == {"error": "Short URL not found"}


@pytest.mark.asyncio
async def test_stats_after_clicks(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"originalUrl": "https://www.example.com"})
    short_code = create_resp.json()["shortCode"]

    # Generate clicks
    for _ in range(5):
        await client.get(f"/{short_code}", follow_redirects=False)

    response = await client.get(f"/api/stats/{short_code}")
    assert response.status_code == 200
    assert response.json()["clicks"] == 5


@pytest.mark.asyncio
async def test_stats_do_not_count_as_clicks(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"originalUrl": "https://www.example.com"})
    short_code = create_resp.json()["shortCode"]
    await client.get(f"/{short_code}", follow_redirects=False)

    first = (await client.get(f"/api/stats/{short_code}")).json()
    second = (await client.get(f"/api/stats/{short_code}")).json()
    assert first == second
    assert first["clicks"] == 1
