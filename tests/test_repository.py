"""URLRepository tests against an in-memory database."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.exceptions import ShortCodeConflict, URLNotFoundError
from shortener.repository import ClickResult, URLRepository


@pytest.mark.asyncio
async def test_create_and_find(db_session: AsyncSession) -> None:
    repository = URLRepository(db_session)

    created = await repository.create("https://example.com", "abc123")
    found = await repository.find_by_code("abc123")

    assert created.id is not None
    assert created.clicks == 0
    assert created.created_at is not None
    assert found is not None
    assert found.original_url == "https://example.com"


@pytest.mark.asyncio
async def test_find_missing_code(db_session: AsyncSession) -> None:
    assert await URLRepository(db_session).find_by_code("xyz123") is None


@pytest.mark.asyncio
async def test_find_is_case_sensitive(db_session: AsyncSession) -> None:
    repository = URLRepository(db_session)
    await repository.create("https://example.com", "AbCdEf")

    assert await repository.find_by_code("abcdef") is None


@pytest.mark.asyncio
async def test_duplicate_code_raises_conflict(db_session: AsyncSession) -> None:
    repository = URLRepository(db_session)
    await repository.create("https://example.com/1", "abc123")

    with pytest.raises(ShortCodeConflict) as exc_info:
        await repository.create("https://example.com/2", "abc123")

    assert exc_info.value.short_code == "abc123"
    # The session stays usable after the rollback.
    other = await repository.create("https://example.com/3", "def456")
    assert other.id is not None
    original = await repository.find_by_code("abc123")
    assert original.original_url == "https://example.com/1"


@pytest.mark.asyncio
async def test_increment_clicks_returns_new_count(db_session: AsyncSession) -> None:
    repository = URLRepository(db_session)
    await repository.create("https://example.com", "abc123")

    first = await repository.increment_clicks("abc123")
    second = await repository.increment_clicks("abc123")

    assert first == ClickResult(original_url="https://example.com", clicks=1)
    assert second.clicks == 2


@pytest.mark.asyncio
async def test_increment_unknown_code(db_session: AsyncSession) -> None:
    with pytest.raises(URLNotFoundError):
        await URLRepository(db_session).increment_clicks("xyz123")


@pytest.mark.asyncio
async def test_ping(db_session: AsyncSession) -> None:
    await URLRepository(db_session).ping()
