"""Persistence operations for shortened URLs.

The repository is the only code that talks to the ``urls`` table. Each method
is one atomic unit against the database; nothing here spans a transaction
across calls.

Operations
==========
::
    find_by_code(code)      SELECT ... WHERE short_code = :code
    create(url, code)       INSERT ... (clicks = 0)        → ShortCodeConflict
    increment_clicks(code)  UPDATE ... clicks = clicks + 1
                            RETURNING original_url, clicks → URLNotFoundError
    ping()                  SELECT 1
"""

from typing import NamedTuple, Optional

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.exceptions import ShortCodeConflict, URLNotFoundError
from shortener.models import URL

__all__ = ["ClickResult", "URLRepository"]


class ClickResult(NamedTuple):
    original_url: str
    clicks: int


class URLRepository:
    """Async data access for the ``urls`` table, bound to one session."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_code(self, short_code: str) -> Optional[URL]:
        result = await self._db.execute(select(URL).where(URL.short_code == short_code))
        return result.scalar_one_or_none()

    async def create(self, original_url: str, short_code: str) -> URL:
        """Insert a new mapping with a zero click count.

        Raises:
            ShortCodeConflict: If ``short_code`` is already present. The session
                is rolled back so the caller can retry with another code.
        """
        url = URL(short_code=short_code, original_url=original_url, clicks=0)
        self._db.add(url)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            raise ShortCodeConflict(short_code) from exc
        await self._db.refresh(url)
        return url

    async def increment_clicks(self, short_code: str) -> ClickResult:
        """Atomically bump the click counter and return the new state.

        The destination URL is read back from the same UPDATE statement, so a
        redirect never needs a separate lookup.

        Raises:
            URLNotFoundError: If no record has ``short_code``.
        """
        stmt = (
            update(URL)
            .where(URL.short_code == short_code)
            .values(clicks=URL.clicks + 1)
            .returning(URL.original_url, URL.clicks)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        row = result.one_or_none()
        await self._db.commit()
        if row is None:
            raise URLNotFoundError()
        return ClickResult(original_url=row.original_url, clicks=row.clicks)

    async def ping(self) -> None:
        await self._db.execute(text("SELECT 1"))
