"""SQLAlchemy ORM model for shortened URLs.

Data Model Layout
=================
::
    urls table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ short_code (VARCHAR(20) UNIQUE, INDEXED)
    ├─ original_url (TEXT NOT NULL)
    ├─ clicks (INTEGER DEFAULT 0)
    └─ created_at (TIMESTAMPTZ, DEFAULT NOW())

Key Behaviours
===============
- short_code carries a unique constraint; it is the final arbiter when two
  requests race for the same code.
- clicks starts at 0 and is only ever incremented, by the database itself.
- Rows are never deleted.

Classes:
    URL:  A shortened URL mapping with its click counter.
"""

import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shortener.database import Base

__all__ = ["URL"]


class URL(Base):
    __tablename__ = "urls"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    short_code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<URL(id={self.id}, short_code='{self.short_code}', clicks={self.clicks})>"
