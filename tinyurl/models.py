"""SQLAlchemy ORM models for the tinyurl service.

Data Model Layout
=================
::
    urls table
    ├─ id  (VARCHAR(16), PRIMARY KEY "urls_pkey")
    └─ url (TEXT NOT NULL, UNIQUE "urls_url_key")

How to Use
===========
**Step 1 — Import**::
    from tinyurl.models import UrlRecord

**Step 2 — Query by short id**::
    result = await session.execute(select(UrlRecord.url).where(UrlRecord.id == "abc123"))
    url = result.scalar_one_or_none()

Key Behaviours
===============
- Both columns are immutable once written; there is no update or delete path.
- Constraint names are fixed so store errors can be attributed to the id or the url.

Classes:
    UrlRecord:  One short id ↔ long URL mapping.
"""

from sqlalchemy import PrimaryKeyConstraint, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tinyurl.config import MAX_SHORT_ID_LENGTH
from tinyurl.database import Base

__all__ = ["ID_CONSTRAINT", "URL_CONSTRAINT", "UrlRecord"]

ID_CONSTRAINT = "urls_pkey"
URL_CONSTRAINT = "urls_url_key"


class UrlRecord(Base):
    __tablename__ = "urls"
    __table_args__ = (
        PrimaryKeyConstraint("id", name=ID_CONSTRAINT),
        UniqueConstraint("url", name=URL_CONSTRAINT),
    )

    id: Mapped[str] = mapped_column(String(MAX_SHORT_ID_LENGTH))
    url: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<UrlRecord(id='{self.id}', url='{self.url}')>"
