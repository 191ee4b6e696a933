"""Pydantic schemas for request/response validation in tinyurl.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    └─ url: str (non-empty, otherwise unvalidated)

    ShortenResponse (Output)
    └─ url: str ("{BASE_URL}/{short_id}")

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

How to Use
===========
**Step 1 — Input parsing**::
    @router.post("/")
    async def shorten(payload: ShortenRequest):
        short_id = await service.allocate(payload.url)

**Step 2 — Response serialization**::
    return ShortenResponse(url=f"{settings.BASE_URL}/{short_id}")

Key Behaviours
===============
- The url is stored exactly as submitted; it is neither validated nor normalised.
- Empty or missing urls are rejected by FastAPI with 422.
"""

from pydantic import BaseModel, Field

from tinyurl.enums import HealthStatus

__all__ = ["HealthResponse", "ShortenRequest", "ShortenResponse"]


class ShortenRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Long URL to shorten, e.g. 'https://example.com/a'")


class ShortenResponse(BaseModel):
    url: str = Field(..., description="Short URL, e.g. 'http://127.0.0.1:9876/abc123'")


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
