"""FastAPI route definitions for the tinyurl REST API.

API Endpoint Overview
=====================
::
    GET  /api/health
        └─ HealthResponse (200)

    POST /
        ├─ ShortenRequest (request body)
        └─ ShortenResponse (201) or 422/500

    GET  /:short_id
        └─ 308 Redirect or 404/500

Error Mapping
=============
::
    AllocationExhausted  → 422  (detail names the retry count)
    NotFound             → 404
    StoreError           → 500  (fixed detail; driver text stays in the logs)

Key Behaviours
===============
- Handlers only translate; allocation and lookup live in URLShorteningService.
- Failures were logged where they were detected, so handlers log the request
  outcome only.
- The health route sits under /api/ so no short id can shadow it.
- Urls are stored verbatim, but the Location header is percent-encoded:
  spaces and non-ASCII characters are escaped, existing escapes and URL
  delimiters are left as they are.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from tinyurl.dependencies import RequestContext, get_request_context, get_url_service
from tinyurl.enums import HealthStatus
from tinyurl.exceptions import AllocationExhausted, NotFound, StoreError
from tinyurl.schemas import HealthResponse, ShortenRequest, ShortenResponse
from tinyurl.url_service import URLShorteningService

__all__ = ["INTERNAL_ERROR_DETAIL", "router"]

INTERNAL_ERROR_DETAIL = "Internal server error"

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.store.ping()
    except StoreError:
        db_status = HealthStatus.UNHEALTHY

    ctx.logger.debug(f"Health check completed: {db_status.value}")
    return HealthResponse(status=db_status, database=db_status)


@router.post("/", response_model=ShortenResponse, status_code=201, tags=["urls"])
async def shorten_url(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> ShortenResponse:
    try:
        short_id = await service.allocate(payload.url)
    except AllocationExhausted as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL) from exc

    ctx.logger.info(f"Shortened for {ctx.client_ip} in {ctx.get_duration():.1f}ms: {short_id}")
    return ShortenResponse(url=f"{ctx.settings.BASE_URL.rstrip('/')}/{short_id}")


@router.get("/{short_id}", tags=["redirect"])
async def redirect_to_url(
    short_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> RedirectResponse:
    try:
        url = await service.resolve(short_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Short URL not found") from exc
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL) from exc

    ctx.logger.info(f"Redirect {short_id} -> {url} for {ctx.client_ip} in {ctx.get_duration():.1f}ms")
    return RedirectResponse(url=url, status_code=308)
