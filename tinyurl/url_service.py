"""URL Shortener Service Layer - Short Id Allocation and Resolution

This module holds the core business logic: allocating a unique short id for a
long URL and resolving a short id back to its URL. All persistence goes
through an injected ``UrlStore``; all candidate ids come from an injected
``IdGenerator``.

Allocation Flow
===============
::
    ┌─────────────┐
    │ allocate()  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Generate    │◀──────────────────────┐
    │ candidate   │                       │
    └──────┬──────┘                       │
           ▼                              │
    ┌─────────────┐                       │
    │ insert_or_  │                       │
    │ get (atomic)│                       │
    └──────┬──────┘                       │
           ▼                              │
    ┌────────────────────────────┐        │
    │ INSERTED         → return  │        │
    │ EXISTING_FOR_URL → return  │        │
    │                   existing │        │
    │ ID_CONFLICT ───────────────┼─ retries left? ── yes
    └────────────────────────────┘        │
                                          no
                                          ▼
                               AllocationExhausted

Resolution Flow
===============
::
    ┌─────────────┐     ┌─────────────┐     found    ┌─────────┐
    │ resolve()   │────▶│ get_by_id   │─────────────▶│ url     │
    └─────────────┘     └──────┬──────┘              └─────────┘
                               │ missing
                               ▼
                           NotFound

Usage
=====
```python
store = InMemoryUrlStore()
service = URLShorteningService(store, NanoIdGenerator())

short_id = await service.allocate("https://example.com/a")
assert await service.resolve(short_id) == "https://example.com/a"
```

Error Policy
============
- Id collisions are retried locally, up to ``max_retries`` extra attempts.
- Url collisions are success: the existing id is returned.
- Store failures propagate immediately (already logged by the store).
"""

import logging
import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram

from tinyurl.enums import InsertStatus, RequestStatus
from tinyurl.exceptions import AllocationExhausted, NotFound, StoreError
from tinyurl.id_generator import IdGenerator
from tinyurl.store import UrlStore

if TYPE_CHECKING:
    from tinyurl.dependencies import RequestContext

__all__ = ["DEFAULT_MAX_RETRIES", "URLShorteningService"]

DEFAULT_MAX_RETRIES = 3


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

ALLOCATIONS_TOTAL = Counter(
    "tinyurl_allocations_total",
    "Total short id allocation requests",
    ["status"],
)
ID_COLLISIONS_TOTAL = Counter(
    "tinyurl_id_collisions_total",
    "Candidate short ids rejected because the id was already taken",
)
RESOLUTIONS_TOTAL = Counter(
    "tinyurl_resolutions_total",
    "Total short id resolution requests",
    ["status"],
)
ALLOCATION_DURATION = Histogram(
    "tinyurl_allocation_duration_seconds",
    "Time taken to allocate a short id",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================

class URLShorteningService:
    """Allocates and resolves short ids against an injected store.

    The service holds no mutable state, so one instance per request (built
    with ``from_context``) and one shared instance behave identically.

    Example:
        >>> service = URLShorteningService(InMemoryUrlStore(), NanoIdGenerator())
        >>> short_id = await service.allocate("https://x.test")
        >>> await service.allocate("https://x.test") == short_id
        True
    """

    def __init__(
        self,
        store: UrlStore,
        generator: IdGenerator,
        max_retries: int = DEFAULT_MAX_RETRIES,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        self._store = store
        self._generator = generator
        self._max_retries = max_retries
        self._logger = logger or logging.getLogger("tinyurl")

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "URLShorteningService":
        """Build a service bound to the request's logger and shared resources."""
        return cls(
            store=ctx.store,
            generator=ctx.generator,
            max_retries=ctx.settings.MAX_RETRIES,
            logger=ctx.logger,
        )

    @property
    def max_retries(self) -> int:
        return self._max_retries

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def allocate(self, url: str) -> str:
        """Return the short id for ``url``, creating a record if none exists.

        Re-submitting a url returns the id it already has. A fresh candidate is
        drawn on every id collision, for at most ``max_retries`` retries.

        Raises:
            AllocationExhausted: every candidate collided with an existing id
            StoreError: the store failed; not retried
        """
        start_time = time.perf_counter()

        for attempt in range(self._max_retries + 1):
            candidate = self._generator.generate()
            try:
                result = await self._store.insert_or_get(candidate, url)
            except StoreError:
                self._record_allocation(RequestStatus.ERROR, start_time)
                raise

            if result.status is InsertStatus.INSERTED:
                self._record_allocation(RequestStatus.CREATED, start_time)
                self._logger.info(f"Allocated short id '{result.short_id}' for {url}")
                return result.short_id

            if result.status is InsertStatus.EXISTING_FOR_URL:
                self._record_allocation(RequestStatus.EXISTING, start_time)
                self._logger.info(f"Reusing short id '{result.short_id}' for {url}")
                return result.short_id

            ID_COLLISIONS_TOTAL.inc()
            self._logger.warning(
                f"Short id '{candidate}' already taken (attempt {attempt + 1} of {self._max_retries + 1})"
            )

        self._record_allocation(RequestStatus.EXHAUSTED, start_time)
        self._logger.error(f"Short id allocation exhausted after {self._max_retries} retries for {url}")
        raise AllocationExhausted(self._max_retries)

    async def resolve(self, short_id: str) -> str:
        """Return the url recorded for ``short_id``.

        Raises:
            NotFound: no record exists for the id
            StoreError: the store failed
        """
        try:
            url = await self._store.get_by_id(short_id)
        except StoreError:
            RESOLUTIONS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise

        if url is None:
            RESOLUTIONS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            self._logger.info(f"Short id '{short_id}' not found")
            raise NotFound(short_id)

        RESOLUTIONS_TOTAL.labels(status=RequestStatus.FOUND).inc()
        self._logger.debug(f"Resolved '{short_id}' -> {url}")
        return url

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    @staticmethod
    def _record_allocation(status: RequestStatus, start_time: float) -> None:
        ALLOCATION_DURATION.observe(time.perf_counter() - start_time)
        ALLOCATIONS_TOTAL.labels(status=status).inc()
