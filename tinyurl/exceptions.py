"""Error taxonomy for allocation, resolution and store access.

::
    ShortenerError
    ├─ AllocationExhausted   id-collision retry budget exceeded  → 422
    ├─ NotFound              no record for the short id           → 404
    └─ StoreError            unclassified store failure           → 500
       └─ StoreUnavailable   connectivity / operational failure   → 500
"""

__all__ = [
    "AllocationExhausted",
    "NotFound",
    "ShortenerError",
    "StoreError",
    "StoreUnavailable",
]


class ShortenerError(Exception):
    """Base class for every error raised by the tinyurl core."""


class AllocationExhausted(ShortenerError):
    def __init__(self, retries_attempted: int) -> None:
        self.retries_attempted = retries_attempted
        super().__init__(
            f"Could not allocate a unique short id after {retries_attempted} retries"
        )


class NotFound(ShortenerError):
    def __init__(self, short_id: str) -> None:
        self.short_id = short_id
        super().__init__(f"Short id '{short_id}' not found")


class StoreError(ShortenerError):
    """The store rejected an operation for a reason the core does not recover from."""


class StoreUnavailable(StoreError):
    """The store could not be reached or failed while executing a statement."""
