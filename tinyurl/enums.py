"""Shared enums for the tinyurl service.

This module defines all status and outcome enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "InsertStatus", "RequestStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    @classmethod
    def from_str(cls, value: str) -> "HealthStatus":
        """Safely parse from string, falling back to UNHEALTHY for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNHEALTHY


class InsertStatus(StrEnum):
    """Outcome of a single atomic insert attempt against the store."""

    INSERTED = "inserted"
    EXISTING_FOR_URL = "existing_for_url"
    ID_CONFLICT = "id_conflict"


class RequestStatus(StrEnum):
    """Metric label values for allocation and resolution requests."""

    CREATED = "created"
    EXISTING = "existing"
    FOUND = "found"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"
    ERROR = "error"
