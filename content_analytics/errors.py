"""Error types raised at the edges of the content analytics pipeline."""

from __future__ import annotations

from typing import Optional


class ContentAnalyticsError(RuntimeError):
    """Base class for failures surfaced to pipeline callers."""


class FeedFetchError(ContentAnalyticsError):
    """Raised when the raw feed cannot be retrieved for a refresh."""

    def __init__(self, url: str, detail: str, *, status_code: Optional[int] = None) -> None:
        self.url = url
        self.detail = detail
        self.status_code = status_code
        suffix = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Failed to fetch feed from {url}{suffix}: {detail}")


class InsightServiceError(ContentAnalyticsError):
    """Raised when the insight-generation collaborator fails or replies with junk."""
