"""Exception hierarchy shared by the fetcher, cache layer and tool surface."""

from __future__ import annotations


class YapsError(Exception):
    """Base class for all errors raised by this package."""


class UpstreamFetchError(YapsError):
    """The YAPS API call failed or returned a non-success status."""

    def __init__(self, username: str, reason: str = ""):
        self.username = username
        self.reason = reason
        message = f"Failed to fetch YAPS score for {username}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UserNotFoundError(UpstreamFetchError):
    """The YAPS API has no record of the requested handle (HTTP 404)."""


class CacheUnavailableError(YapsError):
    """A cache operation failed. Internal only: consumers treat it as a cache miss."""


class RateLimitExceeded(YapsError):
    """The shared upstream request budget for the current window is spent."""

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message)
