"""Utility modules for the builder."""

from .http import FetchResult, HTTPClient, ResponseCache, SSRFError, validate_url

__all__ = [
    "FetchResult",
    "HTTPClient",
    "ResponseCache",
    "SSRFError",
    "validate_url",
]
